from __future__ import annotations

from typing import Any


class DesignHubError(Exception):
    """
    Base for every error the engine surfaces.

    `code` is stable and machine-readable; `status_code` is the HTTP mapping
    used by the API layer.
    """
    code = "error"
    status_code = 400

    def __init__(self, message: str, *, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class DuplicateContentRace(DesignHubError):
    # Internal only: converted into a reuse by the design store.
    code = "duplicate_content_race"
    status_code = 409


class InvalidTransition(DesignHubError):
    code = "invalid_transition"
    status_code = 409


class ReasonRequired(DesignHubError):
    code = "reason_required"
    status_code = 422


class InvalidPolicy(DesignHubError):
    code = "invalid_policy"
    status_code = 422


class InvalidStatusFilter(DesignHubError):
    code = "invalid_status_filter"
    status_code = 422


class NotEligible(DesignHubError):
    code = "not_eligible"
    status_code = 409


class ArtworkUnreadable(DesignHubError):
    code = "artwork_unreadable"
    status_code = 422


class StorageUnavailable(DesignHubError):
    code = "storage_unavailable"
    status_code = 503


class DesignNotFound(DesignHubError):
    code = "design_not_found"
    status_code = 404


class ListingNotFound(DesignHubError):
    code = "listing_not_found"
    status_code = 404


class IdempotencyConflict(DesignHubError):
    code = "idempotency_conflict"
    status_code = 409

from __future__ import annotations

import enum


class ValidationState(str, enum.Enum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"


class ListingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"


class PostDecisionPolicy(str, enum.Enum):
    AUTO_PUBLISH = "AUTO_PUBLISH"
    TO_DRAFT = "TO_DRAFT"


class Decision(str, enum.Enum):
    VALIDATE = "VALIDATE"
    REJECT = "REJECT"


DECISION_TO_STATE: dict[Decision, ValidationState] = {
    Decision.VALIDATE: ValidationState.VALIDATED,
    Decision.REJECT: ValidationState.REJECTED,
}

# Design: one-way, exactly once out of PENDING.
DESIGN_TRANSITIONS: dict[ValidationState, frozenset[ValidationState]] = {
    ValidationState.PENDING: frozenset({ValidationState.VALIDATED, ValidationState.REJECTED}),
    ValidationState.VALIDATED: frozenset(),
    ValidationState.REJECTED: frozenset(),
}

# Listing: (status, is_validated) -> allowed next (status, is_validated).
# Anything not listed here is unreachable and rejected.
LISTING_TRANSITIONS: dict[tuple[ListingStatus, bool], frozenset[tuple[ListingStatus, bool]]] = {
    (ListingStatus.PENDING, False): frozenset({
        (ListingStatus.PUBLISHED, True),
        (ListingStatus.DRAFT, True),
        (ListingStatus.REJECTED, False),
    }),
    (ListingStatus.DRAFT, True): frozenset({(ListingStatus.PUBLISHED, True)}),
    (ListingStatus.PUBLISHED, True): frozenset(),
    (ListingStatus.REJECTED, False): frozenset(),
}


def parse_policy(value: PostDecisionPolicy | str | None) -> PostDecisionPolicy | None:
    if isinstance(value, PostDecisionPolicy):
        return value
    try:
        return PostDecisionPolicy(str(value or "").upper().strip())
    except ValueError:
        return None


def can_transition_design(current: ValidationState | str, new: ValidationState | str) -> bool:
    return ValidationState(new) in DESIGN_TRANSITIONS.get(ValidationState(current), frozenset())


def can_transition_listing(
    current: tuple[ListingStatus | str, bool],
    new: tuple[ListingStatus | str, bool],
) -> bool:
    cur = (ListingStatus(current[0]), bool(current[1]))
    nxt = (ListingStatus(new[0]), bool(new[1]))
    return nxt in LISTING_TRANSITIONS.get(cur, frozenset())


def is_cascade_eligible(status: ListingStatus | str, is_validated: bool) -> bool:
    # the predicate that makes the cascade idempotent
    return ListingStatus(status) == ListingStatus.PENDING and not is_validated


def target_for_decision(state: ValidationState, policy: PostDecisionPolicy | str) -> tuple[ListingStatus, bool]:
    """Where an eligible listing lands once its design resolves to `state`."""
    if state == ValidationState.VALIDATED:
        if PostDecisionPolicy(policy) == PostDecisionPolicy.AUTO_PUBLISH:
            return ListingStatus.PUBLISHED, True
        return ListingStatus.DRAFT, True
    if state == ValidationState.REJECTED:
        return ListingStatus.REJECTED, False
    raise ValueError(f"no listing target for undecided state: {state.value}")

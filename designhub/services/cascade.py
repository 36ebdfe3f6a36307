from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import distinct, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import storage_errors
from designhub.core.errors import DesignHubError, InvalidTransition, ReasonRequired
from designhub.models.design import Design
from designhub.models.design_product_link import DesignProductLink
from designhub.models.listing import Listing
from designhub.services import design_store, link_store, listing_store
from designhub.services.audit import audit
from designhub.services.listing_state import DECISION_TO_STATE, Decision, ListingStatus, ValidationState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingFailure:
    listing_id: str
    error: str


@dataclass
class CascadeReport:
    validated_design: Design
    published_count: int = 0
    draft_count: int = 0
    rejected_count: int = 0
    skipped_count: int = 0
    failures: list[ListingFailure] = field(default_factory=list)

    def record(self, status: ListingStatus | None) -> None:
        if status is None:
            self.skipped_count += 1
        elif status == ListingStatus.PUBLISHED:
            self.published_count += 1
        elif status == ListingStatus.DRAFT:
            self.draft_count += 1
        elif status == ListingStatus.REJECTED:
            self.rejected_count += 1


async def decide_design(
    db: AsyncSession,
    *,
    design_id: str,
    decision: Decision | str,
    actor_id: str,
    reason: str | None = None,
) -> CascadeReport:
    """
    Apply one moderation decision to a design and every listing waiting on it.

    The design decision is committed on its own before the fan-out: it is the
    source of truth, and listing propagation is retried independently.
    Raises InvalidTransition when the design was already decided.
    """
    decision = Decision(decision)
    if decision == Decision.REJECT and not (reason or "").strip():
        raise ReasonRequired("A rejection reason is required")

    design = await design_store.set_validation_state(
        db,
        design_id=design_id,
        new_state=DECISION_TO_STATE[decision],
        actor_id=actor_id,
        reason=reason,
    )
    await audit(
        db,
        actor_id=actor_id,
        action=f"design.{design.validation_state.lower()}",
        target_type="design",
        target_id=design.id,
        detail={"reason": design.rejection_reason} if design.rejection_reason else {},
    )
    await db.commit()

    report = await propagate_decision(db, design_id=design.id)
    await db.commit()
    return report


async def propagate_decision(db: AsyncSession, *, design_id: str) -> CascadeReport:
    """
    Push an already-committed design decision to its linked listings.

    Safe to re-run at any time: only listings still PENDING and unvalidated
    are touched, so a resumed or duplicated run converges to the same state.
    The caller owns the commit.
    """
    design = await design_store.get_design(db, design_id, fresh=True)
    state = ValidationState(design.validation_state)
    if state == ValidationState.PENDING:
        raise InvalidTransition(f"Design {design_id} has no decision to propagate")

    report = CascadeReport(validated_design=design)
    actor_id, reason = design.validated_by, design.rejection_reason
    listing_ids = await link_store.list_listing_ids_for_design(db, design_id)

    for listing_id in listing_ids:
        try:
            async with db.begin_nested():
                status = await listing_store.apply_design_decision(
                    db,
                    listing_id=listing_id,
                    state=state,
                    actor_id=actor_id,
                    reason=reason,
                )
        except (DesignHubError, SQLAlchemyError) as e:
            log.warning("cascade: listing %s failed for design %s: %s", listing_id, design_id, e)
            report.failures.append(ListingFailure(listing_id=listing_id, error=f"{type(e).__name__}: {e}"))
            continue
        report.record(status)

    log.info(
        "cascade design=%s state=%s published=%d draft=%d rejected=%d skipped=%d failed=%d",
        design_id,
        state.value,
        report.published_count,
        report.draft_count,
        report.rejected_count,
        report.skipped_count,
        len(report.failures),
    )
    return report


async def designs_needing_propagation(db: AsyncSession, *, limit: int = 100) -> list[str]:
    """Decided designs that still have linked listings waiting on them."""
    stmt = (
        select(distinct(Design.id))
        .join(DesignProductLink, DesignProductLink.design_id == Design.id)
        .join(Listing, Listing.id == DesignProductLink.listing_id)
        .where(
            Design.validation_state != ValidationState.PENDING.value,
            Listing.status == ListingStatus.PENDING.value,
            Listing.is_validated.is_(False),
        )
        .limit(limit)
    )
    with storage_errors("propagation scan"):
        return list((await db.execute(stmt)).scalars().all())

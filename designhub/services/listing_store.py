from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import storage_errors
from designhub.core.errors import InvalidStatusFilter, ListingNotFound, NotEligible
from designhub.models.listing import Listing
from designhub.services.listing_state import (
    ListingStatus,
    PostDecisionPolicy,
    ValidationState,
    can_transition_listing,
    is_cascade_eligible,
    target_for_decision,
)

log = logging.getLogger(__name__)


async def create_listing(
    db: AsyncSession,
    *,
    vendor_id: str,
    base_product_id: str,
    design_id: str | None,
    post_decision_policy: PostDecisionPolicy,
    artwork_uri: str | None = None,
) -> Listing:
    listing = Listing(
        vendor_id=vendor_id,
        base_product_id=base_product_id,
        design_id=design_id,
        status=ListingStatus.PENDING.value,
        is_validated=False,
        post_decision_policy=PostDecisionPolicy(post_decision_policy).value,
        artwork_uri=artwork_uri,
        created_by=vendor_id,
        updated_by=vendor_id,
    )
    with storage_errors("listing insert"):
        db.add(listing)
        await db.flush()
    return listing


async def get_listing(db: AsyncSession, listing_id: str, *, vendor_id: str | None = None, fresh: bool = False) -> Listing:
    stmt = select(Listing).where(Listing.id == listing_id)
    if vendor_id is not None:
        stmt = stmt.where(Listing.vendor_id == vendor_id)
    if fresh:
        stmt = stmt.execution_options(populate_existing=True)
    with storage_errors("listing lookup"):
        listing = (await db.execute(stmt)).scalar_one_or_none()
    if listing is None:
        raise ListingNotFound(f"Listing {listing_id} not found")
    return listing


async def list_vendor_listings(db: AsyncSession, vendor_id: str, *, status: str | None = None) -> list[Listing]:
    stmt = select(Listing).where(Listing.vendor_id == vendor_id)
    if status:
        try:
            wanted = ListingStatus(status.strip().upper())
        except ValueError:
            raise InvalidStatusFilter(
                f"Unknown listing status: {status!r}",
                details=[{"allowed": [s.value for s in ListingStatus]}],
            ) from None
        stmt = stmt.where(Listing.status == wanted.value)
    stmt = stmt.order_by(Listing.created_at.desc(), Listing.id.desc())
    with storage_errors("listing listing"):
        return list((await db.execute(stmt)).scalars().all())


async def apply_design_decision(
    db: AsyncSession,
    *,
    listing_id: str,
    state: ValidationState,
    actor_id: str | None,
    reason: str | None = None,
) -> ListingStatus | None:
    """
    Move one listing out of PENDING according to its design's decision.

    Returns the new status, or None when the listing was not eligible
    (already handled, manually published, or raced by another cascade run).
    """
    listing = await get_listing(db, listing_id, fresh=True)
    if not is_cascade_eligible(listing.status, listing.is_validated):
        return None

    target_status, target_validated = target_for_decision(ValidationState(state), listing.post_decision_policy)
    if not can_transition_listing((listing.status, listing.is_validated), (target_status, target_validated)):
        return None

    if target_validated:
        values = {
            "status": target_status.value,
            "is_validated": True,
            "validated_at": datetime.now(timezone.utc),
            "validated_by": actor_id,
            "rejection_reason": None,
        }
    else:
        values = {
            "status": target_status.value,
            "is_validated": False,
            "rejection_reason": reason,
        }
    values["updated_by"] = actor_id

    # compare-and-set on the eligibility predicate
    with storage_errors("listing decision"):
        result = await db.execute(
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.status == ListingStatus.PENDING.value,
                Listing.is_validated.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    if result.rowcount == 0:
        return None

    log.info("listing %s: %s -> %s", listing_id, listing.post_decision_policy, target_status.value)
    return target_status


async def attach_design(db: AsyncSession, *, listing_id: str, design_id: str, actor_id: str) -> bool:
    """Set design_id on a legacy listing; never overwrites an existing one."""
    with storage_errors("listing attach"):
        result = await db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.design_id.is_(None))
            .values(design_id=design_id, updated_by=actor_id)
            .execution_options(synchronize_session=False)
        )
    return bool(result.rowcount)


async def publish_draft_listing(db: AsyncSession, *, listing_id: str, vendor_id: str) -> Listing:
    """Vendor action: validated DRAFT -> PUBLISHED. Anything else is NotEligible."""
    with storage_errors("listing publish"):
        result = await db.execute(
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.vendor_id == vendor_id,
                Listing.status == ListingStatus.DRAFT.value,
                Listing.is_validated.is_(True),
            )
            .values(status=ListingStatus.PUBLISHED.value, updated_by=vendor_id)
            .execution_options(synchronize_session=False)
        )

    listing = await get_listing(db, listing_id, vendor_id=vendor_id, fresh=True)
    if result.rowcount == 0:
        raise NotEligible(
            f"Listing {listing_id} is not a validated draft",
            details=[{"status": listing.status, "is_validated": listing.is_validated}],
        )

    log.info("listing %s published manually by %s", listing_id, vendor_id)
    return listing


async def listings_missing_design(db: AsyncSession, *, limit: int = 500) -> list[Listing]:
    with storage_errors("backfill scan"):
        stmt = (
            select(Listing)
            .where(Listing.design_id.is_(None), Listing.artwork_uri.is_not(None))
            .order_by(Listing.created_at.asc(), Listing.id.asc())
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all())

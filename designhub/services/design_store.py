from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import storage_errors
from designhub.core.errors import DesignNotFound, DuplicateContentRace, InvalidTransition, ReasonRequired
from designhub.models.design import Design
from designhub.models.design_product_link import DesignProductLink
from designhub.models.listing import Listing
from designhub.services.listing_state import PostDecisionPolicy, ValidationState, can_transition_design

log = logging.getLogger(__name__)


async def find_by_hash(db: AsyncSession, content_hash: str) -> Design | None:
    with storage_errors("design lookup"):
        stmt = select(Design).where(Design.content_hash == content_hash)
        return (await db.execute(stmt)).scalar_one_or_none()


async def get_design(db: AsyncSession, design_id: str, *, fresh: bool = False) -> Design:
    stmt = select(Design).where(Design.id == design_id)
    if fresh:
        stmt = stmt.execution_options(populate_existing=True)
    with storage_errors("design lookup"):
        design = (await db.execute(stmt)).scalar_one_or_none()
    if design is None:
        raise DesignNotFound(f"Design {design_id} not found")
    return design


async def _insert_design(db: AsyncSession, design: Design) -> None:
    try:
        async with db.begin_nested():
            db.add(design)
            await db.flush()
    except IntegrityError as e:
        raise DuplicateContentRace(f"Design with hash {design.content_hash} already exists") from e


async def create_if_absent(
    db: AsyncSession,
    *,
    content_hash: str,
    owner_id: str,
    image_url: str | None = None,
) -> tuple[Design, bool]:
    """
    Reuse-or-create keyed by content hash.

    Insert first and let the unique constraint arbitrate: a concurrent insert
    of the same content surfaces as a unique violation, which is turned into a
    reuse of the winning row. Returns (design, was_created).
    """
    existing = await find_by_hash(db, content_hash)
    if existing is not None:
        return existing, False

    design = Design(
        content_hash=content_hash,
        owner_id=owner_id,
        validation_state=ValidationState.PENDING.value,
        image_url=image_url,
        created_by=owner_id,
        updated_by=owner_id,
    )
    try:
        with storage_errors("design insert"):
            await _insert_design(db, design)
    except DuplicateContentRace:
        log.info("design insert lost race for %s; reusing existing row", content_hash)
        winner = await find_by_hash(db, content_hash)
        if winner is None:
            # constraint fired but the row is not visible: let the caller retry
            raise
        return winner, False

    log.info("design created: %s (%s) by %s", design.id, content_hash, owner_id)
    return design, True


async def set_validation_state(
    db: AsyncSession,
    *,
    design_id: str,
    new_state: ValidationState,
    actor_id: str,
    reason: str | None = None,
) -> Design:
    """
    One-way PENDING -> VALIDATED|REJECTED transition.

    Guarded by a conditional update on validation_state, so two concurrent
    moderators cannot both win.
    """
    new_state = ValidationState(new_state)
    if not can_transition_design(ValidationState.PENDING, new_state):
        raise InvalidTransition(f"{new_state.value} is not a decision state")
    if new_state == ValidationState.REJECTED and not (reason or "").strip():
        raise ReasonRequired("A rejection reason is required")

    values = {
        "validation_state": new_state.value,
        "validated_at": datetime.now(timezone.utc),
        "validated_by": actor_id,
        "rejection_reason": reason.strip() if new_state == ValidationState.REJECTED else None,
        "updated_by": actor_id,
    }

    with storage_errors("design decision"):
        result = await db.execute(
            update(Design)
            .where(Design.id == design_id, Design.validation_state == ValidationState.PENDING.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    if result.rowcount == 0:
        current = await get_design(db, design_id, fresh=True)
        raise InvalidTransition(
            f"Design {design_id} already decided",
            details=[{"design_id": design_id, "validation_state": current.validation_state}],
        )

    log.info("design %s -> %s by %s", design_id, new_state.value, actor_id)
    return await get_design(db, design_id, fresh=True)


@dataclass(frozen=True)
class PendingDesign:
    design: Design
    linked_listings: int
    auto_publish_count: int
    to_draft_count: int


async def list_pending_designs(db: AsyncSession, *, limit: int = 20, offset: int = 0) -> tuple[list[PendingDesign], int]:
    """Moderation queue: undecided designs, oldest first, with their fan-out."""
    pending = Design.validation_state == ValidationState.PENDING.value

    with storage_errors("pending designs"):
        total = (await db.execute(select(func.count()).select_from(Design).where(pending))).scalar_one()
        designs = (await db.execute(
            select(Design).where(pending).order_by(Design.created_at.asc(), Design.id.asc()).offset(offset).limit(limit)
        )).scalars().all()

        counts: dict[tuple[str, str], int] = {}
        if designs:
            rows = (await db.execute(
                select(DesignProductLink.design_id, Listing.post_decision_policy, func.count())
                .join(Listing, Listing.id == DesignProductLink.listing_id)
                .where(DesignProductLink.design_id.in_([d.id for d in designs]))
                .group_by(DesignProductLink.design_id, Listing.post_decision_policy)
            )).all()
            counts = {(design_id, policy): n for (design_id, policy, n) in rows}

    out = []
    for d in designs:
        auto = counts.get((d.id, PostDecisionPolicy.AUTO_PUBLISH.value), 0)
        draft = counts.get((d.id, PostDecisionPolicy.TO_DRAFT.value), 0)
        out.append(PendingDesign(design=d, linked_listings=auto + draft, auto_publish_count=auto, to_draft_count=draft))
    return out, int(total)

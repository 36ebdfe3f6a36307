from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import get_db
from designhub.schemas.design import (
    AuditEntryOut,
    CascadeReportOut,
    DesignDecisionIn,
    DesignDetailOut,
    DesignOut,
    ListingFailureOut,
    PendingDesignOut,
    PendingDesignsPage,
)
from designhub.services import design_store, link_store
from designhub.services.audit import history_for
from designhub.services.auth import Actor, require_moderator
from designhub.services.cascade import CascadeReport, decide_design, propagate_decision

router = APIRouter(prefix="/moderation")


def _report_out(report: CascadeReport) -> CascadeReportOut:
    return CascadeReportOut(
        validated_design=DesignOut.model_validate(report.validated_design),
        published_count=report.published_count,
        draft_count=report.draft_count,
        rejected_count=report.rejected_count,
        skipped_count=report.skipped_count,
        failures=[ListingFailureOut(listing_id=f.listing_id, error=f.error) for f in report.failures],
    )


@router.get("/designs/pending", response_model=PendingDesignsPage)
async def list_pending_designs(
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> PendingDesignsPage:
    rows, total = await design_store.list_pending_designs(db, limit=limit, offset=offset)
    return PendingDesignsPage(
        items=[
            PendingDesignOut(
                design=DesignOut.model_validate(r.design),
                linked_listings=r.linked_listings,
                auto_publish_count=r.auto_publish_count,
                to_draft_count=r.to_draft_count,
            )
            for r in rows
        ],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + limit < total,
    )


@router.get("/designs/{design_id}", response_model=DesignDetailOut)
async def get_design(
    design_id: str,
    actor: Actor = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> DesignDetailOut:
    design = await design_store.get_design(db, design_id)
    listing_ids = await link_store.list_listing_ids_for_design(db, design.id)
    history = await history_for(db, target_type="design", target_id=design.id)
    return DesignDetailOut(
        design=DesignOut.model_validate(design),
        listing_ids=listing_ids,
        history=[AuditEntryOut.model_validate(h) for h in history],
    )


@router.post("/designs/{design_id}/decision", response_model=CascadeReportOut)
async def decide(
    design_id: str,
    payload: DesignDecisionIn,
    actor: Actor = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> CascadeReportOut:
    report = await decide_design(
        db,
        design_id=design_id,
        decision=payload.decision,
        actor_id=actor.actor_id,
        reason=payload.reason,
    )
    return _report_out(report)


@router.post("/designs/{design_id}/propagate", response_model=CascadeReportOut)
async def propagate(
    design_id: str,
    actor: Actor = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> CascadeReportOut:
    """Re-run listing propagation for an already-decided design."""
    report = await propagate_decision(db, design_id=design_id)
    out = _report_out(report)
    await db.commit()
    return out

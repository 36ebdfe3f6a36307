import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import get_db
from designhub.schemas.design import BackfillOut, LinkCleanupOut, LinkStatsOut
from designhub.services import link_store
from designhub.services.audit import audit
from designhub.services.auth import Actor, require_moderator
from designhub.services.backfill import backfill_designs
from designhub.services.storage import LocalArtworkStore, get_artwork_store


log = logging.getLogger(__name__)
router = APIRouter(prefix="/admin")


@router.post("/designs/backfill", response_model=BackfillOut)
async def run_backfill(
    limit: int = Query(default=500, ge=1, le=5000),
    actor: Actor = Depends(require_moderator),
    artwork_store: LocalArtworkStore = Depends(get_artwork_store),
    db: AsyncSession = Depends(get_db),
) -> BackfillOut:
    report = await backfill_designs(db, artwork_store=artwork_store, actor_id=actor.actor_id, limit=limit)
    await db.commit()
    return BackfillOut(
        scanned=report.scanned,
        designs_created=report.designs_created,
        designs_reused=report.designs_reused,
        linked=report.linked,
        relinked=report.relinked,
        errors=report.errors,
    )


@router.get("/links/stats", response_model=LinkStatsOut)
async def get_link_stats(
    actor: Actor = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> LinkStatsOut:
    stats = await link_store.link_stats(db)
    return LinkStatsOut(
        total_links=stats.total_links,
        unique_designs=stats.unique_designs,
        unique_listings=stats.unique_listings,
        listings_with_design_id=stats.listings_with_design_id,
        listings_with_artwork_only=stats.listings_with_artwork_only,
    )


@router.post("/links/cleanup", response_model=LinkCleanupOut)
async def cleanup_links(
    actor: Actor = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> LinkCleanupOut:
    deleted = await link_store.cleanup_orphaned_links(db)
    await audit(db, actor_id=actor.actor_id, action="links.cleanup", target_type="design_product_link", detail={"deleted": deleted})
    await db.commit()
    log.info("link cleanup by %s: %d deleted", actor.actor_id, deleted)
    return LinkCleanupOut(deleted=deleted)

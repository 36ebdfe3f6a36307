from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, distinct, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import storage_errors
from designhub.models.design_product_link import DesignProductLink
from designhub.models.listing import Listing

log = logging.getLogger(__name__)


async def _link_exists(db: AsyncSession, design_id: str, listing_id: str) -> bool:
    with storage_errors("link lookup"):
        stmt = select(DesignProductLink.design_id).where(
            DesignProductLink.design_id == design_id,
            DesignProductLink.listing_id == listing_id,
        )
        return (await db.execute(stmt)).first() is not None


async def ensure_link(db: AsyncSession, *, design_id: str, listing_id: str) -> bool:
    """
    Insert (design_id, listing_id) if absent. Returns True when a row was created.
    An existing identical pair is a successful no-op.
    """
    if await _link_exists(db, design_id, listing_id):
        return False

    try:
        with storage_errors("link insert"):
            async with db.begin_nested():
                db.add(DesignProductLink(design_id=design_id, listing_id=listing_id))
                await db.flush()
    except IntegrityError:
        # only a concurrent insert of the same pair counts as success;
        # a missing design or listing (FK violation) propagates
        if not await _link_exists(db, design_id, listing_id):
            raise
        log.info("link already present: %s <-> %s", design_id, listing_id)
        return False

    log.info("link created: %s <-> %s", design_id, listing_id)
    return True


async def list_listing_ids_for_design(db: AsyncSession, design_id: str) -> list[str]:
    with storage_errors("link listing"):
        stmt = (
            select(DesignProductLink.listing_id)
            .where(DesignProductLink.design_id == design_id)
            .order_by(DesignProductLink.created_at.asc(), DesignProductLink.listing_id.asc())
        )
        return list((await db.execute(stmt)).scalars().all())


async def cleanup_orphaned_links(db: AsyncSession) -> int:
    """
    Delete links that no longer agree with Listing.design_id
    (listing gone, or pointing at another design).
    """
    consistent = exists().where(
        Listing.id == DesignProductLink.listing_id,
        Listing.design_id == DesignProductLink.design_id,
    )
    with storage_errors("link cleanup"):
        result = await db.execute(
            delete(DesignProductLink).where(~consistent).execution_options(synchronize_session=False)
        )
    deleted = int(result.rowcount or 0)
    if deleted:
        log.warning("deleted %d orphaned design/listing links", deleted)
    return deleted


async def listing_ids_missing_link(db: AsyncSession, *, limit: int = 500) -> list[str]:
    has_link = exists().where(
        DesignProductLink.listing_id == Listing.id,
        DesignProductLink.design_id == Listing.design_id,
    )
    with storage_errors("missing links"):
        stmt = (
            select(Listing.id)
            .where(Listing.design_id.is_not(None), ~has_link)
            .order_by(Listing.created_at.asc(), Listing.id.asc())
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all())


@dataclass(frozen=True)
class LinkStats:
    total_links: int
    unique_designs: int
    unique_listings: int
    listings_with_design_id: int
    listings_with_artwork_only: int


async def link_stats(db: AsyncSession) -> LinkStats:
    with storage_errors("link stats"):
        total, designs, listings = (await db.execute(
            select(
                func.count(),
                func.count(distinct(DesignProductLink.design_id)),
                func.count(distinct(DesignProductLink.listing_id)),
            ).select_from(DesignProductLink)
        )).one()
        with_design = (await db.execute(
            select(func.count()).select_from(Listing).where(Listing.design_id.is_not(None))
        )).scalar_one()
        artwork_only = (await db.execute(
            select(func.count()).select_from(Listing).where(
                Listing.design_id.is_(None), Listing.artwork_uri.is_not(None)
            )
        )).scalar_one()

    return LinkStats(
        total_links=int(total),
        unique_designs=int(designs),
        unique_listings=int(listings),
        listings_with_design_id=int(with_design),
        listings_with_artwork_only=int(artwork_only),
    )

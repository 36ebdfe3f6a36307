from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.errors import DesignHubError
from designhub.services import design_store, link_store, listing_store
from designhub.services.audit import audit
from designhub.services.content_hash import compute_content_hash
from designhub.services.intake import apply_known_decision
from designhub.services.storage import LocalArtworkStore

log = logging.getLogger(__name__)


@dataclass
class BackfillReport:
    scanned: int = 0
    designs_created: int = 0
    designs_reused: int = 0
    linked: int = 0
    relinked: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


async def backfill_designs(
    db: AsyncSession,
    *,
    artwork_store: LocalArtworkStore,
    actor_id: str = "backfill",
    limit: int = 500,
) -> BackfillReport:
    """
    Attach designs to legacy listings that only carry an artwork URI, and
    restore missing links for listings that already have a design.

    Uses the intake primitives (hash, create_if_absent, ensure_link), so the
    result is indistinguishable from a normal submission. Each listing is
    handled in its own savepoint; the caller owns the commit.
    """
    report = BackfillReport()

    # plain values: a rolled-back savepoint may expire loaded rows
    pending = [
        (l.id, l.vendor_id, l.artwork_uri)
        for l in await listing_store.listings_missing_design(db, limit=limit)
    ]
    for listing_id, vendor_id, artwork_uri in pending:
        report.scanned += 1
        try:
            async with db.begin_nested():
                data = artwork_store.read_bytes(artwork_uri)
                design, created = await design_store.create_if_absent(
                    db,
                    content_hash=compute_content_hash(data),
                    owner_id=vendor_id,
                    image_url=artwork_uri,
                )
                if not await listing_store.attach_design(db, listing_id=listing_id, design_id=design.id, actor_id=actor_id):
                    # attached concurrently by another run
                    continue
                await link_store.ensure_link(db, design_id=design.id, listing_id=listing_id)
                await apply_known_decision(db, listing_id=listing_id, design_id=design.id)
        except (DesignHubError, SQLAlchemyError) as e:
            log.warning("backfill: listing %s failed: %s", listing_id, e)
            report.errors.append({"listing_id": listing_id, "error": f"{type(e).__name__}: {e}"})
            continue

        if created:
            report.designs_created += 1
        else:
            report.designs_reused += 1
        report.linked += 1

    for listing_id in await link_store.listing_ids_missing_link(db, limit=limit):
        try:
            listing = await listing_store.get_listing(db, listing_id, fresh=True)
            if await link_store.ensure_link(db, design_id=listing.design_id, listing_id=listing_id):
                report.relinked += 1
        except (DesignHubError, SQLAlchemyError) as e:
            log.warning("backfill: relink %s failed: %s", listing_id, e)
            report.errors.append({"listing_id": listing_id, "error": f"{type(e).__name__}: {e}"})

    await audit(
        db,
        actor_id=actor_id,
        action="designs.backfill",
        target_type="listing",
        detail={
            "scanned": report.scanned,
            "designs_created": report.designs_created,
            "designs_reused": report.designs_reused,
            "linked": report.linked,
            "relinked": report.relinked,
            "errors": len(report.errors),
        },
    )
    log.info(
        "backfill done: scanned=%d created=%d reused=%d linked=%d relinked=%d errors=%d",
        report.scanned, report.designs_created, report.designs_reused,
        report.linked, report.relinked, len(report.errors),
    )
    return report

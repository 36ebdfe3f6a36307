import pytest
from sqlalchemy import delete, select

from designhub.models.audit_log import AuditLog
from designhub.models.design_product_link import DesignProductLink
from designhub.models.listing import Listing
from designhub.services import link_store
from designhub.services.backfill import backfill_designs
from designhub.services.cascade import decide_design

from fixtures_seed import ARTWORK_A, ARTWORK_B, ARTWORK_C, fetch_listing, submit


def _legacy(vendor_id: str, artwork_uri: str, policy: str = "AUTO_PUBLISH") -> Listing:
    return Listing(
        vendor_id=vendor_id,
        base_product_id="hoodie",
        design_id=None,
        status="PENDING",
        is_validated=False,
        post_decision_policy=policy,
        artwork_uri=artwork_uri,
    )


@pytest.mark.asyncio
async def test_backfill_attaches_designs_and_links(db_session, artwork_store):
    uri_b = artwork_store.put_bytes(key="legacy/b.png", data=ARTWORK_B)
    uri_c = artwork_store.put_bytes(key="legacy/c.png", data=ARTWORK_C)

    # an existing, already validated design for ARTWORK_A
    current = await submit(db_session, vendor_id="vnd-0", artwork=ARTWORK_A)
    await decide_design(db_session, design_id=current.design.id, decision="VALIDATE", actor_id="mod-1")
    uri_a = artwork_store.put_bytes(key="legacy/a.png", data=ARTWORK_A)

    old_a = _legacy("vnd-1", uri_a, policy="TO_DRAFT")
    old_b1 = _legacy("vnd-1", uri_b)
    old_b2 = _legacy("vnd-2", uri_b)
    old_c = _legacy("vnd-3", uri_c)
    broken = _legacy("vnd-4", "legacy/missing.png")
    db_session.add_all([old_a, old_b1, old_b2, old_c, broken])
    await db_session.commit()

    report = await backfill_designs(db_session, artwork_store=artwork_store)
    await db_session.commit()

    assert report.scanned == 5
    assert report.designs_created == 2
    assert report.designs_reused == 2
    assert report.linked == 4
    assert report.relinked == 0
    assert [e["listing_id"] for e in report.errors] == [broken.id]

    a = await fetch_listing(db_session, old_a.id)
    assert a.design_id == current.design.id
    # landed straight away because the design was already decided
    assert (a.status, a.is_validated) == ("DRAFT", True)

    b1 = await fetch_listing(db_session, old_b1.id)
    b2 = await fetch_listing(db_session, old_b2.id)
    assert b1.design_id == b2.design_id is not None
    assert b1.status == "PENDING"

    ids = await link_store.list_listing_ids_for_design(db_session, b1.design_id)
    assert sorted(ids) == sorted([old_b1.id, old_b2.id])

    assert (await fetch_listing(db_session, broken.id)).design_id is None

    audit_rows = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == "designs.backfill")
    )).scalars().all()
    assert len(audit_rows) == 1
    assert audit_rows[0].detail["linked"] == 4


@pytest.mark.asyncio
async def test_backfill_restores_missing_links_and_is_rerunnable(db_session, artwork_store):
    res = await submit(db_session, vendor_id="vnd-1", artwork=ARTWORK_A)
    await db_session.execute(delete(DesignProductLink).where(DesignProductLink.listing_id == res.listing.id))
    await db_session.commit()

    first = await backfill_designs(db_session, artwork_store=artwork_store)
    await db_session.commit()
    assert first.scanned == 0
    assert first.relinked == 1
    assert await link_store.list_listing_ids_for_design(db_session, res.design.id) == [res.listing.id]

    second = await backfill_designs(db_session, artwork_store=artwork_store)
    await db_session.commit()
    assert (second.scanned, second.linked, second.relinked, second.errors) == (0, 0, 0, [])

import pytest
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from designhub.models.design_product_link import DesignProductLink
from designhub.models.listing import Listing
from designhub.services import link_store

from fixtures_seed import ARTWORK_A, ARTWORK_B, submit


async def _link_count(db, design_id: str, listing_id: str) -> int:
    stmt = select(func.count()).select_from(DesignProductLink).where(
        DesignProductLink.design_id == design_id,
        DesignProductLink.listing_id == listing_id,
    )
    return (await db.execute(stmt)).scalar_one()


@pytest.mark.asyncio
async def test_ensure_link_is_idempotent(db_session):
    res = await submit(db_session)

    # intake already linked; further calls are no-ops
    assert await link_store.ensure_link(db_session, design_id=res.design.id, listing_id=res.listing.id) is False
    assert await link_store.ensure_link(db_session, design_id=res.design.id, listing_id=res.listing.id) is False
    await db_session.commit()

    assert await _link_count(db_session, res.design.id, res.listing.id) == 1


@pytest.mark.asyncio
async def test_ensure_link_creates_missing_pair(db_session):
    res = await submit(db_session)
    await db_session.execute(delete_links(res.design.id))
    await db_session.commit()

    assert await link_store.ensure_link(db_session, design_id=res.design.id, listing_id=res.listing.id) is True
    assert await link_store.ensure_link(db_session, design_id=res.design.id, listing_id=res.listing.id) is False
    await db_session.commit()
    assert await _link_count(db_session, res.design.id, res.listing.id) == 1


def delete_links(design_id: str):
    return delete(DesignProductLink).where(DesignProductLink.design_id == design_id)


@pytest.mark.asyncio
async def test_list_listing_ids_for_design(db_session):
    r1 = await submit(db_session, vendor_id="vnd-1")
    r2 = await submit(db_session, vendor_id="vnd-2")
    other = await submit(db_session, vendor_id="vnd-3", artwork=ARTWORK_B)

    ids = await link_store.list_listing_ids_for_design(db_session, r1.design.id)
    assert sorted(ids) == sorted([r1.listing.id, r2.listing.id])
    assert other.listing.id not in ids

    assert await link_store.list_listing_ids_for_design(db_session, "dsg_unknown") == []


@pytest.mark.asyncio
async def test_cleanup_removes_links_that_disagree_with_listing(db_session):
    keep = await submit(db_session, vendor_id="vnd-1", artwork=ARTWORK_A)
    other = await submit(db_session, vendor_id="vnd-2", artwork=ARTWORK_B)

    # a stale link from listing `keep` to the wrong design
    db_session.add(DesignProductLink(design_id=other.design.id, listing_id=keep.listing.id))
    await db_session.commit()

    deleted = await link_store.cleanup_orphaned_links(db_session)
    await db_session.commit()

    assert deleted == 1
    assert await _link_count(db_session, other.design.id, keep.listing.id) == 0
    assert await _link_count(db_session, keep.design.id, keep.listing.id) == 1
    assert await _link_count(db_session, other.design.id, other.listing.id) == 1


@pytest.mark.asyncio
async def test_link_stats_and_missing_links(db_session):
    r1 = await submit(db_session, vendor_id="vnd-1", artwork=ARTWORK_A)
    await submit(db_session, vendor_id="vnd-2", artwork=ARTWORK_A)
    await submit(db_session, vendor_id="vnd-3", artwork=ARTWORK_B)

    db_session.add(Listing(
        vendor_id="vnd-legacy",
        base_product_id="mug",
        design_id=None,
        status="PENDING",
        is_validated=False,
        post_decision_policy="AUTO_PUBLISH",
        artwork_uri="legacy/mug.png",
    ))
    await db_session.execute(delete_links(r1.design.id).where(DesignProductLink.listing_id == r1.listing.id))
    await db_session.commit()

    stats = await link_store.link_stats(db_session)
    assert stats.total_links == 2
    assert stats.unique_designs == 2
    assert stats.unique_listings == 2
    assert stats.listings_with_design_id == 3
    assert stats.listings_with_artwork_only == 1

    assert await link_store.listing_ids_missing_link(db_session) == [r1.listing.id]

    await db_session.execute(update(Listing).where(Listing.vendor_id == "vnd-legacy").values(artwork_uri=None))
    await db_session.commit()
    assert (await link_store.link_stats(db_session)).listings_with_artwork_only == 0


@pytest.mark.asyncio
async def test_ensure_link_refuses_missing_records(db_session):
    res = await submit(db_session)
    design_id, listing_id = res.design.id, res.listing.id

    with pytest.raises(IntegrityError):
        await link_store.ensure_link(db_session, design_id="dsg_does_not_exist", listing_id=listing_id)
    with pytest.raises(IntegrityError):
        await link_store.ensure_link(db_session, design_id=design_id, listing_id="lst_does_not_exist")

    # only the savepoints were rolled back; the session keeps working
    await db_session.commit()
    assert await _link_count(db_session, "dsg_does_not_exist", listing_id) == 0
    assert await link_store.list_listing_ids_for_design(db_session, design_id) == [listing_id]

import pytest

from designhub.core.errors import ListingNotFound, NotEligible
from designhub.services.cascade import decide_design
from designhub.services.listing_store import publish_draft_listing

from fixtures_seed import ARTWORK_A, submit


@pytest.mark.asyncio
async def test_validated_draft_can_be_published_once(db_session):
    res = await submit(db_session, vendor_id="vnd-1", policy="TO_DRAFT")
    await decide_design(db_session, design_id=res.design.id, decision="VALIDATE", actor_id="mod-1")

    listing = await publish_draft_listing(db_session, listing_id=res.listing.id, vendor_id="vnd-1")
    await db_session.commit()
    assert (listing.status, listing.is_validated) == ("PUBLISHED", True)

    with pytest.raises(NotEligible) as exc:
        await publish_draft_listing(db_session, listing_id=res.listing.id, vendor_id="vnd-1")
    assert exc.value.details == [{"status": "PUBLISHED", "is_validated": True}]


@pytest.mark.asyncio
async def test_pending_listing_is_not_eligible(db_session):
    res = await submit(db_session, vendor_id="vnd-1", policy="TO_DRAFT")
    with pytest.raises(NotEligible):
        await publish_draft_listing(db_session, listing_id=res.listing.id, vendor_id="vnd-1")


@pytest.mark.asyncio
async def test_rejected_listing_is_not_eligible(db_session):
    res = await submit(db_session, vendor_id="vnd-1", artwork=ARTWORK_A, policy="TO_DRAFT")
    await decide_design(db_session, design_id=res.design.id, decision="REJECT", actor_id="mod-1", reason="blurry")

    with pytest.raises(NotEligible):
        await publish_draft_listing(db_session, listing_id=res.listing.id, vendor_id="vnd-1")


@pytest.mark.asyncio
async def test_other_vendor_cannot_publish(db_session):
    res = await submit(db_session, vendor_id="vnd-1", policy="TO_DRAFT")
    await decide_design(db_session, design_id=res.design.id, decision="VALIDATE", actor_id="mod-1")

    with pytest.raises(ListingNotFound):
        await publish_draft_listing(db_session, listing_id=res.listing.id, vendor_id="vnd-2")

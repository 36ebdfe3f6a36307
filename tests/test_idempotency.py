import pytest

from designhub.core.errors import IdempotencyConflict
from designhub.services.idempotency import fingerprint_request, remember_response, reserve_submission
from designhub.services.retry import PROPAGATION_CAP_SECONDS, propagation_countdown

BODY = {"base_product_id": "mug", "artwork_base64": "AAAA", "post_decision_policy": "TO_DRAFT"}
PATH = "/v1/vendors/vnd-1/listings"


@pytest.mark.asyncio
async def test_reserve_then_replay(db_session):
    assert await reserve_submission(db_session, vendor_id="vnd-1", key="k1", request_path=PATH, request_body=BODY) is None
    await remember_response(db_session, vendor_id="vnd-1", key="k1", response={"listing": {"id": "lst_1"}})
    await db_session.commit()

    replay = await reserve_submission(db_session, vendor_id="vnd-1", key="k1", request_path=PATH, request_body=BODY)
    assert replay == {"listing": {"id": "lst_1"}}


@pytest.mark.asyncio
async def test_unanswered_reservation_is_in_progress(db_session):
    await reserve_submission(db_session, vendor_id="vnd-1", key="k2", request_path=PATH, request_body=BODY)

    with pytest.raises(IdempotencyConflict, match="in progress"):
        await reserve_submission(db_session, vendor_id="vnd-1", key="k2", request_path=PATH, request_body=BODY)


@pytest.mark.asyncio
async def test_keys_are_scoped_per_vendor(db_session):
    await reserve_submission(db_session, vendor_id="vnd-1", key="shared", request_path=PATH, request_body=BODY)
    other = await reserve_submission(
        db_session, vendor_id="vnd-2", key="shared", request_path=PATH, request_body={**BODY, "base_product_id": "cap"}
    )
    assert other is None


def test_fingerprint_ignores_key_order():
    reordered = dict(reversed(list(BODY.items())))
    assert fingerprint_request(PATH, BODY) == fingerprint_request(PATH, reordered)
    assert fingerprint_request(PATH, BODY) != fingerprint_request(PATH, {**BODY, "post_decision_policy": "AUTO_PUBLISH"})


def test_propagation_countdown_grows_and_caps():
    assert 15 <= propagation_countdown(0) <= 18
    assert 60 <= propagation_countdown(2) <= 75
    assert PROPAGATION_CAP_SECONDS <= propagation_countdown(20) <= PROPAGATION_CAP_SECONDS * 5 // 4

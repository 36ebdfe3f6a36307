from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import get_db
from designhub.schemas.design import DesignOut
from designhub.schemas.listing import ListingOut, ListingSubmit, ListingSubmitOut
from designhub.services import listing_store
from designhub.services.audit import audit
from designhub.services.auth import Actor, require_vendor
from designhub.services.content_hash import decode_artwork
from designhub.services.idempotency import remember_response, require_idempotency_key, reserve_submission
from designhub.services.intake import submit_listing
from designhub.services.storage import LocalArtworkStore, get_artwork_store

router = APIRouter()


@router.post("/vendors/{vendor_id}/listings", response_model=ListingSubmitOut)
async def submit_vendor_listing(
    vendor_id: str,
    payload: ListingSubmit,
    request: Request,
    actor: Actor = Depends(require_vendor),
    idempotency_key: str = Depends(require_idempotency_key),
    artwork_store: LocalArtworkStore = Depends(get_artwork_store),
    db: AsyncSession = Depends(get_db),
) -> ListingSubmitOut:
    replay = await reserve_submission(
        db,
        vendor_id=vendor_id,
        key=idempotency_key,
        request_path=str(request.url.path),
        request_body=payload.model_dump(),
    )
    if replay is not None:
        return ListingSubmitOut(**replay)

    result = await submit_listing(
        db,
        vendor_id=actor.actor_id,
        base_product_id=payload.base_product_id,
        artwork=decode_artwork(payload.artwork_base64),
        post_decision_policy=payload.post_decision_policy,
        artwork_store=artwork_store,
    )

    resp = ListingSubmitOut(
        listing=ListingOut.model_validate(result.listing),
        design=DesignOut.model_validate(result.design),
        deduplicated=result.deduplicated,
    ).model_dump(mode="json")

    await remember_response(db, vendor_id=vendor_id, key=idempotency_key, response=resp)

    await db.commit()

    return ListingSubmitOut(**resp)


@router.get("/vendors/{vendor_id}/listings", response_model=list[ListingOut])
async def list_vendor_listings(
    vendor_id: str,
    status: str | None = None,
    actor: Actor = Depends(require_vendor),
    db: AsyncSession = Depends(get_db),
) -> list[ListingOut]:
    rows = await listing_store.list_vendor_listings(db, actor.actor_id, status=status)
    return [ListingOut.model_validate(r) for r in rows]


@router.get("/vendors/{vendor_id}/listings/{listing_id}", response_model=ListingOut)
async def get_vendor_listing(
    vendor_id: str,
    listing_id: str,
    actor: Actor = Depends(require_vendor),
    db: AsyncSession = Depends(get_db),
) -> ListingOut:
    listing = await listing_store.get_listing(db, listing_id, vendor_id=actor.actor_id)
    return ListingOut.model_validate(listing)


@router.post("/vendors/{vendor_id}/listings/{listing_id}/publish", response_model=ListingOut)
async def publish_draft_listing(
    vendor_id: str,
    listing_id: str,
    actor: Actor = Depends(require_vendor),
    db: AsyncSession = Depends(get_db),
) -> ListingOut:
    listing = await listing_store.publish_draft_listing(db, listing_id=listing_id, vendor_id=actor.actor_id)
    await audit(db, actor_id=actor.actor_id, action="listing.published", target_type="listing", target_id=listing.id)
    resp = ListingOut.model_validate(listing)
    await db.commit()
    return resp

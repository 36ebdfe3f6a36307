from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.errors import ArtworkUnreadable, InvalidPolicy
from designhub.models.design import Design
from designhub.models.listing import Listing
from designhub.services import design_store, link_store, listing_store
from designhub.services.content_hash import compute_content_hash
from designhub.services.listing_state import PostDecisionPolicy, ValidationState, parse_policy
from designhub.services.storage import LocalArtworkStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingResult:
    listing: Listing
    design: Design
    deduplicated: bool


async def apply_known_decision(db: AsyncSession, *, listing_id: str, design_id: str) -> None:
    """
    If the design is already decided, land the listing right away instead of
    leaving it PENDING with no cascade left to pick it up.
    """
    design = await design_store.get_design(db, design_id, fresh=True)
    state = ValidationState(design.validation_state)
    if state == ValidationState.PENDING:
        return
    await listing_store.apply_design_decision(
        db,
        listing_id=listing_id,
        state=state,
        actor_id=design.validated_by,
        reason=design.rejection_reason,
    )


async def submit_listing(
    db: AsyncSession,
    *,
    vendor_id: str,
    base_product_id: str,
    artwork: bytes,
    post_decision_policy: PostDecisionPolicy | str,
    artwork_store: LocalArtworkStore | None = None,
) -> ListingResult:
    """
    Create a listing wired to the design for its artwork.

    Identical artwork from any vendor resolves to the same design. Listing
    creation, the design link and the early decision are one unit: on any
    failure none of them remain. The caller owns the commit.
    """
    policy = parse_policy(post_decision_policy)
    if policy is None:
        raise InvalidPolicy(
            f"Unknown post-decision policy: {post_decision_policy!r}",
            details=[{"allowed": [p.value for p in PostDecisionPolicy]}],
        )
    if not artwork:
        raise ArtworkUnreadable("Artwork is empty")

    content_hash = compute_content_hash(artwork)
    image_url = artwork_store.put_artwork(content_hash=content_hash, data=artwork) if artwork_store else None

    design, created = await design_store.create_if_absent(
        db, content_hash=content_hash, owner_id=vendor_id, image_url=image_url
    )

    async with db.begin_nested():
        listing = await listing_store.create_listing(
            db,
            vendor_id=vendor_id,
            base_product_id=base_product_id,
            design_id=design.id,
            post_decision_policy=policy,
            artwork_uri=design.image_url or image_url,
        )
        await link_store.ensure_link(db, design_id=design.id, listing_id=listing.id)
        # read the design again after linking: a decision committed meanwhile
        # may have listed links before ours existed
        await apply_known_decision(db, listing_id=listing.id, design_id=design.id)

    listing = await listing_store.get_listing(db, listing.id, fresh=True)
    design = await design_store.get_design(db, design.id, fresh=True)

    log.info(
        "intake: listing %s vendor=%s design=%s deduplicated=%s status=%s",
        listing.id, vendor_id, design.id, not created, listing.status,
    )
    return ListingResult(listing=listing, design=design, deduplicated=not created)

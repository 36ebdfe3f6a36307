from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DesignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_hash: str
    owner_id: str
    validation_state: str
    validated_at: datetime | None
    validated_by: str | None
    rejection_reason: str | None
    image_url: str | None


class DesignDecisionIn(BaseModel):
    decision: Literal["VALIDATE", "REJECT"]
    reason: str | None = Field(default=None, max_length=2000)


class ListingFailureOut(BaseModel):
    listing_id: str
    error: str


class CascadeReportOut(BaseModel):
    validated_design: DesignOut
    published_count: int
    draft_count: int
    rejected_count: int
    skipped_count: int
    failures: list[ListingFailureOut]


class PendingDesignOut(BaseModel):
    design: DesignOut
    linked_listings: int
    auto_publish_count: int
    to_draft_count: int


class PendingDesignsPage(BaseModel):
    items: list[PendingDesignOut]
    total: int
    limit: int
    offset: int
    has_more: bool


class AuditEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: str
    actor_id: str | None
    detail: dict
    created_at: datetime


class DesignDetailOut(BaseModel):
    design: DesignOut
    listing_ids: list[str]
    history: list[AuditEntryOut] = Field(default_factory=list)


class BackfillOut(BaseModel):
    scanned: int
    designs_created: int
    designs_reused: int
    linked: int
    relinked: int
    errors: list[dict]


class LinkStatsOut(BaseModel):
    total_links: int
    unique_designs: int
    unique_listings: int
    listings_with_design_id: int
    listings_with_artwork_only: int


class LinkCleanupOut(BaseModel):
    deleted: int

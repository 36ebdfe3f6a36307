from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from designhub.core.ids import gen_id
from designhub.models.base import Base, AuditMixin
from designhub.services.listing_state import ListingStatus, PostDecisionPolicy


class Listing(AuditMixin, Base):
    __tablename__ = "listings"
    __table_args__ = (
        Index("ix_listings_vendor", "vendor_id"),
        Index("ix_listings_design_status", "design_id", "status"),
        CheckConstraint("status IN ('DRAFT', 'PENDING', 'PUBLISHED', 'REJECTED')", name="ck_listings_status"),
        CheckConstraint("post_decision_policy IN ('AUTO_PUBLISH', 'TO_DRAFT')", name="ck_listings_policy"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lst"))

    vendor_id: Mapped[str] = mapped_column(String(120), nullable=False)
    base_product_id: Mapped[str] = mapped_column(String(120), nullable=False)

    # null only for legacy rows awaiting backfill; immutable once set
    design_id: Mapped[str | None] = mapped_column(String, ForeignKey("designs.id"), nullable=True)

    # "DRAFT" | "PENDING" | "PUBLISHED" | "REJECTED"
    status: Mapped[str] = mapped_column(String(30), nullable=False, default=ListingStatus.PENDING.value)
    is_validated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # "AUTO_PUBLISH" | "TO_DRAFT", chosen at submission, immutable
    post_decision_policy: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PostDecisionPolicy.AUTO_PUBLISH.value
    )

    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    validated_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # where the raw artwork lives; the backfill hashes from here
    artwork_uri: Mapped[str | None] = mapped_column(String(500), nullable=True)

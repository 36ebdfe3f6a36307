from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from designhub.models.base import Base


class DesignProductLink(Base):
    """
    Pure association between a design and a listing that uses it.

    The composite primary key is the uniqueness guarantee: at most one link per
    (design_id, listing_id). Rows are never updated and go away with the listing.
    """
    __tablename__ = "design_product_links"
    __table_args__ = (
        Index("ix_design_product_links_listing", "listing_id"),
    )

    design_id: Mapped[str] = mapped_column(String, ForeignKey("designs.id"), primary_key=True)
    listing_id: Mapped[str] = mapped_column(String, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

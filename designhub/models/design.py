from datetime import datetime

from sqlalchemy import CheckConstraint, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from designhub.core.ids import gen_id
from designhub.models.base import Base, AuditMixin
from designhub.services.listing_state import ValidationState


class Design(AuditMixin, Base):
    __tablename__ = "designs"
    __table_args__ = (
        # one canonical design per artwork content, across all vendors
        UniqueConstraint("content_hash", name="uq_designs_content_hash"),
        Index("ix_designs_validation_state", "validation_state", "created_at"),
        CheckConstraint("validation_state IN ('PENDING', 'VALIDATED', 'REJECTED')", name="ck_designs_validation_state"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("dsg"))

    # "sha256:<hex>" over the raw artwork bytes, immutable
    content_hash: Mapped[str] = mapped_column(String(80), nullable=False)

    # first submitter; informational only
    owner_id: Mapped[str] = mapped_column(String(120), nullable=False)

    # "PENDING" | "VALIDATED" | "REJECTED"
    validation_state: Mapped[str] = mapped_column(String(20), nullable=False, default=ValidationState.PENDING.value)
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    validated_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # durable URI handed back by the artwork store
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

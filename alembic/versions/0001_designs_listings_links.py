from alembic import op
import sqlalchemy as sa

revision = "0001_designs_listings_links"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "designs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("content_hash", sa.String(length=80), nullable=False),
        sa.Column("owner_id", sa.String(length=120), nullable=False),

        sa.Column("validation_state", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validated_by", sa.String(length=120), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),

        sa.Column("image_url", sa.String(length=500), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),

        sa.UniqueConstraint("content_hash", name="uq_designs_content_hash"),
        sa.CheckConstraint("validation_state IN ('PENDING', 'VALIDATED', 'REJECTED')", name="ck_designs_validation_state"),
    )
    op.create_index("ix_designs_validation_state", "designs", ["validation_state", "created_at"])

    op.create_table(
        "listings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("vendor_id", sa.String(length=120), nullable=False),
        sa.Column("base_product_id", sa.String(length=120), nullable=False),
        sa.Column("design_id", sa.String(), sa.ForeignKey("designs.id"), nullable=True),

        sa.Column("status", sa.String(length=30), nullable=False, server_default="PENDING"),
        sa.Column("is_validated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("post_decision_policy", sa.String(length=20), nullable=False, server_default="AUTO_PUBLISH"),

        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validated_by", sa.String(length=120), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("artwork_uri", sa.String(length=500), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),

        sa.CheckConstraint("status IN ('DRAFT', 'PENDING', 'PUBLISHED', 'REJECTED')", name="ck_listings_status"),
        sa.CheckConstraint("post_decision_policy IN ('AUTO_PUBLISH', 'TO_DRAFT')", name="ck_listings_policy"),
    )
    op.create_index("ix_listings_vendor", "listings", ["vendor_id"])
    op.create_index("ix_listings_design_status", "listings", ["design_id", "status"])

    op.create_table(
        "design_product_links",
        sa.Column("design_id", sa.String(), sa.ForeignKey("designs.id"), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_design_product_links_listing", "design_product_links", ["listing_id"])


def downgrade():
    op.drop_index("ix_design_product_links_listing", table_name="design_product_links")
    op.drop_table("design_product_links")
    op.drop_index("ix_listings_design_status", table_name="listings")
    op.drop_index("ix_listings_vendor", table_name="listings")
    op.drop_table("listings")
    op.drop_index("ix_designs_validation_state", table_name="designs")
    op.drop_table("designs")

"""Create sample coordination schema."""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from sampledesk.vocabulary import (
    AUDIT_ACTIONS,
    INVENTORY_LOCATIONS,
    INVENTORY_STATUSES,
    REQUEST_STATUSES,
    SAMPLE_COLORS,
    SAMPLE_SIZES,
    SAMPLE_STAGES,
    check_clause,
)


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: str | Sequence[str] | None = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "production_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_urls", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "sample_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "production_item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("production_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stage", sa.String(), nullable=False, server_default="PROTOTYPE"),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("size", sa.String(), nullable=True),
        sa.Column("revision", sa.String(length=10), nullable=False, server_default="A"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("image_urls", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(check_clause("stage", SAMPLE_STAGES), name="ck_sample_items_stage"),
        sa.CheckConstraint(check_clause("color", SAMPLE_COLORS, nullable=True), name="ck_sample_items_color"),
        sa.CheckConstraint(check_clause("size", SAMPLE_SIZES, nullable=True), name="ck_sample_items_size"),
    )
    op.create_index(
        "uq_sample_items_variant",
        "sample_items",
        [
            "production_item_id",
            "stage",
            sa.text("coalesce(color, '')"),
            sa.text("coalesce(size, '')"),
            "revision",
        ],
        unique=True,
    )

    op.create_table(
        "sample_inventory",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "sample_item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sample_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="AVAILABLE"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(check_clause("status", INVENTORY_STATUSES), name="ck_sample_inventory_status"),
        sa.CheckConstraint(
            check_clause("location", INVENTORY_LOCATIONS, nullable=True),
            name="ck_sample_inventory_location",
        ),
    )
    op.create_index("ix_sample_inventory_sample_item_id", "sample_inventory", ["sample_item_id"])

    op.create_table(
        "teams",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("shipping_address", sa.String(length=500), nullable=True),
        sa.Column("contact_email", sa.String(), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "sample_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "sample_item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sample_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "team_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("teams.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(), nullable=False, server_default="REQUESTED"),
        sa.Column("shipping_method", sa.String(length=255), nullable=True),
        sa.Column("shipping_address", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("handed_off_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("returned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity >= 1", name="ck_sample_requests_quantity_positive"),
        sa.CheckConstraint(check_clause("status", REQUEST_STATUSES), name="ck_sample_requests_status"),
    )
    op.create_index("ix_sample_requests_sample_item_id", "sample_requests", ["sample_item_id"])
    op.create_index("ix_sample_requests_team_id", "sample_requests", ["team_id"])

    op.create_table(
        "comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.String(length=2000), nullable=False),
        sa.Column("author_id", sa.String(), nullable=False),
        sa.Column(
            "parent_comment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("comments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "production_item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("production_items.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "sample_item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sample_items.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "request_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sample_requests.id", ondelete="CASCADE"),
            nullable=True,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(CASE WHEN production_item_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN sample_item_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN request_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_comments_single_attachment",
        ),
    )
    op.create_index("ix_comments_parent_comment_id", "comments", ["parent_comment_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(check_clause("action", AUDIT_ACTIONS), name="ck_audit_events_action"),
    )
    op.create_index("ix_audit_events_entity", "audit_events", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_entity", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_comments_parent_comment_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_sample_requests_team_id", table_name="sample_requests")
    op.drop_index("ix_sample_requests_sample_item_id", table_name="sample_requests")
    op.drop_table("sample_requests")
    op.drop_table("teams")
    op.drop_index("ix_sample_inventory_sample_item_id", table_name="sample_inventory")
    op.drop_table("sample_inventory")
    op.drop_index("uq_sample_items_variant", table_name="sample_items")
    op.drop_table("sample_items")
    op.drop_table("production_items")

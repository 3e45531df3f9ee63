import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base
from .vocabulary import (
    AUDIT_ACTIONS,
    INVENTORY_LOCATIONS,
    INVENTORY_STATUSES,
    REQUEST_STATUSES,
    SAMPLE_COLORS,
    SAMPLE_SIZES,
    SAMPLE_STAGES,
    check_clause,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductionItem(Base):
    __tablename__ = "production_items"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    image_urls = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    sample_items = relationship(
        "SampleItem",
        back_populates="production_item",
        cascade="all, delete-orphan",
        order_by="SampleItem.created_at.desc()",
    )
    comments = relationship(
        "Comment",
        back_populates="production_item",
        cascade="all, delete-orphan",
        foreign_keys="Comment.production_item_id",
    )


class SampleItem(Base):
    __tablename__ = "sample_items"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    production_item_id = Column(
        UUID(as_uuid=True),
        ForeignKey("production_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    stage = Column(String, nullable=False, default="PROTOTYPE")
    color = Column(String, nullable=True)
    size = Column(String, nullable=True)
    revision = Column(String(10), nullable=False, default="A")
    notes = Column(Text)
    image_urls = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        sa.CheckConstraint(check_clause("stage", SAMPLE_STAGES), name="ck_sample_items_stage"),
        sa.CheckConstraint(
            check_clause("color", SAMPLE_COLORS, nullable=True), name="ck_sample_items_color"
        ),
        sa.CheckConstraint(
            check_clause("size", SAMPLE_SIZES, nullable=True), name="ck_sample_items_size"
        ),
    )

    production_item = relationship("ProductionItem", back_populates="sample_items")
    units = relationship(
        "SampleInventory",
        back_populates="sample_item",
        cascade="all, delete-orphan",
        order_by="SampleInventory.created_at",
    )
    requests = relationship(
        "SampleRequest",
        back_populates="sample_item",
        cascade="all, delete-orphan",
    )
    comments = relationship(
        "Comment",
        back_populates="sample_item",
        cascade="all, delete-orphan",
        foreign_keys="Comment.sample_item_id",
    )


# null color/size take part in the variant key as a distinct value
sa.Index(
    "uq_sample_items_variant",
    SampleItem.production_item_id,
    SampleItem.stage,
    sa.func.coalesce(SampleItem.color, ""),
    sa.func.coalesce(SampleItem.size, ""),
    SampleItem.revision,
    unique=True,
)


class SampleInventory(Base):
    __tablename__ = "sample_inventory"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sample_item_id = Column(
        UUID(as_uuid=True),
        ForeignKey("sample_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location = Column(String, nullable=True)
    status = Column(String, nullable=False, default="AVAILABLE")
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        sa.CheckConstraint(
            check_clause("status", INVENTORY_STATUSES), name="ck_sample_inventory_status"
        ),
        sa.CheckConstraint(
            check_clause("location", INVENTORY_LOCATIONS, nullable=True),
            name="ck_sample_inventory_location",
        ),
    )

    sample_item = relationship("SampleItem", back_populates="units")


class Team(Base):
    __tablename__ = "teams"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    shipping_address = Column(String(500))
    contact_email = Column(String)
    contact_phone = Column(String(50))
    is_internal = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    requests = relationship("SampleRequest", back_populates="team")


class SampleRequest(Base):
    __tablename__ = "sample_requests"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sample_item_id = Column(
        UUID(as_uuid=True),
        ForeignKey("sample_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_id = Column(
        UUID(as_uuid=True),
        ForeignKey("teams.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, default="REQUESTED")
    shipping_method = Column(String(255))
    shipping_address = Column(String(500))
    notes = Column(Text)
    requested_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    approved_at = Column(DateTime(timezone=True))
    shipped_at = Column(DateTime(timezone=True))
    handed_off_at = Column(DateTime(timezone=True))
    returned_at = Column(DateTime(timezone=True))
    closed_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        sa.CheckConstraint("quantity >= 1", name="ck_sample_requests_quantity_positive"),
        sa.CheckConstraint(
            check_clause("status", REQUEST_STATUSES), name="ck_sample_requests_status"
        ),
    )

    sample_item = relationship("SampleItem", back_populates="requests")
    team = relationship("Team", back_populates="requests")
    comments = relationship(
        "Comment",
        back_populates="request",
        cascade="all, delete-orphan",
        foreign_keys="Comment.request_id",
    )


class Comment(Base):
    __tablename__ = "comments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    content = Column(String(2000), nullable=False)
    author_id = Column(String, nullable=False)
    parent_comment_id = Column(
        UUID(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    production_item_id = Column(
        UUID(as_uuid=True), ForeignKey("production_items.id", ondelete="CASCADE"), nullable=True
    )
    sample_item_id = Column(
        UUID(as_uuid=True), ForeignKey("sample_items.id", ondelete="CASCADE"), nullable=True
    )
    request_id = Column(
        UUID(as_uuid=True), ForeignKey("sample_requests.id", ondelete="CASCADE"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        sa.CheckConstraint(
            "(CASE WHEN production_item_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN sample_item_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN request_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_comments_single_attachment",
        ),
    )

    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship(
        "Comment",
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    production_item = relationship(
        "ProductionItem", back_populates="comments", foreign_keys=[production_item_id]
    )
    sample_item = relationship("SampleItem", back_populates="comments", foreign_keys=[sample_item_id])
    request = relationship("SampleRequest", back_populates="comments", foreign_keys=[request_id])


class AuditEvent(Base):
    __tablename__ = "audit_events"
    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=False)
    action = Column(String, nullable=False)
    user_id = Column(String, nullable=False)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        sa.Index("ix_audit_events_entity", "entity_type", "entity_id"),
        sa.CheckConstraint(check_clause("action", AUDIT_ACTIONS), name="ck_audit_events_action"),
    )

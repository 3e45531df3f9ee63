"""Production item and sample variation management."""

from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .. import audit, models, schemas
from ..auth import ActorContext
from ..errors import ConflictError, NotFoundError, ReferentialIntegrityError
from ..vocabulary import INVENTORY_LOCATIONS, SAMPLE_COLORS, SAMPLE_SIZES, SAMPLE_STAGES, sort_position
from . import availability

# purpose: create and maintain production items and their unique sample variations
# status: active
# depends_on: sampledesk.models.SampleItem (uq_sample_items_variant index)

_logger = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "A record with these values already exists."


def describe_conflict(
    db: Session,
    *,
    production_item_id: UUID,
    stage: str,
    color: str | None,
    size: str | None,
    revision: str,
) -> str:
    """Name the stored variation that a rejected write collided with.

    The unique index does not report the conflicting row, so it is read back
    here after the violation.
    """

    query = (
        db.query(models.SampleItem)
        .options(selectinload(models.SampleItem.production_item))
        .filter(
            models.SampleItem.production_item_id == production_item_id,
            models.SampleItem.stage == stage,
            models.SampleItem.revision == revision,
        )
    )
    query = query.filter(
        models.SampleItem.color.is_(None) if color is None else models.SampleItem.color == color
    )
    query = query.filter(
        models.SampleItem.size.is_(None) if size is None else models.SampleItem.size == size
    )
    existing = query.first()
    if existing is None:
        return GENERIC_CONFLICT_MESSAGE
    fields = [
        f"Product: {existing.production_item.name}",
        f"Stage: {existing.stage}",
        f"Color: {existing.color}" if existing.color else None,
        f"Size: {existing.size}" if existing.size else None,
        f"Revision: {existing.revision}",
    ]
    return "A sample item with these values already exists: " + ", ".join(
        field for field in fields if field
    )


def _flush_variant(db: Session, item: models.SampleItem) -> None:
    key = {
        "production_item_id": item.production_item_id,
        "stage": item.stage,
        "color": item.color,
        "size": item.size,
        "revision": item.revision,
    }
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        message = describe_conflict(db, **key)
        _logger.warning("Rejected duplicate sample variation %s", key)
        raise ConflictError(message) from exc


def get_production_item(db: Session, production_item_id: UUID) -> models.ProductionItem:
    item = (
        db.query(models.ProductionItem)
        .options(
            selectinload(models.ProductionItem.sample_items).selectinload(models.SampleItem.units),
            selectinload(models.ProductionItem.sample_items).selectinload(models.SampleItem.requests),
            selectinload(models.ProductionItem.sample_items).selectinload(models.SampleItem.comments),
        )
        .filter(models.ProductionItem.id == production_item_id)
        .first()
    )
    if item is None:
        raise NotFoundError(f"Production item {production_item_id} not found")
    return item


def summarize_sample(item: models.SampleItem) -> schemas.SampleItemSummary:
    base = schemas.SampleItemOut.model_validate(item).model_dump()
    return schemas.SampleItemSummary(
        **base,
        unit_count=len(item.units),
        available_count=availability.available_count(item.units),
        request_count=len(item.requests),
        comment_count=len(item.comments),
    )


def production_item_detail(db: Session, production_item_id: UUID) -> schemas.ProductionItemDetail:
    item = get_production_item(db, production_item_id)
    samples = sorted(
        item.sample_items,
        key=lambda s: (sort_position(SAMPLE_STAGES, s.stage), -(s.created_at.timestamp() if s.created_at else 0)),
    )
    base = schemas.ProductionItemOut.model_validate(item).model_dump()
    return schemas.ProductionItemDetail(
        **base,
        sample_items=[summarize_sample(sample) for sample in samples],
    )


def list_production_items(
    db: Session,
    *,
    stage: str | None = None,
    color: str | None = None,
    size: str | None = None,
    search: str | None = None,
) -> list[schemas.ProductionItemListing]:
    """List production items that have at least one variation matching the filters."""

    query = db.query(models.ProductionItem).options(
        selectinload(models.ProductionItem.sample_items).selectinload(models.SampleItem.units),
        selectinload(models.ProductionItem.sample_items).selectinload(models.SampleItem.requests),
        selectinload(models.ProductionItem.sample_items).selectinload(models.SampleItem.comments),
    )
    variant_filters = []
    if stage:
        variant_filters.append(models.SampleItem.stage == stage)
    if color:
        variant_filters.append(models.SampleItem.color == color)
    if size:
        variant_filters.append(models.SampleItem.size == size)
    if variant_filters:
        query = query.filter(models.ProductionItem.sample_items.any(sa.and_(*variant_filters)))
    if search:
        query = query.filter(models.ProductionItem.name.ilike(f"%{search}%"))
    items = query.order_by(models.ProductionItem.created_at.desc()).all()
    listings = []
    for item in items:
        latest = item.sample_items[0] if item.sample_items else None
        base = schemas.ProductionItemOut.model_validate(item).model_dump()
        listings.append(
            schemas.ProductionItemListing(
                **base,
                latest_sample=summarize_sample(latest) if latest else None,
            )
        )
    return listings


def create_production_item(
    db: Session,
    payload: schemas.ProductionItemCreate,
    *,
    actor: ActorContext,
) -> models.ProductionItem:
    item = models.ProductionItem(
        name=payload.name,
        description=payload.description,
        image_urls=list(payload.image_urls),
    )
    db.add(item)
    db.flush()
    audit.record_event(db, actor, "CREATED", "ProductionItem", item.id, {"name": item.name})
    return item


def update_production_item(
    db: Session,
    production_item_id: UUID,
    payload: schemas.ProductionItemUpdate,
    *,
    actor: ActorContext,
) -> models.ProductionItem:
    item = db.get(models.ProductionItem, production_item_id)
    if item is None:
        raise NotFoundError(f"Production item {production_item_id} not found")
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        changes.pop("name")
    if "image_urls" in changes and changes["image_urls"] is None:
        changes["image_urls"] = []
    for key, value in changes.items():
        setattr(item, key, value)
    db.flush()
    audit.record_event(db, actor, "UPDATED", "ProductionItem", item.id, changes)
    return item


def delete_production_item(
    db: Session,
    production_item_id: UUID,
    *,
    actor: ActorContext,
) -> None:
    """Delete a production item together with every variation hanging off it."""

    item = db.get(models.ProductionItem, production_item_id)
    if item is None:
        raise NotFoundError(f"Production item {production_item_id} not found")
    sample_ids = [str(sample.id) for sample in item.sample_items]
    name = item.name
    db.delete(item)
    db.flush()
    audit.record_event(
        db,
        actor,
        "DELETED",
        "ProductionItem",
        production_item_id,
        {"name": name, "sample_item_ids": sample_ids},
    )
    _logger.info("Deleted production item %s with %d sample items", production_item_id, len(sample_ids))


def get_sample_item(db: Session, sample_item_id: UUID) -> models.SampleItem:
    item = (
        db.query(models.SampleItem)
        .options(
            selectinload(models.SampleItem.production_item),
            selectinload(models.SampleItem.units),
            selectinload(models.SampleItem.requests),
        )
        .filter(models.SampleItem.id == sample_item_id)
        .first()
    )
    if item is None:
        raise NotFoundError(f"Sample item {sample_item_id} not found")
    return item


def sample_item_detail(db: Session, sample_item_id: UUID) -> schemas.SampleItemDetail:
    item = get_sample_item(db, sample_item_id)
    base = schemas.SampleItemOut.model_validate(item).model_dump()
    requests = sorted(item.requests, key=lambda r: r.requested_at, reverse=True)
    return schemas.SampleItemDetail(
        **base,
        production_item=schemas.ProductionItemOut.model_validate(item.production_item),
        availability=availability.summarize(item.units),
        requests=[schemas.SampleRequestOut.model_validate(r) for r in requests],
    )


def create_sample_item(
    db: Session,
    payload: schemas.SampleItemCreate,
    *,
    actor: ActorContext,
) -> models.SampleItem:
    if db.get(models.ProductionItem, payload.production_item_id) is None:
        raise ReferentialIntegrityError(
            f"Production item {payload.production_item_id} does not exist"
        )
    item = models.SampleItem(
        production_item_id=payload.production_item_id,
        stage=payload.stage,
        color=payload.color,
        size=payload.size,
        revision=payload.revision,
        notes=payload.notes,
        image_urls=list(payload.image_urls),
    )
    db.add(item)
    _flush_variant(db, item)
    audit.record_event(
        db,
        actor,
        "CREATED",
        "SampleItem",
        item.id,
        {"stage": item.stage, "color": item.color, "size": item.size, "revision": item.revision},
    )
    return item


def update_sample_item(
    db: Session,
    sample_item_id: UUID,
    payload: schemas.SampleItemUpdate,
    *,
    actor: ActorContext,
) -> models.SampleItem:
    item = db.get(models.SampleItem, sample_item_id)
    if item is None:
        raise NotFoundError(f"Sample item {sample_item_id} not found")
    changes = payload.model_dump(exclude_unset=True)
    for field in ("stage", "revision"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    for key, value in changes.items():
        setattr(item, key, value)
    _flush_variant(db, item)
    audit.record_event(db, actor, "UPDATED", "SampleItem", item.id, changes)
    return item


def delete_sample_item(db: Session, sample_item_id: UUID, *, actor: ActorContext) -> None:
    item = db.get(models.SampleItem, sample_item_id)
    if item is None:
        raise NotFoundError(f"Sample item {sample_item_id} not found")
    metadata = {
        "production_item_id": item.production_item_id,
        "stage": item.stage,
        "color": item.color,
        "size": item.size,
        "revision": item.revision,
    }
    db.delete(item)
    db.flush()
    audit.record_event(db, actor, "DELETED", "SampleItem", sample_item_id, metadata)


def create_sample_items_with_inventory(
    db: Session,
    production_item_id: UUID,
    variations: Sequence[schemas.SampleVariation],
    *,
    actor: ActorContext,
) -> list[models.SampleItem]:
    """Create variations one at a time, each with its initial AVAILABLE units.

    Every variation is committed on its own. The first duplicate stops the
    batch: earlier variations stay committed and later ones are not attempted.
    """

    if db.get(models.ProductionItem, production_item_id) is None:
        raise ReferentialIntegrityError(f"Production item {production_item_id} does not exist")
    created: list[models.SampleItem] = []
    for index, variation in enumerate(variations, start=1):
        item = models.SampleItem(
            production_item_id=production_item_id,
            stage=variation.stage,
            color=variation.color,
            size=variation.size,
            revision=variation.revision,
            notes=variation.notes,
            image_urls=[],
        )
        db.add(item)
        try:
            _flush_variant(db, item)
        except ConflictError as exc:
            _logger.warning(
                "Batch for production item %s stopped at variation %d of %d",
                production_item_id,
                index,
                len(variations),
            )
            raise ConflictError(f"Variation {index}: {exc}") from exc
        db.add_all(
            [
                models.SampleInventory(
                    sample_item_id=item.id,
                    location=variation.location,
                    status="AVAILABLE",
                )
                for _ in range(variation.initial_quantity)
            ]
        )
        db.flush()
        audit.record_event(
            db,
            actor,
            "CREATED",
            "SampleItem",
            item.id,
            {
                "stage": item.stage,
                "color": item.color,
                "size": item.size,
                "revision": item.revision,
                "initial_quantity": variation.initial_quantity,
                "location": variation.location,
            },
        )
        db.commit()
        created.append(item)
    _logger.info("Created %d sample variations for production item %s", len(created), production_item_id)
    return created


def distinct_variant_values(db: Session) -> schemas.VariantFilterValues:
    colors = [
        row[0]
        for row in db.query(models.SampleItem.color)
        .filter(models.SampleItem.color.isnot(None))
        .distinct()
        .all()
    ]
    sizes = [
        row[0]
        for row in db.query(models.SampleItem.size)
        .filter(models.SampleItem.size.isnot(None))
        .distinct()
        .all()
    ]
    return schemas.VariantFilterValues(
        stages=list(SAMPLE_STAGES),
        colors=sorted(colors, key=lambda c: sort_position(SAMPLE_COLORS, c)),
        sizes=sorted(sizes, key=lambda s: sort_position(SAMPLE_SIZES, s)),
        locations=list(INVENTORY_LOCATIONS),
    )

"""Physical sample unit bookkeeping."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from .. import audit, models, schemas
from ..auth import ActorContext
from ..errors import NotFoundError, ReferentialIntegrityError
from . import availability

# purpose: add, move and retire individual sample units; availability is always recounted from rows
# status: active

_logger = logging.getLogger(__name__)


def create_inventory_units(
    db: Session,
    payload: schemas.InventoryUnitCreate,
    *,
    actor: ActorContext,
) -> list[models.SampleInventory]:
    """Create ``payload.count`` units of one sample item, one row per physical unit."""

    if db.get(models.SampleItem, payload.sample_item_id) is None:
        raise ReferentialIntegrityError(f"Sample item {payload.sample_item_id} does not exist")
    units = [
        models.SampleInventory(
            sample_item_id=payload.sample_item_id,
            location=payload.location,
            status=payload.status,
            notes=payload.notes,
        )
        for _ in range(payload.count)
    ]
    db.add_all(units)
    db.flush()
    for unit in units:
        audit.record_event(
            db,
            actor,
            "CREATED",
            "SampleInventory",
            unit.id,
            {"sample_item_id": unit.sample_item_id, "location": unit.location, "status": unit.status},
        )
    return units


def create_inventory_unit(
    db: Session,
    sample_item_id: UUID,
    *,
    actor: ActorContext,
    location: str | None = None,
    status: str = "AVAILABLE",
    notes: str | None = None,
) -> models.SampleInventory:
    payload = schemas.InventoryUnitCreate(
        sample_item_id=sample_item_id,
        location=location,
        status=status,
        notes=notes,
        count=1,
    )
    return create_inventory_units(db, payload, actor=actor)[0]


def get_inventory_unit(db: Session, unit_id: UUID) -> models.SampleInventory:
    unit = db.get(models.SampleInventory, unit_id)
    if unit is None:
        raise NotFoundError(f"Inventory unit {unit_id} not found")
    return unit


def update_inventory_unit(
    db: Session,
    unit_id: UUID,
    payload: schemas.InventoryUnitUpdate,
    *,
    actor: ActorContext,
) -> models.SampleInventory:
    unit = get_inventory_unit(db, unit_id)
    changes = payload.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is None:
        changes.pop("status")
    previous = {key: getattr(unit, key) for key in changes}
    for key, value in changes.items():
        setattr(unit, key, value)
    db.flush()
    audit.record_event(
        db,
        actor,
        "UPDATED",
        "SampleInventory",
        unit.id,
        {"changes": changes, "previous": previous},
    )
    if previous.get("status") not in (None, unit.status):
        _logger.info("Inventory unit %s moved %s -> %s", unit.id, previous["status"], unit.status)
    return unit


def delete_inventory_unit(db: Session, unit_id: UUID, *, actor: ActorContext) -> None:
    unit = get_inventory_unit(db, unit_id)
    metadata = {"sample_item_id": unit.sample_item_id, "location": unit.location, "status": unit.status}
    db.delete(unit)
    db.flush()
    audit.record_event(db, actor, "DELETED", "SampleInventory", unit_id, metadata)


def availability_for_sample(db: Session, sample_item_id: UUID) -> schemas.AvailabilityOut:
    if db.get(models.SampleItem, sample_item_id) is None:
        raise NotFoundError(f"Sample item {sample_item_id} not found")
    units = (
        db.query(models.SampleInventory)
        .options(selectinload(models.SampleInventory.sample_item))
        .filter(models.SampleInventory.sample_item_id == sample_item_id)
        .all()
    )
    return availability.summarize(units)


def availability_for_production_item(db: Session, production_item_id: UUID) -> schemas.AvailabilityOut:
    if db.get(models.ProductionItem, production_item_id) is None:
        raise NotFoundError(f"Production item {production_item_id} not found")
    units = (
        db.query(models.SampleInventory)
        .join(models.SampleItem)
        .options(selectinload(models.SampleInventory.sample_item))
        .filter(models.SampleItem.production_item_id == production_item_id)
        .all()
    )
    return availability.summarize(units)

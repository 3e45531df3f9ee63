"""Production item, sample variation and inventory unit routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import ActorContext, get_current_actor
from ..database import get_db
from ..errors import SampleDeskError
from ..services import catalog, stock
from .errors import to_http

# purpose: expose the sample catalog, unit bookkeeping and availability views
# status: active
# depends_on: sampledesk.services.catalog, sampledesk.services.stock

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.post(
    "/production-items",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.ProductionItemOut,
)
def create_production_item(
    payload: schemas.ProductionItemCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    item = catalog.create_production_item(db, payload, actor=actor)
    db.commit()
    db.refresh(item)
    return item


@router.get("/production-items", response_model=list[schemas.ProductionItemListing])
def list_production_items(
    stage: str | None = None,
    color: str | None = None,
    size: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return catalog.list_production_items(db, stage=stage, color=color, size=size, search=search)


@router.get("/production-items/{item_id}", response_model=schemas.ProductionItemDetail)
def get_production_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return catalog.production_item_detail(db, item_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.patch("/production-items/{item_id}", response_model=schemas.ProductionItemOut)
def update_production_item(
    item_id: UUID,
    payload: schemas.ProductionItemUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        item = catalog.update_production_item(db, item_id, payload, actor=actor)
        db.commit()
        db.refresh(item)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return item


@router.delete("/production-items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_production_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        catalog.delete_production_item(db, item_id, actor=actor)
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/production-items/{item_id}/availability",
    response_model=schemas.AvailabilityOut,
)
def production_item_availability(
    item_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return stock.availability_for_production_item(db, item_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.post(
    "/samples",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.SampleItemOut,
)
def create_sample_item(
    payload: schemas.SampleItemCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        item = catalog.create_sample_item(db, payload, actor=actor)
        db.commit()
        db.refresh(item)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return item


@router.post(
    "/samples/batch",
    status_code=status.HTTP_201_CREATED,
    response_model=list[schemas.SampleItemWithUnits],
)
def create_sample_batch(
    payload: schemas.SampleBatchCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        items = catalog.create_sample_items_with_inventory(
            db,
            payload.production_item_id,
            payload.variations,
            actor=actor,
        )
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return items


@router.get("/samples/{sample_id}", response_model=schemas.SampleItemDetail)
def get_sample_item(
    sample_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return catalog.sample_item_detail(db, sample_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.patch("/samples/{sample_id}", response_model=schemas.SampleItemOut)
def update_sample_item(
    sample_id: UUID,
    payload: schemas.SampleItemUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        item = catalog.update_sample_item(db, sample_id, payload, actor=actor)
        db.commit()
        db.refresh(item)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return item


@router.delete("/samples/{sample_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sample_item(
    sample_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        catalog.delete_sample_item(db, sample_id, actor=actor)
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/samples/{sample_id}/availability", response_model=schemas.AvailabilityOut)
def sample_availability(
    sample_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return stock.availability_for_sample(db, sample_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.get("/filters", response_model=schemas.VariantFilterValues)
def filter_values(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return catalog.distinct_variant_values(db)


@router.post(
    "/units",
    status_code=status.HTTP_201_CREATED,
    response_model=list[schemas.InventoryUnitOut],
)
def create_inventory_units(
    payload: schemas.InventoryUnitCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        if payload.count == 1:
            units = [
                stock.create_inventory_unit(
                    db,
                    payload.sample_item_id,
                    actor=actor,
                    location=payload.location,
                    status=payload.status,
                    notes=payload.notes,
                )
            ]
        else:
            units = stock.create_inventory_units(db, payload, actor=actor)
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return units


@router.patch("/units/{unit_id}", response_model=schemas.InventoryUnitOut)
def update_inventory_unit(
    unit_id: UUID,
    payload: schemas.InventoryUnitUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        unit = stock.update_inventory_unit(db, unit_id, payload, actor=actor)
        db.commit()
        db.refresh(unit)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return unit


@router.delete("/units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_unit(
    unit_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        stock.delete_inventory_unit(db, unit_id, actor=actor)
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

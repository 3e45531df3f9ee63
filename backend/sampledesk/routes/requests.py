"""Sample request routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import pubsub, schemas
from ..auth import ActorContext, get_current_actor
from ..database import get_db
from ..errors import SampleDeskError
from ..services import lifecycle, requests
from .errors import to_http

# purpose: create sample requests and drive them through the status lifecycle
# status: active
# depends_on: sampledesk.services.requests, sampledesk.pubsub

router = APIRouter(prefix="/api/requests", tags=["requests"])


async def _notify_team(change: requests.RequestChange) -> None:
    request = change.request
    if change.status_changed:
        await pubsub.publish_team_event(
            str(request.team_id),
            {
                "type": "request_status_changed",
                "id": str(request.id),
                "from": change.previous_status,
                "to": request.status,
                "updated_at": request.updated_at,
            },
        )
    if change.changed_fields:
        await pubsub.publish_team_event(
            str(request.team_id),
            {
                "type": "request_updated",
                "id": str(request.id),
                "fields": sorted(change.changed_fields),
            },
        )


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.SampleRequestOut,
)
async def create_request(
    payload: schemas.SampleRequestCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        request = requests.create_request(db, payload, actor=actor)
        db.commit()
        db.refresh(request)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    await pubsub.publish_team_event(
        str(request.team_id),
        {
            "type": "request_created",
            "id": str(request.id),
            "sample_item_id": str(request.sample_item_id),
            "quantity": request.quantity,
        },
    )
    return request


@router.get("/", response_model=list[schemas.SampleRequestOut])
def list_requests(
    status: str | None = None,
    team_id: UUID | None = None,
    sample_item_id: UUID | None = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return requests.list_requests(db, status=status, team_id=team_id, sample_item_id=sample_item_id)


@router.get("/stats", response_model=schemas.RequestStatsOut)
def request_stats(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return requests.request_stats(db)


@router.get("/{request_id}", response_model=schemas.SampleRequestDetail)
def get_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return requests.request_detail(db, request_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.get("/{request_id}/transitions", response_model=schemas.RequestTransitionsOut)
def request_transitions(
    request_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        request = requests.get_request(db, request_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc
    return schemas.RequestTransitionsOut(
        status=request.status,
        allowed=list(lifecycle.allowed_transitions(request.status)),
    )


@router.post("/{request_id}/status", response_model=schemas.SampleRequestDetail)
async def change_request_status(
    request_id: UUID,
    payload: schemas.RequestStatusChange,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        change = requests.change_status(
            db,
            request_id,
            payload.status,
            actor=actor,
            expected_status=payload.expected_status,
        )
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    await _notify_team(change)
    return requests.request_detail(db, request_id)


@router.patch("/{request_id}", response_model=schemas.SampleRequestDetail)
async def update_request(
    request_id: UUID,
    payload: schemas.SampleRequestUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"expected_status"})
    if changes.get("status", "") is None:
        changes.pop("status")
    try:
        change = requests.update_request(
            db,
            request_id,
            changes,
            actor=actor,
            expected_status=payload.expected_status,
        )
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    await _notify_team(change)
    return requests.request_detail(db, request_id)

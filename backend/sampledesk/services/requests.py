"""Sample request lifecycle orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import sqlalchemy as sa
from prometheus_client import Counter
from sqlalchemy.orm import Session, selectinload

from .. import audit, models, schemas
from ..auth import ActorContext
from ..errors import NotFoundError, ReferentialIntegrityError, StaleStatusError, ValidationError
from ..vocabulary import REQUEST_STATUSES
from . import lifecycle

# purpose: create sample requests and move them through the enforced status lifecycle
# status: active
# depends_on: sampledesk.services.lifecycle, sampledesk.audit
# outputs: SampleRequest rows, STATUS_CHANGED / UPDATED audit events

_logger = logging.getLogger(__name__)

REQUEST_TRANSITIONS = Counter(
    "sample_request_transitions_total",
    "Accepted sample request status transitions",
    ["from_status", "to_status"],
)

_EDITABLE_FIELDS = ("quantity", "shipping_method", "shipping_address", "notes")


@dataclass
class RequestChange:
    request: models.SampleRequest
    previous_status: str
    status_changed: bool = False
    changed_fields: dict[str, Any] = field(default_factory=dict)


def get_request(db: Session, request_id: UUID) -> models.SampleRequest:
    request = (
        db.query(models.SampleRequest)
        .options(
            selectinload(models.SampleRequest.sample_item),
            selectinload(models.SampleRequest.team),
        )
        .filter(models.SampleRequest.id == request_id)
        .first()
    )
    if request is None:
        raise NotFoundError(f"Request {request_id} not found")
    return request


def request_detail(db: Session, request_id: UUID) -> schemas.SampleRequestDetail:
    request = get_request(db, request_id)
    base = schemas.SampleRequestOut.model_validate(request).model_dump()
    return schemas.SampleRequestDetail(
        **base,
        sample_item=schemas.SampleItemOut.model_validate(request.sample_item),
        team=schemas.TeamOut.model_validate(request.team),
        allowed_transitions=list(lifecycle.allowed_transitions(request.status)),
    )


def list_requests(
    db: Session,
    *,
    status: str | None = None,
    team_id: UUID | None = None,
    sample_item_id: UUID | None = None,
) -> list[models.SampleRequest]:
    query = db.query(models.SampleRequest)
    if status:
        query = query.filter(models.SampleRequest.status == status)
    if team_id:
        query = query.filter(models.SampleRequest.team_id == team_id)
    if sample_item_id:
        query = query.filter(models.SampleRequest.sample_item_id == sample_item_id)
    return query.order_by(models.SampleRequest.requested_at.desc()).all()


def create_request(
    db: Session,
    payload: schemas.SampleRequestCreate,
    *,
    actor: ActorContext,
) -> models.SampleRequest:
    if payload.quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    if db.get(models.SampleItem, payload.sample_item_id) is None:
        raise ReferentialIntegrityError(f"Sample item {payload.sample_item_id} does not exist")
    if db.get(models.Team, payload.team_id) is None:
        raise ReferentialIntegrityError(f"Team {payload.team_id} does not exist")
    now = models.utcnow()
    request = models.SampleRequest(
        sample_item_id=payload.sample_item_id,
        team_id=payload.team_id,
        quantity=payload.quantity,
        status=lifecycle.INITIAL_STATUS,
        shipping_method=payload.shipping_method,
        shipping_address=payload.shipping_address,
        notes=payload.notes,
        requested_at=now,
        updated_at=now,
    )
    db.add(request)
    db.flush()
    audit.record_event(
        db,
        actor,
        "CREATED",
        "SampleRequest",
        request.id,
        {"status": request.status, "quantity": request.quantity, "team_id": request.team_id},
    )
    return request


def _apply_status(
    db: Session,
    request: models.SampleRequest,
    target: str,
    *,
    actor: ActorContext,
) -> None:
    current = request.status
    try:
        lifecycle.ensure_transition(current, target)
    except ValidationError:
        _logger.warning("Rejected request %s transition %s -> %s", request.id, current, target)
        raise
    now = models.utcnow()
    values = {"status": target, "updated_at": now}
    values.update(lifecycle.stamp_values(request, target, now))
    # compare-and-set on the status this call read
    updated = (
        db.query(models.SampleRequest)
        .filter(
            models.SampleRequest.id == request.id,
            models.SampleRequest.status == current,
        )
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        _logger.warning("Request %s changed status concurrently; expected %s", request.id, current)
        raise StaleStatusError(
            f"Request {request.id} is no longer {current}; reload and try again"
        )
    db.refresh(request)
    audit.record_event(
        db,
        actor,
        "STATUS_CHANGED",
        "SampleRequest",
        request.id,
        {"from": current, "to": target},
    )
    REQUEST_TRANSITIONS.labels(current, target).inc()
    _logger.info("Request %s moved %s -> %s", request.id, current, target)


def update_request(
    db: Session,
    request_id: UUID,
    changes: dict[str, Any],
    *,
    actor: ActorContext,
    expected_status: str | None = None,
) -> RequestChange:
    """Apply a status move and/or field edits to one request.

    Status moves follow the transition table and stamp their stage timestamp on
    first entry only. Re-submitting the current status changes nothing. Field
    edits never touch timestamps.
    """

    request = get_request(db, request_id)
    previous_status = request.status
    if expected_status is not None and expected_status != previous_status:
        raise StaleStatusError(
            f"Request {request_id} is {previous_status}, not {expected_status}; reload and try again"
        )
    unknown = set(changes) - {"status", *_EDITABLE_FIELDS}
    if unknown:
        raise ValidationError(f"Unsupported request fields: {', '.join(sorted(unknown))}")
    quantity = changes.get("quantity")
    if "quantity" in changes and (quantity is None or quantity < 1):
        raise ValidationError("Quantity must be at least 1")

    result = RequestChange(request=request, previous_status=previous_status)
    target = changes.get("status")
    if target is not None and target != previous_status:
        _apply_status(db, request, target, actor=actor)
        result.status_changed = True

    edits = {
        key: value
        for key, value in changes.items()
        if key in _EDITABLE_FIELDS and getattr(request, key) != value
    }
    if edits:
        for key, value in edits.items():
            setattr(request, key, value)
        request.updated_at = models.utcnow()
        db.flush()
        result.changed_fields = edits
        audit.record_event(db, actor, "UPDATED", "SampleRequest", request.id, edits)
    elif not result.status_changed:
        audit.record_event(db, actor, "UPDATED", "SampleRequest", request.id, dict(changes))
    return result


def change_status(
    db: Session,
    request_id: UUID,
    target: str,
    *,
    actor: ActorContext,
    expected_status: str | None = None,
) -> RequestChange:
    lifecycle.ensure_known_status(target)
    return update_request(
        db,
        request_id,
        {"status": target},
        actor=actor,
        expected_status=expected_status,
    )


def request_stats(db: Session) -> schemas.RequestStatsOut:
    rows = (
        db.query(models.SampleRequest.status, sa.func.count(models.SampleRequest.id))
        .group_by(models.SampleRequest.status)
        .all()
    )
    counts = {status: count for status, count in rows}
    by_status = {status: counts.get(status, 0) for status in REQUEST_STATUSES}
    return schemas.RequestStatsOut(total=sum(counts.values()), by_status=by_status)

from datetime import datetime
from typing import Any
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy import func
from . import models
from .auth import ActorContext

# purpose: append-only audit trail written in the same transaction as the mutation it describes
# status: active


def record_event(
    db: Session,
    actor: ActorContext,
    action: str,
    entity_type: str,
    entity_id: str | UUID,
    metadata: dict[str, Any] | None = None,
) -> models.AuditEvent:
    event = models.AuditEvent(
        user_id=actor.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=UUID(str(entity_id)),
        meta=_jsonable(metadata) if metadata is not None else None,
        created_at=models.utcnow(),
    )
    db.add(event)
    db.flush()
    return event


def events_for(db: Session, entity_type: str, entity_id: str | UUID) -> list[models.AuditEvent]:
    """Return every event recorded against one entity, newest first."""

    return (
        db.query(models.AuditEvent)
        .filter(
            models.AuditEvent.entity_type == entity_type,
            models.AuditEvent.entity_id == UUID(str(entity_id)),
        )
        .order_by(models.AuditEvent.created_at.desc(), models.AuditEvent.id.desc())
        .all()
    )


def generate_report(
    db: Session,
    start: datetime,
    end: datetime,
    user_id: str | None = None,
):
    query = db.query(models.AuditEvent).filter(
        models.AuditEvent.created_at >= start,
        models.AuditEvent.created_at <= end,
    )
    if user_id:
        query = query.filter(models.AuditEvent.user_id == user_id)
    rows = (
        query.with_entities(models.AuditEvent.action, func.count(models.AuditEvent.id))
        .group_by(models.AuditEvent.action)
        .all()
    )
    return [{"action": r[0], "count": r[1]} for r in rows]


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value

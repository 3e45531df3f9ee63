from uuid import UUID
from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from ..database import get_db
from ..auth import ActorContext, get_current_actor
from .. import schemas, audit

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/report", response_model=list[schemas.AuditReportItem])
async def audit_report(
    start: datetime,
    end: datetime,
    user_id: str | None = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return audit.generate_report(db, start, end, user_id)


@router.get("/{entity_type}/{entity_id}", response_model=list[schemas.AuditEventOut])
async def audit_trail(
    entity_type: str,
    entity_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return audit.events_for(db, entity_type, entity_id)

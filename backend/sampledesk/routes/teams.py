from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import ActorContext, get_current_actor
from ..database import get_db
from ..errors import SampleDeskError
from ..services import teams
from .errors import to_http

router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.TeamOut)
def create_team(
    payload: schemas.TeamCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    team = teams.create_team(db, payload, actor=actor)
    db.commit()
    db.refresh(team)
    return team


@router.get("/", response_model=list[schemas.TeamSummary])
def list_teams(
    is_internal: bool | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return teams.list_teams(db, is_internal=is_internal, search=search)


@router.get("/{team_id}", response_model=schemas.TeamDetail)
def get_team(
    team_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return teams.team_detail(db, team_id)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.patch("/{team_id}", response_model=schemas.TeamOut)
def update_team(
    team_id: UUID,
    payload: schemas.TeamUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        team = teams.update_team(db, team_id, payload, actor=actor)
        db.commit()
        db.refresh(team)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return team


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        teams.delete_team(db, team_id, actor=actor)
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

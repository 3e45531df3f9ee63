"""Requesting team management."""

from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import ActorContext
from ..errors import NotFoundError, ReferentialIntegrityError


def _request_count(db: Session, team_id: UUID) -> int:
    return (
        db.query(sa.func.count(models.SampleRequest.id))
        .filter(models.SampleRequest.team_id == team_id)
        .scalar()
        or 0
    )


def get_team(db: Session, team_id: UUID) -> models.Team:
    team = db.get(models.Team, team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found")
    return team


def team_detail(db: Session, team_id: UUID) -> schemas.TeamDetail:
    team = get_team(db, team_id)
    requests = (
        db.query(models.SampleRequest)
        .filter(models.SampleRequest.team_id == team_id)
        .order_by(models.SampleRequest.requested_at.desc())
        .all()
    )
    base = schemas.TeamOut.model_validate(team).model_dump()
    return schemas.TeamDetail(
        **base,
        request_count=len(requests),
        requests=[schemas.SampleRequestOut.model_validate(r) for r in requests],
    )


def list_teams(
    db: Session,
    *,
    is_internal: bool | None = None,
    search: str | None = None,
) -> list[schemas.TeamSummary]:
    counts = (
        db.query(models.SampleRequest.team_id, sa.func.count(models.SampleRequest.id).label("n"))
        .group_by(models.SampleRequest.team_id)
        .subquery()
    )
    query = db.query(models.Team, sa.func.coalesce(counts.c.n, 0)).outerjoin(
        counts, counts.c.team_id == models.Team.id
    )
    if is_internal is not None:
        query = query.filter(models.Team.is_internal.is_(is_internal))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            sa.or_(
                models.Team.name.ilike(pattern),
                models.Team.contact_email.ilike(pattern),
                models.Team.contact_phone.ilike(pattern),
            )
        )
    rows = query.order_by(models.Team.name.asc()).all()
    return [
        schemas.TeamSummary(**schemas.TeamOut.model_validate(team).model_dump(), request_count=count)
        for team, count in rows
    ]


def create_team(db: Session, payload: schemas.TeamCreate, *, actor: ActorContext) -> models.Team:
    team = models.Team(**payload.model_dump())
    db.add(team)
    db.flush()
    audit.record_event(
        db, actor, "CREATED", "Team", team.id, {"name": team.name, "is_internal": team.is_internal}
    )
    return team


def update_team(
    db: Session,
    team_id: UUID,
    payload: schemas.TeamUpdate,
    *,
    actor: ActorContext,
) -> models.Team:
    team = get_team(db, team_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        changes.pop("name")
    if "is_internal" in changes and changes["is_internal"] is None:
        changes.pop("is_internal")
    for key, value in changes.items():
        setattr(team, key, value)
    db.flush()
    audit.record_event(db, actor, "UPDATED", "Team", team.id, changes)
    return team


def delete_team(db: Session, team_id: UUID, *, actor: ActorContext) -> None:
    """Delete a team that has never requested a sample."""

    team = get_team(db, team_id)
    if _request_count(db, team_id) > 0:
        raise ReferentialIntegrityError("Cannot delete team with existing requests")
    name = team.name
    db.delete(team)
    db.flush()
    audit.record_event(db, actor, "DELETED", "Team", team_id, {"name": name})

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from ..database import get_db
from ..auth import ActorContext, get_current_actor
from ..errors import SampleDeskError
from ..services import comments
from .. import schemas
from .errors import to_http

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.CommentOut)
async def create_comment(
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        db_comment = comments.create_comment(db, comment, actor=actor)
        db.commit()
        db.refresh(db_comment)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return db_comment


@router.get("/", response_model=list[schemas.CommentNode])
async def list_comments(
    production_item_id: UUID | None = None,
    sample_item_id: UUID | None = None,
    request_id: UUID | None = None,
    depth: int | None = Query(default=None, ge=0, le=20),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return comments.fetch_thread(
            db,
            production_item_id=production_item_id,
            sample_item_id=sample_item_id,
            request_id=request_id,
            depth=depth,
        )
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.get("/{comment_id}/replies", response_model=list[schemas.CommentNode])
async def list_replies(
    comment_id: UUID,
    depth: int | None = Query(default=None, ge=1, le=20),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        return comments.fetch_replies(db, comment_id, depth=depth)
    except SampleDeskError as exc:
        raise to_http(exc) from exc


@router.patch("/{comment_id}", response_model=schemas.CommentOut)
async def update_comment(
    comment_id: UUID,
    update: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        comment = comments.update_comment(db, comment_id, update.content, actor=actor)
        db.commit()
        db.refresh(comment)
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return comment


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        removed = comments.delete_comment(db, comment_id, actor=actor)
        db.commit()
    except SampleDeskError as exc:
        db.rollback()
        raise to_http(exc) from exc
    return {"detail": "deleted", "removed": [str(r) for r in removed]}

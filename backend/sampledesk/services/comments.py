"""Discussion threads attached to production items, sample items and requests."""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import ActorContext
from ..errors import NotFoundError, ValidationError

# purpose: resolve comment attachments, build bounded reply trees, cascade deletes through replies
# status: active
# inputs: schemas.CommentTarget tagged union
# outputs: Comment rows and CommentNode trees

_logger = logging.getLogger(__name__)

DEFAULT_REPLY_DEPTH = int(os.getenv("COMMENT_REPLY_DEPTH", "3"))
MAX_CONTENT_LENGTH = 2000


@dataclass(frozen=True)
class Attachment:
    production_item_id: UUID | None = None
    sample_item_id: UUID | None = None
    request_id: UUID | None = None

    def as_filter(self):
        if self.production_item_id is not None:
            return models.Comment.production_item_id == self.production_item_id
        if self.sample_item_id is not None:
            return models.Comment.sample_item_id == self.sample_item_id
        return models.Comment.request_id == self.request_id

    def as_dict(self) -> dict[str, UUID | None]:
        return {
            "production_item_id": self.production_item_id,
            "sample_item_id": self.sample_item_id,
            "request_id": self.request_id,
        }


def _attachment_of(comment: models.Comment) -> Attachment:
    return Attachment(
        production_item_id=comment.production_item_id,
        sample_item_id=comment.sample_item_id,
        request_id=comment.request_id,
    )


def resolve_target(
    db: Session, target: schemas.CommentTarget
) -> tuple[Attachment, models.Comment | None]:
    """Return the entity attachment for ``target`` and the parent comment, if any.

    A reply takes its parent's attachment, so callers never need to know which
    entity a deep reply ultimately belongs to.
    """

    if isinstance(target, schemas.ReplyTarget):
        parent = db.get(models.Comment, target.parent_id)
        if parent is None:
            raise ValidationError(f"Parent comment {target.parent_id} does not exist")
        return _attachment_of(parent), parent
    if isinstance(target, schemas.ProductionItemTarget):
        if db.get(models.ProductionItem, target.id) is None:
            raise ValidationError(f"Production item {target.id} does not exist")
        return Attachment(production_item_id=target.id), None
    if isinstance(target, schemas.SampleItemTarget):
        if db.get(models.SampleItem, target.id) is None:
            raise ValidationError(f"Sample item {target.id} does not exist")
        return Attachment(sample_item_id=target.id), None
    if isinstance(target, schemas.RequestTarget):
        if db.get(models.SampleRequest, target.id) is None:
            raise ValidationError(f"Request {target.id} does not exist")
        return Attachment(request_id=target.id), None
    raise ValidationError("Comment must target a production item, sample item, request or comment")


def _check_content(content: str) -> str:
    if not content or not content.strip():
        raise ValidationError("Content is required")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"Content must be at most {MAX_CONTENT_LENGTH} characters")
    return content


def create_comment(
    db: Session,
    payload: schemas.CommentCreate,
    *,
    actor: ActorContext,
) -> models.Comment:
    content = _check_content(payload.content)
    attachment, parent = resolve_target(db, payload.target)
    comment = models.Comment(
        content=content,
        author_id=actor.user_id,
        parent_comment_id=parent.id if parent is not None else None,
        **attachment.as_dict(),
    )
    db.add(comment)
    db.flush()
    metadata = attachment.as_dict()
    if parent is not None:
        metadata["parent_comment_id"] = parent.id
    audit.record_event(db, actor, "CREATED", "Comment", comment.id, metadata)
    return comment


def get_comment(db: Session, comment_id: UUID) -> models.Comment:
    comment = db.get(models.Comment, comment_id)
    if comment is None:
        raise NotFoundError(f"Comment {comment_id} not found")
    return comment


def update_comment(
    db: Session,
    comment_id: UUID,
    content: str,
    *,
    actor: ActorContext,
) -> models.Comment:
    comment = get_comment(db, comment_id)
    comment.content = _check_content(content)
    db.flush()
    audit.record_event(db, actor, "UPDATED", "Comment", comment.id)
    return comment


def _subtree_ids(comment: models.Comment) -> list[UUID]:
    ids = []
    stack = [comment]
    while stack:
        node = stack.pop()
        ids.append(node.id)
        stack.extend(node.replies)
    return ids


def delete_comment(db: Session, comment_id: UUID, *, actor: ActorContext) -> list[UUID]:
    """Hard-delete a comment and its whole reply subtree."""

    comment = get_comment(db, comment_id)
    removed = _subtree_ids(comment)
    db.delete(comment)
    db.flush()
    for removed_id in removed:
        metadata = None if removed_id == comment_id else {"cascade_root": comment_id}
        audit.record_event(db, actor, "DELETED", "Comment", removed_id, metadata)
    if len(removed) > 1:
        _logger.info("Deleted comment %s with %d replies", comment_id, len(removed) - 1)
    return removed


def _load_attached(db: Session, attachment: Attachment) -> dict[UUID | None, list[models.Comment]]:
    rows = (
        db.query(models.Comment)
        .filter(attachment.as_filter())
        .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        .all()
    )
    children: dict[UUID | None, list[models.Comment]] = defaultdict(list)
    for row in rows:
        children[row.parent_comment_id].append(row)
    return children


def _build_node(
    comment: models.Comment,
    children: dict[UUID | None, list[models.Comment]],
    remaining: int,
) -> schemas.CommentNode:
    kids = children.get(comment.id, [])
    base = schemas.CommentOut.model_validate(comment).model_dump()
    replies = [_build_node(kid, children, remaining - 1) for kid in kids] if remaining > 0 else []
    return schemas.CommentNode(**base, reply_count=len(kids), replies=replies)


def fetch_thread(
    db: Session,
    *,
    production_item_id: UUID | None = None,
    sample_item_id: UUID | None = None,
    request_id: UUID | None = None,
    depth: int | None = None,
) -> list[schemas.CommentNode]:
    """Return top-level comments for one entity, newest first, with nested replies.

    Replies are expanded ``depth`` levels below the top-level comment; nodes at
    the cut-off still report ``reply_count``.
    """

    supplied = [v for v in (production_item_id, sample_item_id, request_id) if v is not None]
    if len(supplied) != 1:
        raise ValidationError("Exactly one of production_item_id, sample_item_id or request_id is required")
    depth = DEFAULT_REPLY_DEPTH if depth is None else depth
    if depth < 0:
        raise ValidationError("depth must not be negative")
    attachment = Attachment(
        production_item_id=production_item_id,
        sample_item_id=sample_item_id,
        request_id=request_id,
    )
    children = _load_attached(db, attachment)
    top_level = sorted(
        children.get(None, []),
        key=lambda c: (c.created_at, str(c.id)),
        reverse=True,
    )
    return [_build_node(comment, children, depth) for comment in top_level]


def fetch_replies(
    db: Session,
    comment_id: UUID,
    *,
    depth: int | None = None,
) -> list[schemas.CommentNode]:
    """Expand the replies below one comment on demand."""

    comment = get_comment(db, comment_id)
    depth = DEFAULT_REPLY_DEPTH if depth is None else depth
    if depth < 1:
        raise ValidationError("depth must be at least 1")
    children = _load_attached(db, _attachment_of(comment))
    return [_build_node(kid, children, depth - 1) for kid in children.get(comment.id, [])]

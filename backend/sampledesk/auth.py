"""Caller identity passed explicitly into every mutating operation."""

from __future__ import annotations

import os
from dataclasses import dataclass

from fastapi import Header

# purpose: replace process-wide "current user" state with an injected actor
# status: active
# outputs: ActorContext consumed by services for audit and authorship attribution

DEFAULT_ACTOR_ID = os.getenv("DEFAULT_ACTOR_ID", "coordinator-1")
DEFAULT_ACTOR_NAME = os.getenv("DEFAULT_ACTOR_NAME", "Sample Coordinator")


@dataclass(frozen=True)
class ActorContext:
    user_id: str
    display_name: str = DEFAULT_ACTOR_NAME


def default_actor() -> ActorContext:
    return ActorContext(user_id=DEFAULT_ACTOR_ID, display_name=DEFAULT_ACTOR_NAME)


async def get_current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_name: str | None = Header(default=None),
) -> ActorContext:
    """Resolve the calling actor, falling back to the single coordinator account."""

    if not x_actor_id or not x_actor_id.strip():
        return default_actor()
    return ActorContext(
        user_id=x_actor_id.strip(),
        display_name=(x_actor_name or x_actor_id).strip(),
    )

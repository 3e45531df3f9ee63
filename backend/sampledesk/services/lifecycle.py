"""Sample request status transition rules."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..errors import InvalidTransitionError, ValidationError
from ..vocabulary import REQUEST_STATUS_FLOW, REQUEST_STATUS_TIMESTAMPS, REQUEST_STATUSES

# purpose: authoritative transition table and first-entry timestamp policy for sample requests
# status: active
# depends_on: sampledesk.vocabulary.REQUEST_STATUS_FLOW

INITIAL_STATUS = "REQUESTED"
TERMINAL_STATUSES = frozenset(s for s, targets in REQUEST_STATUS_FLOW.items() if not targets)


def allowed_transitions(status: str) -> tuple[str, ...]:
    return REQUEST_STATUS_FLOW.get(status, ())


def is_valid_transition(current: str, target: str) -> bool:
    return target in allowed_transitions(current)


def ensure_known_status(status: str) -> str:
    if status not in REQUEST_STATUSES:
        raise ValidationError(f"Unknown request status {status!r}")
    return status


def ensure_transition(current: str, target: str) -> None:
    """Reject a move that is not listed for the current status."""

    ensure_known_status(target)
    if not is_valid_transition(current, target):
        raise InvalidTransitionError(current, target, allowed_transitions(current))


def timestamp_field(status: str) -> str | None:
    return REQUEST_STATUS_TIMESTAMPS.get(status)


def stamp_values(request: Any, target: str, now: datetime) -> dict[str, datetime]:
    """Return the stage timestamp to set when ``request`` enters ``target``.

    A stage timestamp is written once, on first entry; a later pass through the
    same status keeps the original value.
    """

    field = timestamp_field(target)
    if field is None or getattr(request, field, None) is not None:
        return {}
    return {field: now}

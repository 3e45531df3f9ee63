"""Domain errors raised by the service layer."""

from __future__ import annotations


class SampleDeskError(RuntimeError):
    """Base error for sample coordination services."""


class ConflictError(SampleDeskError):
    """Raised when a write would duplicate an existing sample variation."""


class StaleStatusError(ConflictError):
    """Raised when a request's status moved underneath a status update."""


class NotFoundError(SampleDeskError):
    """Raised when an operation targets an entity that does not exist."""


class ValidationError(SampleDeskError):
    """Raised when input fails shape or range constraints."""


class InvalidTransitionError(ValidationError):
    """Raised when a request status change is not in the transition table."""

    def __init__(self, current: str, target: str, allowed: tuple[str, ...]) -> None:
        self.current = current
        self.target = target
        self.allowed = allowed
        allowed_text = ", ".join(allowed) if allowed else "none"
        super().__init__(
            f"Cannot change request status from {current} to {target}; allowed: {allowed_text}"
        )


class ReferentialIntegrityError(SampleDeskError):
    """Raised when a write references a missing entity or would orphan dependents."""

"""Error taxonomy for calendar operations.

Each error carries the HTTP status it maps to so the API layer can translate
it with a single exception handler.
"""

from __future__ import annotations

from typing import Any


class CalendarError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(CalendarError):
    """Malformed or missing input. Never retried automatically."""

    status_code = 400


class InvalidRecurrenceSpec(ValidationError):
    """Recurrence options could not be compiled into a rule."""


class RecurrenceParseError(ValidationError):
    """A recurrence rule string could not be parsed."""


class ConflictError(CalendarError):
    """The candidate interval overlaps one or more of the owner's events."""

    status_code = 409

    def __init__(
        self,
        conflicting_event_ids: list[str],
        message: str = "Event conflicts with existing events",
    ) -> None:
        super().__init__(message)
        self.conflicting_event_ids = conflicting_event_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "conflictingEventIds": self.conflicting_event_ids,
        }


class NotFoundError(CalendarError):
    """Target does not exist, or is not owned by the caller."""

    status_code = 404

    def __init__(self, message: str = "Event not found") -> None:
        super().__init__(message)


class StoreUnavailableError(CalendarError):
    """The store did not answer within the configured timeout."""

    status_code = 503


class UnauthenticatedError(CalendarError):
    """No caller identity was supplied with the request."""

    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)

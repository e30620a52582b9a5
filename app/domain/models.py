"""Domain models for the calendar service."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

DEFAULT_COLOR = "#4285f4"


class Frequency(StrEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class OwnerRef(BaseModel):
    """Display information for an event owner."""

    id: str
    name: str | None = None
    email: str | None = None


class Span(BaseModel):
    """A time span as seen by the overlap evaluator."""

    start: datetime
    end: datetime
    all_day: bool = False


class EventBase(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    start: datetime
    end: datetime
    all_day: bool = False
    location: str = ""
    owner_id: str
    attendees: list[str] = Field(default_factory=list)
    color: str = DEFAULT_COLOR
    recurring_rule: str | None = None
    recurrence_id: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    owner: OwnerRef | None = None

    @computed_field
    @property
    def duration(self) -> int:
        """Length of the event in whole minutes."""
        return round((self.end - self.start).total_seconds() / 60)


class Event(EventBase):
    """A persisted master record."""

    kind: Literal["event"] = "event"
    is_recurring_instance: Literal[False] = False


class EventInstance(EventBase):
    """A derived occurrence of a recurring master. Never persisted."""

    kind: Literal["instance"] = "instance"
    is_recurring_instance: Literal[True] = True
    original_event_id: str


CalendarEntry = Annotated[Union[Event, EventInstance], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class RecurrenceOptions(BaseModel):
    """Structured recurrence input, compiled into an RRULE string on write."""

    frequency: str | None = None
    interval: int | None = None
    count: int | None = None
    until: datetime | None = None
    byweekday: list[int | str] | None = None
    bymonthday: list[int] | None = None


class EventCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    all_day: bool = False
    location: str | None = None
    attendees: list[str] = Field(default_factory=list)
    color: str | None = None
    recurring_rule: str | None = None
    recurrence_options: RecurrenceOptions | None = None


class EventUpdate(BaseModel):
    """Partial update: only the fields the client sent are applied."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    all_day: bool | None = None
    location: str | None = None
    attendees: list[str] | None = None
    color: str | None = None
    recurring_rule: str | None = None
    recurrence_options: RecurrenceOptions | None = None

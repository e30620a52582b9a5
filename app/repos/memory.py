"""In-memory repositories for events and owners."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator

from app.domain.errors import StoreUnavailableError
from app.domain.models import Event, OwnerRef


class EventRepository:
    """Dict-backed store for master events, keyed by id.

    Every read is scoped to an owner; nothing here crosses owners. Writes
    hold ``_lock`` and reads filter a copy taken under it, so a read never
    iterates the dict while another owner's write resizes it.
    """

    def __init__(self) -> None:
        self._store: dict[str, Event] = {}
        self._lock = threading.Lock()

    def add(self, event: Event) -> Event:
        with self._lock:
            self._store[event.id] = event
        return event

    def get(self, event_id: str, owner_id: str) -> Event | None:
        with self._lock:
            event = self._store.get(event_id)
        if event is None or event.owner_id != owner_id:
            return None
        return event

    def list_for_owner(self, owner_id: str) -> list[Event]:
        with self._lock:
            events = list(self._store.values())
        return [e for e in events if e.owner_id == owner_id]

    def list_in_range(
        self, owner_id: str, range_start: datetime, range_end: datetime
    ) -> list[Event]:
        """Events intersecting the half-open window ``[range_start, range_end)``.

        Covers events that start in the window, end in it, or span all of it.
        """
        return [
            e
            for e in self.list_for_owner(owner_id)
            if e.start < range_end and e.end > range_start
        ]

    def list_starting_between(
        self, owner_id: str, range_start: datetime, range_end: datetime
    ) -> list[Event]:
        return [
            e
            for e in self.list_for_owner(owner_id)
            if range_start <= e.start < range_end
        ]

    def list_recurring(self, owner_id: str, before: datetime) -> list[Event]:
        """Recurring masters whose series starts before *before*."""
        return [
            e
            for e in self.list_for_owner(owner_id)
            if e.recurring_rule and e.start <= before
        ]

    def find_overlapping(
        self,
        owner_id: str,
        predicate: Callable[[Event], bool],
        exclude_id: str | None = None,
    ) -> list[Event]:
        return [
            e
            for e in self.list_for_owner(owner_id)
            if e.id != exclude_id and predicate(e)
        ]

    def update(self, event_id: str, fields: dict[str, Any]) -> Event | None:
        with self._lock:
            current = self._store.get(event_id)
            if current is None:
                return None
            updated = current.model_copy(update=fields)
            self._store[event_id] = updated
        return updated

    def delete(self, event_id: str) -> bool:
        with self._lock:
            return self._store.pop(event_id, None) is not None


class OwnerRepository:
    """Display details for owners, used to resolve ``owner_id`` on responses."""

    def __init__(self) -> None:
        self._store: dict[str, OwnerRef] = {}

    def add(self, owner: OwnerRef) -> None:
        self._store[owner.id] = owner

    def resolve(self, owner_id: str) -> OwnerRef:
        return self._store.get(owner_id) or OwnerRef(id=owner_id)


class OwnerLocks:
    """Per-owner critical sections for check-then-write sequences.

    Acquisition is bounded by *timeout* seconds; running out of time raises
    ``StoreUnavailableError`` instead of waiting forever.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(owner_id, threading.Lock())

    @contextmanager
    def hold(self, owner_id: str) -> Iterator[None]:
        lock = self._lock_for(owner_id)
        if not lock.acquire(timeout=self.timeout):
            raise StoreUnavailableError("Timed out waiting for the event store")
        try:
            yield
        finally:
            lock.release()


# ---------------------------------------------------------------------------
# Seed data – a small demo calendar
# ---------------------------------------------------------------------------

DEMO_OWNER_ID = "demo-user"


def _seed_events(repo: EventRepository, owners: OwnerRepository) -> None:
    owners.add(OwnerRef(id=DEMO_OWNER_ID, name="Demo User", email="demo@example.com"))
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)

    repo.add(
        Event(
            title="Team standup",
            start=today + timedelta(hours=9),
            end=today + timedelta(hours=9, minutes=15),
            owner_id=DEMO_OWNER_ID,
            recurring_rule="FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,TU,WE,TH,FR",
        )
    )
    repo.add(
        Event(
            title="Dentist appointment",
            start=today + timedelta(days=1, hours=14),
            end=today + timedelta(days=1, hours=15),
            location="Downtown Dental",
            owner_id=DEMO_OWNER_ID,
            color="#e67c73",
        )
    )
    repo.add(
        Event(
            title="Company offsite",
            start=today + timedelta(days=3),
            end=today + timedelta(days=4),
            all_day=True,
            owner_id=DEMO_OWNER_ID,
            attendees=["team@example.com"],
        )
    )


def seed_repositories(repo: EventRepository, owners: OwnerRepository) -> None:
    """Pre-load *repo* and *owners* with sample data."""
    _seed_events(repo, owners)

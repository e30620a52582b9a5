"""Event lifecycle: create, read, update and delete master events.

Validation and conflict checks run before anything is written, so a
rejected request never leaves the store partially updated. Check-then-write
sequences hold the owner's lock, which closes the race between two
concurrent creates for the same owner.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from app.config import Settings
from app.domain.errors import ConflictError, NotFoundError, ValidationError
from app.domain.models import (
    Event,
    EventCreate,
    EventInstance,
    EventUpdate,
    RecurrenceOptions,
    Span,
)
from app.repos.memory import EventRepository, OwnerLocks, OwnerRepository
from app.services.conflicts import find_conflicts
from app.services.recurrence import compile_rrule, expand_recurrence, parse_rrule
from app.services.validation import (
    DESCRIPTION_MAX_LENGTH,
    LOCATION_MAX_LENGTH,
    as_utc,
    clean_attendees,
    clean_text,
    clean_title,
    validate_color,
    validate_span,
)

logger = logging.getLogger(__name__)


class EventService:
    """Orchestrates validation, conflict checking and recurrence for events."""

    def __init__(
        self,
        repo: EventRepository,
        owners: OwnerRepository,
        locks: OwnerLocks,
        settings: Settings,
    ) -> None:
        self.repo = repo
        self.owners = owners
        self.locks = locks
        self.settings = settings

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_events(
        self,
        owner_id: str,
        range_start: datetime | None = None,
        range_end: datetime | None = None,
    ) -> list[Event | EventInstance]:
        """Return the owner's events ordered by start.

        With a range, masters intersecting it are returned together with the
        occurrences of every recurring master that fall inside it. Without a
        complete range (either bound missing), masters only.
        """
        if range_start is None or range_end is None:
            masters = sorted(self.repo.list_for_owner(owner_id), key=lambda e: e.start)
            return [self._present(e) for e in masters]

        range_start, range_end = as_utc(range_start), as_utc(range_end)
        if range_start > range_end:
            raise ValidationError("Range start must not be after range end")

        entries: list[Event | EventInstance] = [
            self._present(e)
            for e in self.repo.list_in_range(owner_id, range_start, range_end)
        ]
        for master in self.repo.list_recurring(owner_id, before=range_end):
            entries.extend(
                expand_recurrence(
                    self._present(master),
                    range_start,
                    range_end,
                    max_instances=self.settings.max_instances_per_master,
                    max_scan=self.settings.max_scan_per_master,
                )
            )
        entries.sort(key=lambda e: e.start)
        return entries

    def get_event(self, event_id: str, owner_id: str) -> Event:
        event = self.repo.get(event_id, owner_id)
        if event is None:
            raise NotFoundError()
        return self._present(event)

    def list_events_on(self, owner_id: str, day: datetime) -> list[Event]:
        """Masters starting on the calendar day that begins at *day*."""
        day = as_utc(day)
        events = self.repo.list_starting_between(owner_id, day, day + timedelta(days=1))
        return [self._present(e) for e in sorted(events, key=lambda e: e.start)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_event(self, owner_id: str, payload: EventCreate) -> Event:
        title = clean_title(payload.title)
        start, end = validate_span(payload.start, payload.end)
        description = clean_text(payload.description, "description", DESCRIPTION_MAX_LENGTH)
        location = clean_text(payload.location, "location", LOCATION_MAX_LENGTH)
        attendees = clean_attendees(payload.attendees)
        color = validate_color(payload.color or self.settings.default_color)

        with self.locks.hold(owner_id):
            self._check_conflicts(Span(start=start, end=end, all_day=payload.all_day), owner_id)
            rule = self._resolve_rule(payload.recurrence_options, payload.recurring_rule, start)
            event = self.repo.add(
                Event(
                    title=title,
                    description=description,
                    start=start,
                    end=end,
                    all_day=payload.all_day,
                    location=location,
                    owner_id=owner_id,
                    attendees=attendees,
                    color=color,
                    recurring_rule=rule,
                )
            )

        logger.info("Created event %s for owner %s", event.id, owner_id)
        return self._present(event)

    def update_event(self, event_id: str, owner_id: str, payload: EventUpdate) -> Event:
        provided = payload.model_fields_set

        with self.locks.hold(owner_id):
            existing = self.repo.get(event_id, owner_id)
            if existing is None:
                raise NotFoundError()
            if not provided:
                raise ValidationError("No fields to update")

            changes: dict = {}
            if "title" in provided:
                changes["title"] = clean_title(payload.title, required=False)
            if "description" in provided:
                changes["description"] = clean_text(
                    payload.description, "description", DESCRIPTION_MAX_LENGTH
                )
            if "location" in provided:
                changes["location"] = clean_text(
                    payload.location, "location", LOCATION_MAX_LENGTH
                )
            if "attendees" in provided:
                changes["attendees"] = clean_attendees(payload.attendees or [])
            if "color" in provided:
                changes["color"] = validate_color(payload.color or self.settings.default_color)
            if "all_day" in provided and payload.all_day is not None:
                changes["all_day"] = payload.all_day

            start, end = existing.start, existing.end
            if "start" in provided or "end" in provided:
                start, end = validate_span(
                    payload.start or existing.start, payload.end or existing.end
                )
                changes["start"], changes["end"] = start, end

            all_day = changes.get("all_day", existing.all_day)
            if (start, end, all_day) != (existing.start, existing.end, existing.all_day):
                self._check_conflicts(
                    Span(start=start, end=end, all_day=all_day),
                    owner_id,
                    exclude_event_id=event_id,
                )

            if payload.recurrence_options is not None:
                changes["recurring_rule"] = compile_rrule(payload.recurrence_options)
            elif "recurring_rule" in provided:
                changes["recurring_rule"] = self._resolve_rule(None, payload.recurring_rule, start)

            changes["updated_at"] = datetime.now(timezone.utc)
            updated = self.repo.update(event_id, changes)

        logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(provided)))
        return self._present(updated)

    def delete_event(self, event_id: str, owner_id: str) -> None:
        with self.locks.hold(owner_id):
            if self.repo.get(event_id, owner_id) is None:
                raise NotFoundError()
            self.repo.delete(event_id)
        logger.info("Deleted event %s for owner %s", event_id, owner_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_conflicts(
        self, candidate: Span, owner_id: str, exclude_event_id: str | None = None
    ) -> None:
        if candidate.all_day and not self.settings.check_all_day_conflicts:
            return
        conflicting = find_conflicts(candidate, owner_id, self.repo, exclude_event_id)
        if conflicting:
            logger.info(
                "Rejected event for owner %s: conflicts with %s", owner_id, conflicting
            )
            raise ConflictError(conflicting)

    def _resolve_rule(
        self,
        options: RecurrenceOptions | None,
        raw_rule: str | None,
        anchor: datetime,
    ) -> str | None:
        if options is not None:
            return compile_rrule(options)
        if raw_rule and raw_rule.strip():
            parse_rrule(raw_rule, anchor)
            return raw_rule.strip()
        return None

    def _present(self, event: Event) -> Event:
        return event.model_copy(update={"owner": self.owners.resolve(event.owner_id)})

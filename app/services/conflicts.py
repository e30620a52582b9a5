"""Service for detecting scheduling conflicts between events."""

from __future__ import annotations

import logging
from datetime import timedelta

from app.domain.models import Event, Span
from app.repos.memory import EventRepository

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def overlaps(existing: Span | Event, candidate: Span | Event) -> bool:
    """Return True when *existing* conflicts with *candidate*.

    Timed spans use half-open intersection: conflict if
    existing.start < candidate.end AND existing.end > candidate.start, so
    back-to-back meetings (end == start) do NOT conflict.

    All-day spans compare at day granularity against the day that begins at
    candidate.start, because an all-day ``end`` is not reliably exclusive.

    A timed span never conflicts with an all-day span.
    """
    if existing.all_day != candidate.all_day:
        return False
    if candidate.all_day:
        return existing.start < candidate.start + ONE_DAY and existing.end > candidate.start
    return existing.start < candidate.end and existing.end > candidate.start


def find_conflicts(
    candidate: Span,
    owner_id: str,
    repo: EventRepository,
    exclude_event_id: str | None = None,
) -> list[str]:
    """Return the ids of every event of *owner_id* that overlaps *candidate*.

    *exclude_event_id* is skipped, so an event being updated never conflicts
    with itself.
    """
    conflicting = repo.find_overlapping(
        owner_id,
        lambda existing: overlaps(existing, candidate),
        exclude_id=exclude_event_id,
    )
    ids = [event.id for event in conflicting]
    if ids:
        logger.debug("Candidate %s-%s overlaps %s", candidate.start, candidate.end, ids)
    return ids

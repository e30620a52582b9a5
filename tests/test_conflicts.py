"""Tests for the overlap evaluator and the conflict query."""

from datetime import datetime, timedelta, timezone

from app.domain.models import Event, Span
from app.repos.memory import EventRepository
from app.services.conflicts import find_conflicts, overlaps


def _at(hour: int, minute: int = 0, day: int = 2) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def _make_event(start: datetime, end: datetime, owner_id: str = "alice", **kw) -> Event:
    return Event(title="Existing", start=start, end=end, owner_id=owner_id, **kw)


# ---------------------------------------------------------------------------
# overlaps
# ---------------------------------------------------------------------------


def test_partial_overlap():
    a = Span(start=_at(9), end=_at(10, 30))
    b = Span(start=_at(10), end=_at(11))
    assert overlaps(a, b)


def test_timed_overlap_is_symmetric():
    spans = [
        Span(start=_at(9), end=_at(10)),
        Span(start=_at(9, 30), end=_at(11)),
        Span(start=_at(10), end=_at(12)),
        Span(start=_at(8), end=_at(13)),
        Span(start=_at(14), end=_at(15)),
    ]
    for a in spans:
        for b in spans:
            assert overlaps(a, b) == overlaps(b, a)


def test_exact_boundary_no_conflict():
    """When a.end == b.start the spans only touch."""
    a = Span(start=_at(9), end=_at(10))
    b = Span(start=_at(10), end=_at(11))
    assert not overlaps(a, b)
    assert not overlaps(b, a)


def test_containment_overlaps():
    outer = Span(start=_at(8), end=_at(12))
    inner = Span(start=_at(9), end=_at(10))
    assert overlaps(outer, inner)
    assert overlaps(inner, outer)


def test_all_day_same_day_overlaps():
    a = Span(start=_at(0), end=_at(23, 59), all_day=True)
    b = Span(start=_at(0), end=_at(0, day=3), all_day=True)
    assert overlaps(a, b)
    assert overlaps(b, a)


def test_all_day_non_adjacent_days_do_not_overlap():
    a = Span(start=_at(0), end=_at(23, 59), all_day=True)
    b = Span(start=_at(0, day=5), end=_at(23, 59, day=5), all_day=True)
    assert not overlaps(a, b)
    assert not overlaps(b, a)


def test_timed_never_overlaps_all_day():
    all_day = Span(start=_at(0), end=_at(0, day=3), all_day=True)
    timed = Span(start=_at(9), end=_at(10))
    assert not overlaps(all_day, timed)
    assert not overlaps(timed, all_day)


# ---------------------------------------------------------------------------
# find_conflicts
# ---------------------------------------------------------------------------


def test_find_conflicts_returns_every_overlapping_id():
    repo = EventRepository()
    first = repo.add(_make_event(_at(9), _at(10)))
    second = repo.add(_make_event(_at(10), _at(11)))
    repo.add(_make_event(_at(12), _at(13)))

    ids = find_conflicts(Span(start=_at(9, 30), end=_at(10, 30)), "alice", repo)

    assert sorted(ids) == sorted([first.id, second.id])


def test_find_conflicts_scoped_to_owner():
    repo = EventRepository()
    repo.add(_make_event(_at(9), _at(10), owner_id="bob"))

    assert find_conflicts(Span(start=_at(9), end=_at(10)), "alice", repo) == []


def test_find_conflicts_excludes_given_event():
    repo = EventRepository()
    event = repo.add(_make_event(_at(9), _at(10)))

    candidate = Span(start=_at(9), end=_at(10, 30))
    assert find_conflicts(candidate, "alice", repo, exclude_event_id=event.id) == []
    assert find_conflicts(candidate, "alice", repo) == [event.id]


def test_find_conflicts_ignores_other_all_day_classification():
    repo = EventRepository()
    repo.add(_make_event(_at(0), _at(0) + timedelta(days=1), all_day=True))

    assert find_conflicts(Span(start=_at(9), end=_at(10)), "alice", repo) == []

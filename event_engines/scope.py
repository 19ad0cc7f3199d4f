"""
event_engines.scope -- Scope resolution and filter predicates over events.

Responsibility:
    Combine a user's owned and joined events according to the selected
    scope, then keep only the events that satisfy every active filter
    bound.  The resulting ``VisibleEvents`` carries both the ordered event
    list and its id set, so downstream aggregation filters items,
    attendance and feedback by membership rather than re-running the
    predicates.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The storage lookups that
    produce the owned and joined lists live in EventSelector.

Invariants enforced:
    - ``both`` is a union de-duplicated by event id; the first occurrence
      (owned before joined) is kept.
    - Filters are a conjunction; an absent bound is unbounded.
    - Date bounds are compared as local midnight of the given day; an
      event without a date is compared as the Unix epoch.
    - An event with no attendance row is filtered as expected=0, actual=0.
    - Category None or "all" matches any category.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime

from event_kernel.domain.dtos import AttendanceSnapshot, EventSnapshot
from event_kernel.domain.values import Scope, as_datetime
from event_kernel.logging_config import get_logger
from event_engines.tracer import traced_engine

logger = get_logger("engines.scope")

EPOCH = datetime(1970, 1, 1)
ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """User-chosen filter bounds; ``None`` means unbounded."""

    date_from: date | datetime | None = None
    date_to: date | datetime | None = None
    category: str | None = None
    expected_min: int | None = None
    expected_max: int | None = None
    actual_min: int | None = None
    actual_max: int | None = None

    @property
    def is_empty(self) -> bool:
        return self == FilterCriteria()


@dataclass(frozen=True)
class VisibleEvents:
    """Filtered events and the companion id set."""

    events: tuple[EventSnapshot, ...] = ()
    ids: frozenset[str] = frozenset()

    def __len__(self) -> int:
        return len(self.events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self.ids


def resolve_scope(
    owned: Iterable[EventSnapshot],
    joined: Iterable[EventSnapshot],
    scope: Scope | str,
) -> list[EventSnapshot]:
    """Events visible under ``scope``, de-duplicated by id for ``both``."""
    scope = Scope(scope)
    if scope is Scope.OWNED:
        return list(owned)
    if scope is Scope.JOINED:
        return list(joined)

    seen: dict[str, EventSnapshot] = {}
    for event in (*owned, *joined):
        seen.setdefault(event.id, event)
    return list(seen.values())


def _midnight(value: date | datetime) -> datetime:
    day = as_datetime(value)
    return day.replace(hour=0, minute=0, second=0, microsecond=0)


def _within(value: int, low: int | None, high: int | None) -> bool:
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def matches(
    event: EventSnapshot,
    attendance: AttendanceSnapshot | None,
    filters: FilterCriteria,
) -> bool:
    """True when ``event`` satisfies every bound in ``filters``."""
    when = event.date or EPOCH
    if filters.date_from is not None and when < _midnight(filters.date_from):
        return False
    if filters.date_to is not None and when > _midnight(filters.date_to):
        return False

    if filters.category not in (None, ALL_CATEGORIES) and event.category != filters.category:
        return False

    expected = attendance.expected_attendees if attendance else 0
    actual = attendance.event_attendees if attendance else 0
    return _within(expected, filters.expected_min, filters.expected_max) and _within(
        actual, filters.actual_min, filters.actual_max
    )


@traced_engine("scope", "1.0", fingerprint_fields=("filters",))
def apply_filters(
    events: Iterable[EventSnapshot],
    attendance: Mapping[str, AttendanceSnapshot] | Iterable[AttendanceSnapshot] = (),
    filters: FilterCriteria | None = None,
) -> VisibleEvents:
    """
    Keep the events that pass ``filters``.

    ``attendance`` may be a mapping keyed by event id or a sequence of
    rows; with a sequence the first row per event is used.
    """
    events = list(events)
    filters = filters or FilterCriteria()
    if isinstance(attendance, Mapping):
        by_event = dict(attendance)
    else:
        by_event = {}
        for row in attendance:
            by_event.setdefault(row.event_id, row)

    kept = tuple(e for e in events if matches(e, by_event.get(e.id), filters))
    logger.debug("filters_applied", extra={
        "input_count": len(events),
        "visible_count": len(kept),
    })
    return VisibleEvents(events=kept, ids=frozenset(e.id for e in kept))

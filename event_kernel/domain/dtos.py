"""
Snapshot DTOs -- immutable views of upstream storage rows.

Selectors convert ORM rows into these frozen dataclasses before anything
reaches the engines, so aggregation never holds a live session or mutates
storage state.  A ``PortfolioSnapshot`` is the complete, consistent input
of one refresh cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from event_kernel.domain.values import (
    ZERO,
    DiscountType,
    MarkupType,
    as_datetime,
    is_numeric,
    to_decimal,
)


def _parse_date(value: Any) -> datetime | None:
    if isinstance(value, str):
        return as_datetime(datetime.fromisoformat(value)) if value else None
    return as_datetime(value)


@dataclass(frozen=True)
class EventSnapshot:
    """An event with its pricing rule."""

    id: str
    title: str
    owner_id: str
    date: datetime | None = None
    category: str | None = None
    markup_type: MarkupType = MarkupType.FIXED
    markup_value: Decimal = ZERO
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = ZERO

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> EventSnapshot:
        """Build from a loosely typed mapping (missing rule fields default)."""
        return cls(
            id=str(row["id"]),
            title=row.get("title") or str(row["id"]),
            owner_id=str(row.get("user_id") or row.get("owner_id") or ""),
            date=_parse_date(row.get("date")),
            category=row.get("category"),
            markup_type=MarkupType(row.get("markup_type") or MarkupType.FIXED.value),
            markup_value=to_decimal(row.get("markup_value")),
            discount_type=DiscountType(row.get("discount_type") or DiscountType.NONE.value),
            discount_value=to_decimal(row.get("discount_value")),
        )


@dataclass(frozen=True)
class LineItemSnapshot:
    """A cost line belonging to exactly one event."""

    event_id: str
    cost: Decimal
    quantity: int | None = None
    name: str | None = None

    @property
    def effective_quantity(self) -> int:
        """Quantity, defaulting to 1 when absent or zero."""
        return self.quantity or 1

    @property
    def line_cost(self) -> Decimal:
        """``cost x quantity``."""
        return self.cost * self.effective_quantity


@dataclass(frozen=True)
class AttendanceSnapshot:
    """Expected vs. actual attendance for one event."""

    event_id: str
    expected_attendees: int = 0
    event_attendees: int = 0


@dataclass(frozen=True)
class FeedbackSnapshot:
    """One feedback response; rating may be missing or non-numeric."""

    event_id: str
    rating: Any = None
    sentiment: str | None = None

    @property
    def is_rated(self) -> bool:
        """True when the rating is usable in numeric aggregates."""
        return is_numeric(self.rating)


@dataclass(frozen=True)
class PortfolioSnapshot:
    """
    All upstream data for one refresh cycle.

    Items, attendance and feedback are already restricted to the events
    in ``events``.
    """

    events: tuple[EventSnapshot, ...] = ()
    items: tuple[LineItemSnapshot, ...] = ()
    attendance: tuple[AttendanceSnapshot, ...] = ()
    feedback: tuple[FeedbackSnapshot, ...] = ()
    fetched_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def event_ids(self) -> frozenset[str]:
        return frozenset(e.id for e in self.events)

    def attendance_by_event(self) -> dict[str, AttendanceSnapshot]:
        """First attendance row per event id."""
        result: dict[str, AttendanceSnapshot] = {}
        for row in self.attendance:
            result.setdefault(row.event_id, row)
        return result


@dataclass(frozen=True)
class InsightScope:
    """
    Owner of a quota window and of a saved insight.

    User scopes are windowed by week for both the quota and the saved
    text.  Event scopes share one quota per event per week but keep a
    single saved insight per event.
    """

    scope_type: str
    scope_id: str

    USER = "user"
    EVENT = "event"

    @classmethod
    def for_user(cls, user_id: Any) -> InsightScope:
        return cls(cls.USER, str(user_id))

    @classmethod
    def for_event(cls, event_id: Any) -> InsightScope:
        return cls(cls.EVENT, str(event_id))

    @property
    def is_event(self) -> bool:
        return self.scope_type == self.EVENT

    def quota_key(self, week: date) -> str:
        return f"{self.scope_type}:{self.scope_id}:{week.isoformat()}"

    def record_key(self, week: date) -> str:
        """Key of the saved insight for the window containing ``week``."""
        if self.is_event:
            return f"{self.EVENT}:{self.scope_id}"
        return self.quota_key(week)

"""
event_engines.portfolio -- Portfolio-wide and single-event aggregation.

Responsibility:
    Reduce the visible events and their items, attendance and feedback to
    totals, averages, rates, statistics blocks and chart series.  Every
    event is priced through the pricing cascade; rates go through
    rates.safe_rate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes VisibleEvents (scope.apply_filters) and snapshot rows;
    fans out to pricing, statistics, rates and ranking.

Invariants enforced:
    - Only rows whose event id is in ``visible.ids`` contribute.
    - total_items counts item rows, not summed quantities.
    - Per-event averages are 0 for an empty portfolio.
    - Identical inputs give identical reports; nothing is cached.

Usage:
    visible = apply_filters(events, attendance, filters)
    report = aggregate_portfolio(visible, items, attendance, feedback)
    report.estimated_revenue
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from event_kernel.domain.dtos import (
    AttendanceSnapshot,
    EventSnapshot,
    FeedbackSnapshot,
    LineItemSnapshot,
)
from event_kernel.domain.values import HUNDRED, ZERO
from event_kernel.logging_config import get_logger
from event_engines.pricing import PricedEvent, price_event
from event_engines.ranking import CHART_TOP_N, top_n
from event_engines.rates import FeedbackSummary, average_rating, feedback_summary, safe_rate
from event_engines.scope import VisibleEvents
from event_engines.statistics import StatisticsBlock, cost_statistics, quantity_statistics
from event_engines.tracer import traced_engine

logger = get_logger("engines.portfolio")


@dataclass(frozen=True)
class ChartPoint:
    name: str
    value: Decimal
    date: datetime | None = None


@dataclass(frozen=True)
class ScatterPoint:
    name: str
    x: Decimal
    y: int


@dataclass(frozen=True)
class PortfolioReport:
    """Aggregate view of every visible event."""

    total_events: int
    total_items: int
    total_item_cost: Decimal
    estimated_revenue: Decimal
    expected_total: int
    actual_total: int
    avg_rating: Decimal
    avg_cost_per_event: Decimal
    avg_items_per_event: Decimal
    attendance_rate: Decimal
    cost_statistics: StatisticsBlock
    quantity_statistics: StatisticsBlock
    priced_events: tuple[PricedEvent, ...] = ()
    top_by_cost: tuple[PricedEvent, ...] = ()
    cost_timeline: tuple[ChartPoint, ...] = ()
    attendance_pie: tuple[ChartPoint, ...] = ()
    scatter: tuple[ScatterPoint, ...] = ()
    total_responses: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total_events == 0

    @property
    def gross_profit(self) -> Decimal:
        return self.estimated_revenue - self.total_item_cost

    @property
    def profit_margin_pct(self) -> Decimal:
        if self.estimated_revenue > ZERO:
            return self.gross_profit / self.estimated_revenue * HUNDRED
        return ZERO

    @property
    def avg_revenue_per_event(self) -> Decimal:
        if self.total_events == 0:
            return ZERO
        return self.estimated_revenue / self.total_events


@dataclass(frozen=True)
class EventReport:
    """Analytics for a single event."""

    priced: PricedEvent
    cost_statistics: StatisticsBlock
    quantity_statistics: StatisticsBlock
    expected_attendees: int
    actual_attendees: int
    attendance_rate: Decimal
    attendance_record_rate: Decimal
    feedback: FeedbackSummary
    items: tuple[LineItemSnapshot, ...] = field(default=())


def _group_items(
    items: Iterable[LineItemSnapshot],
    ids: frozenset[str],
) -> dict[str, list[LineItemSnapshot]]:
    grouped: dict[str, list[LineItemSnapshot]] = {}
    for item in items:
        if item.event_id in ids:
            grouped.setdefault(item.event_id, []).append(item)
    return grouped


def _first_per_event(
    attendance: Iterable[AttendanceSnapshot],
    ids: frozenset[str],
) -> dict[str, AttendanceSnapshot]:
    by_event: dict[str, AttendanceSnapshot] = {}
    for row in attendance:
        if row.event_id in ids:
            by_event.setdefault(row.event_id, row)
    return by_event


@traced_engine("portfolio", "1.0")
def aggregate_portfolio(
    visible: VisibleEvents,
    items: Iterable[LineItemSnapshot],
    attendance: Iterable[AttendanceSnapshot],
    feedback: Iterable[FeedbackSnapshot],
    chart_top_n: int = CHART_TOP_N,
) -> PortfolioReport:
    """Totals, averages, statistics and chart series for ``visible``."""
    t0 = time.monotonic()
    ids = visible.ids
    logger.info("portfolio_aggregation_started", extra={"event_count": len(visible)})

    grouped = _group_items(items, ids)
    by_event = _first_per_event(attendance, ids)
    visible_feedback = [r for r in feedback if r.event_id in ids]

    priced = tuple(price_event(e, grouped.get(e.id, ())) for e in visible.events)
    visible_items = [item for e in visible.events for item in grouped.get(e.id, ())]

    total_events = len(priced)
    total_items = sum(p.item_count for p in priced)
    total_item_cost = sum((p.base_cost for p in priced), ZERO)
    estimated_revenue = sum((p.final_price for p in priced), ZERO)
    expected_total = sum(by_event[e.id].expected_attendees for e in visible.events if e.id in by_event)
    actual_total = sum(by_event[e.id].event_attendees for e in visible.events if e.id in by_event)

    if total_events:
        avg_cost = total_item_cost / total_events
        avg_items = Decimal(total_items) / total_events
    else:
        avg_cost = ZERO
        avg_items = ZERO

    timeline = sorted(
        (ChartPoint(p.title, p.base_cost, p.date) for p in priced),
        key=lambda point: point.date or datetime.min,
    )
    scatter = tuple(
        ScatterPoint(
            p.title,
            p.base_cost,
            by_event[p.event_id].expected_attendees if p.event_id in by_event else 0,
        )
        for p in priced
    )

    report = PortfolioReport(
        total_events=total_events,
        total_items=total_items,
        total_item_cost=total_item_cost,
        estimated_revenue=estimated_revenue,
        expected_total=expected_total,
        actual_total=actual_total,
        avg_rating=average_rating(visible_feedback),
        avg_cost_per_event=avg_cost,
        avg_items_per_event=avg_items,
        attendance_rate=safe_rate(actual_total, expected_total),
        cost_statistics=cost_statistics(i.cost for i in visible_items),
        quantity_statistics=quantity_statistics(i.effective_quantity for i in visible_items),
        priced_events=priced,
        top_by_cost=tuple(top_n(priced, chart_top_n, key="base_cost")),
        cost_timeline=tuple(timeline),
        attendance_pie=(
            ChartPoint("Expected", Decimal(expected_total)),
            ChartPoint("Actual", Decimal(actual_total)),
        ),
        scatter=scatter,
        total_responses=len(visible_feedback),
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("portfolio_aggregation_calculated", extra={
        "total_events": total_events,
        "total_items": total_items,
        "total_item_cost": str(total_item_cost),
        "estimated_revenue": str(estimated_revenue),
        "duration_ms": duration_ms,
    })
    return report


@traced_engine("portfolio", "1.0")
def aggregate_event(
    event: EventSnapshot,
    items: Iterable[LineItemSnapshot],
    attendance: AttendanceSnapshot | None,
    feedback: Iterable[FeedbackSnapshot],
    attendance_records: int = 0,
) -> EventReport:
    """
    Per-event analytics.

    ``attendance_records`` is the number of check-in records for the event;
    its rate is taken against expected attendees like the other rates.
    """
    own_items = tuple(i for i in items if i.event_id == event.id)
    own_feedback = [r for r in feedback if r.event_id == event.id]
    expected = attendance.expected_attendees if attendance else 0
    actual = attendance.event_attendees if attendance else 0

    return EventReport(
        priced=price_event(event, own_items),
        cost_statistics=cost_statistics(i.cost for i in own_items),
        quantity_statistics=quantity_statistics(i.effective_quantity for i in own_items),
        expected_attendees=expected,
        actual_attendees=actual,
        attendance_rate=safe_rate(actual, expected),
        attendance_record_rate=safe_rate(attendance_records, expected),
        feedback=feedback_summary(own_feedback, expected),
        items=own_items,
    )

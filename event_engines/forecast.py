"""
event_engines.forecast -- Baseline six-month forecast from historical events.

Responsibility:
    A local implementation of the forecasting contract: build a daily
    series from dated events, grade the data quality, derive average daily
    metrics and growth rates, and project six calendar months ahead.  The
    output payload has the same shape as the remote forecasting service,
    so the trend merger treats both alike.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``today`` is passed in
    by the caller (used only when there is no historical data).

Invariants enforced:
    - Monthly projection = avg_daily x days_in_month x
      (1 + revenue_growth / 100) ** (i + 1), clamped at 0; event and
      attendee projections are rounded half-up to whole numbers.
    - Growth rate = (last - first) / max(first or 1, 1) x 100, and 0 with
      fewer than two data points.
    - Predictions start on the first day of the month after the last data
      point.

Data quality grades:
    none          no dated events
    low           fewer than 7 data points
    inconsistent  fewer than 30 points and more than 30% of gaps > 7 days
    moderate      fewer than 30 points otherwise
    good          30 or more points
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from event_kernel.domain.dtos import AttendanceSnapshot, EventSnapshot, LineItemSnapshot
from event_kernel.domain.values import HUNDRED, ZERO, round_half_up
from event_kernel.logging_config import get_logger
from event_engines.pricing import price_event
from event_engines.tracer import traced_engine

logger = get_logger("engines.forecast")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

HORIZON_MONTHS = 6
POPULAR_LIMIT = 5

QUALITY_MESSAGES = {
    "none": "No historical data available",
    "low": "Very limited historical data (less than 7 days)",
    "inconsistent": "Inconsistent historical data with significant gaps",
    "moderate": "Limited historical data (less than 30 days)",
    "good": "",
}


@dataclass
class DailyPoint:
    day: date
    cost: Decimal = ZERO
    revenue: Decimal = ZERO
    events: int = 0
    expected_attendees: int = 0
    actual_attendees: int = 0


@dataclass(frozen=True)
class MonthlyPrediction:
    year: int
    month: int
    predicted_cost: Decimal
    predicted_revenue: Decimal
    predicted_events: int
    predicted_expected_attendees: int

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    def as_row(self) -> dict[str, Any]:
        return {
            "date": f"{self.year}-{self.month:02d}-01",
            "month": self.month_name,
            "year": self.year,
            "month_year": f"{self.month_name} {self.year}",
            "predicted_cost": self.predicted_cost,
            "predicted_revenue": self.predicted_revenue,
            "predicted_events": self.predicted_events,
            "predicted_expected_attendees": self.predicted_expected_attendees,
        }


@dataclass(frozen=True)
class ForecastResult:
    predictions: tuple[MonthlyPrediction, ...]
    trends: dict[str, Decimal]
    data_quality: str
    data_points: int
    top_categories: tuple[dict[str, Any], ...] = ()
    popular_events: tuple[dict[str, Any], ...] = ()
    summary: dict[str, Any] = field(default_factory=dict)

    def as_payload(self) -> dict[str, Any]:
        """The forecasting-collaborator response shape."""
        return {
            "predictions": [p.as_row() for p in self.predictions],
            "trends": dict(self.trends),
            "predictions_summary": dict(self.summary),
            "popular_insights": {
                "top_categories": list(self.top_categories),
                "popular_events": list(self.popular_events),
                "predicted_popular_category": (
                    self.top_categories[0]["category"] if self.top_categories else None
                ),
            },
            "data_quality": {
                "quality": self.data_quality,
                "message": QUALITY_MESSAGES[self.data_quality],
                "data_points": self.data_points,
                "has_low_accuracy": self.data_quality != "good",
            },
        }


def _round_whole(value: Decimal) -> int:
    return int(round_half_up(value, 0))


def _growth(first: Decimal, last: Decimal) -> Decimal:
    return (last - first) / max(first or Decimal(1), Decimal(1)) * HUNDRED


def grade_quality(series: list[DailyPoint]) -> str:
    n = len(series)
    if n == 0:
        return "none"
    if n < 7:
        return "low"
    if n < 30:
        gaps = sum(
            1 for prev, cur in zip(series, series[1:]) if (cur.day - prev.day).days > 7
        )
        return "inconsistent" if gaps > n * 0.3 else "moderate"
    return "good"


def _add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


class BaselineForecaster:
    """
    Average-and-growth projection over a daily series.

    Contract:
        ``forecast`` is deterministic for identical inputs and ``today``.

    Non-goals:
        - No seasonality, smoothing or confidence intervals.
    """

    def __init__(self, horizon_months: int = HORIZON_MONTHS):
        self.horizon_months = horizon_months

    def daily_series(
        self,
        events: Iterable[EventSnapshot],
        items: Iterable[LineItemSnapshot],
        attendance: Iterable[AttendanceSnapshot],
    ) -> list[DailyPoint]:
        items = list(items)
        by_event: dict[str, AttendanceSnapshot] = {}
        for row in attendance:
            by_event.setdefault(row.event_id, row)

        points: dict[date, DailyPoint] = {}
        for event in events:
            if event.date is None:
                continue
            day = event.date.date()
            priced = price_event(event, items)
            att = by_event.get(event.id)
            point = points.setdefault(day, DailyPoint(day))
            point.cost += priced.base_cost
            point.revenue += priced.final_price
            point.events += 1
            point.expected_attendees += att.expected_attendees if att else 0
            point.actual_attendees += att.event_attendees if att else 0
        return [points[d] for d in sorted(points)]

    def _popular(
        self,
        events: list[EventSnapshot],
        items: list[LineItemSnapshot],
        attendance: dict[str, AttendanceSnapshot],
    ) -> tuple[tuple[dict[str, Any], ...], tuple[dict[str, Any], ...]]:
        category_counts: dict[str, int] = {}
        popularity: list[dict[str, Any]] = []
        for event in events:
            if event.category:
                category_counts[event.category] = category_counts.get(event.category, 0) + 1
            priced = price_event(event, items)
            att = attendance.get(event.id)
            popularity.append({
                "name": event.title or event.id,
                "cost": priced.base_cost,
                "revenue": priced.final_price,
                "attendees": att.expected_attendees if att else 0,
            })

        categories = sorted(category_counts.items(), key=lambda kv: kv[1], reverse=True)
        top_categories = tuple(
            {"category": name, "count": count} for name, count in categories[:POPULAR_LIMIT]
        )
        popular = sorted(
            popularity, key=lambda p: p["revenue"] + p["attendees"], reverse=True
        )
        return top_categories, tuple(popular[:POPULAR_LIMIT])

    @traced_engine("forecast", "1.0", fingerprint_fields=("today",))
    def forecast(
        self,
        events: Iterable[EventSnapshot],
        items: Iterable[LineItemSnapshot],
        attendance: Iterable[AttendanceSnapshot],
        *,
        today: date,
    ) -> ForecastResult:
        events = list(events)
        items = list(items)
        attendance = list(attendance)
        series = self.daily_series(events, items, attendance)
        n = len(series)
        quality = grade_quality(series)

        def avg(attr: str) -> Decimal:
            if not n:
                return ZERO
            return sum((Decimal(getattr(p, attr)) for p in series), ZERO) / n

        avg_cost = avg("cost")
        avg_revenue = avg("revenue")
        avg_events = avg("events")
        avg_expected = avg("expected_attendees")

        cost_growth = revenue_growth = ZERO
        if n >= 2:
            cost_growth = _growth(series[0].cost, series[-1].cost)
            revenue_growth = _growth(series[0].revenue, series[-1].revenue)

        last_day = series[-1].day if series else today
        base = Decimal(1) + revenue_growth / HUNDRED
        predictions: list[MonthlyPrediction] = []
        for i in range(self.horizon_months):
            year, month = _add_months(last_day.year, last_day.month, i + 1)
            days = calendar.monthrange(year, month)[1]
            factor = base ** (i + 1) if n else Decimal(1)
            predictions.append(MonthlyPrediction(
                year=year,
                month=month,
                predicted_cost=max(ZERO, avg_cost * days * factor),
                predicted_revenue=max(ZERO, avg_revenue * days * factor),
                predicted_events=max(0, _round_whole(avg_events * days * factor)),
                predicted_expected_attendees=max(0, _round_whole(avg_expected * days * factor)),
            ))

        by_event: dict[str, AttendanceSnapshot] = {}
        for row in attendance:
            by_event.setdefault(row.event_id, row)
        top_categories, popular_events = self._popular(events, items, by_event)

        summary = {
            "next_month_event_count": predictions[0].predicted_events if predictions else 0,
            "next_month_estimated_revenue": predictions[0].predicted_revenue if predictions else ZERO,
            "next_month_estimated_cost": predictions[0].predicted_cost if predictions else ZERO,
            "next_6_months_total_events": sum(p.predicted_events for p in predictions),
            "next_6_months_total_revenue": sum((p.predicted_revenue for p in predictions), ZERO),
            "next_6_months_total_cost": sum((p.predicted_cost for p in predictions), ZERO),
        }

        logger.info("forecast_calculated", extra={
            "data_points": n,
            "data_quality": quality,
            "revenue_growth_rate": str(revenue_growth),
        })

        return ForecastResult(
            predictions=tuple(predictions),
            trends={
                "avg_daily_cost": avg_cost,
                "avg_daily_revenue": avg_revenue,
                "avg_daily_events": avg_events,
                "avg_daily_expected_attendees": avg_expected,
                "cost_growth_rate": cost_growth,
                "revenue_growth_rate": revenue_growth,
            },
            data_quality=quality,
            data_points=n,
            top_categories=top_categories,
            popular_events=popular_events,
            summary=summary,
        )

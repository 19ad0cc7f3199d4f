"""
event_engines.trends -- Calendar-month buckets and historical/forecast series.

Responsibility:
    Sum one metric per calendar month over dated events, and concatenate
    those historical buckets with forecast rows for charting.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Forecast rows are the
    opaque output of the forecasting collaborator (or BaselineForecaster).

Invariants enforced:
    - Bucket key is "<Mon> <Year>" from the event's local date, e.g.
      "Mar 2025".  Month names are fixed English abbreviations.
    - Buckets are ordered by first appearance in date order; undated
      events are not bucketed.
    - merge_series never reconciles overlap: a month present in both
      sources appears twice, once per source.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from event_kernel.domain.dtos import AttendanceSnapshot
from event_kernel.domain.values import ZERO, to_decimal
from event_kernel.logging_config import get_logger
from event_engines.pricing import PricedEvent

logger = get_logger("engines.trends")

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

HISTORICAL = "Historical"
PREDICTED = "Predicted"


class TrendMetric(str, Enum):
    """Metric summed into a bucket, with its forecast row field."""

    COST = "cost"
    REVENUE = "revenue"
    EVENTS = "events"
    EXPECTED_ATTENDEES = "expected_attendees"

    @property
    def forecast_field(self) -> str:
        return f"predicted_{self.value}"


@dataclass(frozen=True)
class TimeBucket:
    label: str
    value: Decimal
    source: str = HISTORICAL


def month_key(when: date | datetime) -> str:
    return f"{MONTH_ABBREVIATIONS[when.month - 1]} {when.year}"


def _metric_value(
    event: PricedEvent,
    metric: TrendMetric,
    attendance: Mapping[str, AttendanceSnapshot],
) -> Decimal:
    if metric is TrendMetric.COST:
        return event.base_cost
    if metric is TrendMetric.REVENUE:
        return event.final_price
    if metric is TrendMetric.EVENTS:
        return Decimal(1)
    row = attendance.get(event.event_id)
    return Decimal(row.expected_attendees) if row else ZERO


def bucket_by_month(
    events: Iterable[PricedEvent],
    metric: TrendMetric | str,
    attendance: Mapping[str, AttendanceSnapshot] | None = None,
) -> list[TimeBucket]:
    """Historical buckets of ``metric`` per calendar month."""
    metric = TrendMetric(metric)
    attendance = attendance or {}
    dated = sorted((e for e in events if e.date is not None), key=lambda e: e.date)

    totals: dict[str, Decimal] = {}
    for event in dated:
        key = month_key(event.date)
        totals[key] = totals.get(key, ZERO) + _metric_value(event, metric, attendance)

    return [TimeBucket(label, value, HISTORICAL) for label, value in totals.items()]


def _forecast_label(row: Mapping[str, Any]) -> str | None:
    label = row.get("month_year") or row.get("date")
    return str(label) if label else None


def merge_series(
    historical: Iterable[TimeBucket],
    forecast_rows: Iterable[Mapping[str, Any]] | None,
    metric: TrendMetric | str,
) -> list[TimeBucket]:
    """
    Historical buckets followed by forecast buckets tagged ``Predicted``.

    Forecast rows that are not mappings, or lack a label or the metric's
    ``predicted_*`` field, are skipped.
    """
    metric = TrendMetric(metric)
    series = [TimeBucket(b.label, b.value, HISTORICAL) for b in historical]
    skipped = 0
    for row in forecast_rows or ():
        if not isinstance(row, Mapping):
            skipped += 1
            continue
        label = _forecast_label(row)
        if label is None or row.get(metric.forecast_field) is None:
            skipped += 1
            continue
        series.append(TimeBucket(label, to_decimal(row[metric.forecast_field]), PREDICTED))

    if skipped:
        logger.debug("forecast_rows_skipped", extra={
            "metric": metric.value,
            "skipped": skipped,
        })
    return series

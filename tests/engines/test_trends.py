"""Tests for monthly bucketing and forecast merge (event_engines/trends.py)."""

from datetime import datetime
from decimal import Decimal

from event_engines.pricing import PricedEvent, calculate_pricing
from event_engines.trends import (
    HISTORICAL,
    PREDICTED,
    TimeBucket,
    TrendMetric,
    bucket_by_month,
    merge_series,
    month_key,
)
from event_kernel.domain.dtos import AttendanceSnapshot


def _priced(event_id, cost, when, markup="0"):
    return PricedEvent(
        event_id=event_id,
        title=event_id,
        pricing=calculate_pricing(
            base_cost=Decimal(cost),
            markup_type="fixed",
            markup_value=Decimal(markup),
            discount_type="none",
            discount_value=Decimal("0"),
        ),
        date=when,
    )


class TestBucketByMonth:
    def setup_method(self):
        self.events = [
            _priced("b", "200", datetime(2025, 3, 2), markup="20"),
            _priced("a", "100", datetime(2025, 1, 15)),
            _priced("c", "50", datetime(2025, 3, 28)),
            _priced("undated", "999", None),
        ]

    def test_cost_buckets_in_chronological_order(self):
        buckets = bucket_by_month(self.events, TrendMetric.COST)
        assert [(b.label, b.value) for b in buckets] == [
            ("Jan 2025", Decimal("100")),
            ("Mar 2025", Decimal("250")),
        ]
        assert all(b.source == HISTORICAL for b in buckets)

    def test_revenue_buckets_use_final_price(self):
        buckets = bucket_by_month(self.events, "revenue")
        assert buckets[-1].value == Decimal("270")

    def test_event_count_buckets(self):
        buckets = bucket_by_month(self.events, TrendMetric.EVENTS)
        assert [b.value for b in buckets] == [Decimal("1"), Decimal("2")]

    def test_expected_attendee_buckets(self):
        attendance = {"a": AttendanceSnapshot("a", 30, 10), "c": AttendanceSnapshot("c", 5, 5)}
        buckets = bucket_by_month(self.events, TrendMetric.EXPECTED_ATTENDEES, attendance)
        assert [b.value for b in buckets] == [Decimal("30"), Decimal("5")]

    def test_same_month_different_year_kept_apart(self):
        events = [_priced("x", "1", datetime(2024, 3, 1)), _priced("y", "2", datetime(2025, 3, 1))]
        labels = [b.label for b in bucket_by_month(events, TrendMetric.COST)]
        assert labels == ["Mar 2024", "Mar 2025"]

    def test_month_key(self):
        assert month_key(datetime(2025, 12, 31)) == "Dec 2025"


class TestMergeSeries:
    def setup_method(self):
        self.historical = [TimeBucket("Mar 2025", Decimal("250"))]

    def test_appends_predicted_rows(self):
        rows = [
            {"month_year": "April 2025", "predicted_cost": 300},
            {"date": "2025-05-01", "predicted_cost": "310.5"},
        ]
        series = merge_series(self.historical, rows, TrendMetric.COST)
        assert [(b.label, b.value, b.source) for b in series] == [
            ("Mar 2025", Decimal("250"), HISTORICAL),
            ("April 2025", Decimal("300"), PREDICTED),
            ("2025-05-01", Decimal("310.5"), PREDICTED),
        ]

    def test_skips_rows_without_label_or_metric(self):
        rows = [
            {"predicted_cost": 300},
            {"month_year": "April 2025", "predicted_revenue": 10},
        ]
        assert merge_series(self.historical, rows, TrendMetric.COST) == self.historical

    def test_no_forecast_keeps_history(self):
        assert merge_series(self.historical, None, "cost") == self.historical

    def test_forecast_field_names(self):
        assert TrendMetric.EXPECTED_ATTENDEES.forecast_field == "predicted_expected_attendees"

"""Tests for insight context and fallback text (event_engines/narrative.py)."""

from datetime import datetime
from decimal import Decimal

from event_engines.forecast import BaselineForecaster
from event_engines.narrative import build_insight_context, fallback_summary
from event_engines.portfolio import aggregate_portfolio
from event_engines.scope import VisibleEvents
from event_kernel.domain.dtos import AttendanceSnapshot, EventSnapshot, LineItemSnapshot
from event_kernel.domain.values import DiscountType, MarkupType


def _report(count=1):
    events = [
        EventSnapshot(
            id=f"e{i}",
            title=f"Event {i}",
            owner_id="u1",
            date=datetime(2025, 1, 1 + i),
            markup_type=MarkupType.PERCENTAGE,
            markup_value=Decimal("20"),
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
        )
        for i in range(count)
    ]
    items = [LineItemSnapshot(f"e{i}", Decimal(100 + i), 1) for i in range(count)]
    attendance = [AttendanceSnapshot(f"e{i}", 10, 9) for i in range(count)]
    visible = VisibleEvents(tuple(events), frozenset(e.id for e in events))
    return aggregate_portfolio(visible, items, attendance, []), events, items, attendance


class TestFallbackSummary:
    def test_overview_text(self):
        report, *_ = _report(1)
        assert fallback_summary(report) == (
            "Overview: 1 events, 1 items; total cost PHP 100.00, est. revenue PHP 108.00. "
            'Pricing: average cost/event PHP 100.00; top cost event "Event 0" at PHP 100.00. '
            "Recommendations: audit high-cost events, align markup/discount to target margins, "
            "and standardize item templates to reduce variance."
        )

    def test_empty_portfolio_uses_placeholder(self):
        report = aggregate_portfolio(VisibleEvents(), [], [], [])
        text = fallback_summary(report, currency="USD")
        assert 'top cost event "N/A" at USD 0.00' in text
        assert text.startswith("Overview: 0 events, 0 items; total cost USD 0.00")


class TestBuildInsightContext:
    def setup_method(self):
        self.report, self.events, self.items, self.attendance = _report(8)

    def test_totals_and_attendance(self):
        context = build_insight_context(self.report)
        assert context["totals"]["events"] == 8
        assert context["totals"]["total_cost_php"] == "828.00"
        assert context["attendance"]["attendance_rate"] == "90.0"
        assert context["predictions"] is None

    def test_top_events_limited_to_narrative_size(self):
        context = build_insight_context(self.report, narrative_top_n=3)
        assert [e["name"] for e in context["top_events"]] == ["Event 7", "Event 6", "Event 5"]

    def test_cost_trends_within_chart_window(self):
        context = build_insight_context(self.report, chart_top_n=4)
        trends = context["descriptive_analytics"]["cost_trends"]
        assert trends["highest_cost_event"] == {"name": "Event 7", "cost_php": "107.00"}
        assert trends["lowest_cost_event"] == {"name": "Event 4", "cost_php": "104.00"}

    def test_time_series_is_chronological(self):
        series = build_insight_context(self.report)["descriptive_analytics"]["time_series_summary"]
        assert series[0] == {"date": "2025-01-01", "cost_php": "100.00"}
        assert len(series) == 8

    def test_revenue_analysis(self):
        revenue = build_insight_context(self.report)["descriptive_analytics"]["revenue_analysis"]
        assert revenue["total_revenue_php"] == "894.24"
        assert revenue["profit_margin_php"] == "66.24"

    def test_prediction_section_from_forecast_payload(self):
        payload = BaselineForecaster().forecast(
            self.events, self.items, self.attendance, today=datetime(2025, 3, 1).date()
        ).as_payload()
        predictions = build_insight_context(self.report, payload)["predictions"]
        assert len(predictions["next_30_days_summary"]) == 5
        assert predictions["next_30_days_summary"][0]["date"] == "2025-02-01"
        assert "avg_daily_cost_php" in predictions["trends"]

    def test_empty_report_context(self):
        report = aggregate_portfolio(VisibleEvents(), [], [], [])
        context = build_insight_context(report)
        assert context["top_events"] == []
        assert context["descriptive_analytics"]["cost_trends"]["highest_cost_event"] is None

    def test_extreme_forecast_values_render(self):
        forecast = {
            "trends": {"avg_daily_cost": float("nan"), "avg_daily_revenue": "Infinity"},
            "predictions": [
                {"date": "2025-04-01", "predicted_cost": 1e40, "predicted_revenue": float("inf")},
            ],
        }
        predictions = build_insight_context(self.report, forecast)["predictions"]
        row = predictions["next_30_days_summary"][0]
        assert row["predicted_cost_php"] == "1" + "0" * 40 + ".00"
        assert row["predicted_revenue_php"] == "0.00"
        assert predictions["trends"]["avg_daily_cost_php"] == "0.00"
        assert predictions["trends"]["avg_daily_revenue_php"] == "0.00"

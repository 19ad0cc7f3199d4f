"""Tests for portfolio and single-event aggregation (event_engines/portfolio.py)."""

from datetime import datetime
from decimal import Decimal

from event_engines.portfolio import aggregate_event, aggregate_portfolio
from event_engines.scope import FilterCriteria, VisibleEvents, apply_filters
from event_kernel.domain.dtos import (
    AttendanceSnapshot,
    EventSnapshot,
    FeedbackSnapshot,
    LineItemSnapshot,
)
from event_kernel.domain.values import DiscountType, MarkupType


def _visible(events):
    return VisibleEvents(events=tuple(events), ids=frozenset(e.id for e in events))


class TestAggregatePortfolio:
    def setup_method(self):
        self.gala = EventSnapshot(
            id="gala",
            title="Gala",
            owner_id="u1",
            date=datetime(2025, 2, 14),
            category="Gala",
            markup_type=MarkupType.PERCENTAGE,
            markup_value=Decimal("20"),
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
        )
        self.wedding = EventSnapshot(
            id="wedding",
            title="Wedding",
            owner_id="u1",
            date=datetime(2025, 1, 20),
            category="Wedding",
            markup_type=MarkupType.FIXED,
            markup_value=Decimal("50"),
        )
        self.hidden = EventSnapshot(id="hidden", title="Hidden", owner_id="u9")
        self.items = [
            LineItemSnapshot("gala", Decimal("50"), 2),
            LineItemSnapshot("wedding", Decimal("30"), None),
            LineItemSnapshot("wedding", Decimal("20"), 1),
            LineItemSnapshot("hidden", Decimal("1000"), 1),
        ]
        self.attendance = [
            AttendanceSnapshot("gala", 100, 80),
            AttendanceSnapshot("wedding", 50, 50),
            AttendanceSnapshot("hidden", 1000, 1000),
        ]
        self.feedback = [
            FeedbackSnapshot("gala", rating=Decimal("4")),
            FeedbackSnapshot("wedding", rating=Decimal("5")),
            FeedbackSnapshot("wedding", rating=None),
            FeedbackSnapshot("hidden", rating=Decimal("1")),
        ]
        self.report = aggregate_portfolio(
            _visible([self.gala, self.wedding]), self.items, self.attendance, self.feedback
        )

    def test_totals_restricted_to_visible_events(self):
        assert self.report.total_events == 2
        assert self.report.total_items == 3
        assert self.report.total_item_cost == Decimal("150")

    def test_estimated_revenue_sums_final_prices(self):
        # gala: 100 -> 120 -> 108; wedding: 50 -> 100
        assert self.report.estimated_revenue == Decimal("208")
        assert self.report.gross_profit == Decimal("58")

    def test_attendance_totals_and_rate(self):
        assert self.report.expected_total == 150
        assert self.report.actual_total == 130
        assert abs(self.report.attendance_rate - Decimal("86.6667")) < Decimal("0.0001")

    def test_average_rating_ignores_unrated(self):
        assert self.report.avg_rating == Decimal("4.5")
        assert self.report.total_responses == 3

    def test_averages(self):
        assert self.report.avg_cost_per_event == Decimal("75")
        assert self.report.avg_items_per_event == Decimal("1.5")
        assert self.report.avg_revenue_per_event == Decimal("104")

    def test_statistics_over_item_costs_and_quantities(self):
        assert self.report.cost_statistics.count == 3
        assert self.report.cost_statistics.mean == Decimal("100") / 3
        assert self.report.quantity_statistics.maximum == Decimal("2")
        assert self.report.quantity_statistics.minimum == Decimal("1")

    def test_chart_series(self):
        assert [p.title for p in self.report.top_by_cost] == ["Gala", "Wedding"]
        assert [p.name for p in self.report.cost_timeline] == ["Wedding", "Gala"]
        assert [(p.name, p.value) for p in self.report.attendance_pie] == [
            ("Expected", Decimal("150")),
            ("Actual", Decimal("130")),
        ]
        assert {(s.name, s.y) for s in self.report.scatter} == {("Gala", 100), ("Wedding", 50)}

    def test_logs_aggregation(self, captured_logs):
        aggregate_portfolio(_visible([self.gala]), self.items, self.attendance, self.feedback)
        messages = [r["message"] for r in captured_logs()]
        assert "portfolio_aggregation_started" in messages
        assert "portfolio_aggregation_calculated" in messages


class TestEmptyPortfolio:
    def test_no_visible_events(self):
        report = aggregate_portfolio(VisibleEvents(), [], [], [])
        assert report.is_empty
        assert report.total_item_cost == Decimal("0")
        assert report.avg_cost_per_event == Decimal("0")
        assert report.attendance_rate == Decimal("0")
        assert report.profit_margin_pct == Decimal("0")
        assert report.cost_statistics.count == 0

    def test_filters_that_exclude_everything(self):
        events = [EventSnapshot(id="a", title="A", owner_id="u1", category="Gala")]
        visible = apply_filters(events, [], FilterCriteria(category="Wedding"))
        assert aggregate_portfolio(visible, [], [], []).is_empty


class TestAggregateEvent:
    def test_single_event_report(self):
        event = EventSnapshot(
            id="e1",
            title="Launch",
            owner_id="u1",
            markup_type=MarkupType.PERCENTAGE,
            markup_value=Decimal("25"),
        )
        items = [LineItemSnapshot("e1", Decimal("40"), 2), LineItemSnapshot("e2", Decimal("5"), 1)]
        feedback = [
            FeedbackSnapshot("e1", rating=Decimal("3"), sentiment="neutral"),
            FeedbackSnapshot("e1", rating=Decimal("5"), sentiment="positive"),
        ]
        report = aggregate_event(
            event, items, AttendanceSnapshot("e1", 40, 30), feedback, attendance_records=10
        )
        assert report.priced.final_price == Decimal("100")
        assert report.attendance_rate == Decimal("75")
        assert report.attendance_record_rate == Decimal("25")
        assert report.feedback.average_rating == Decimal("4")
        assert report.feedback.response_rate == Decimal("5")
        assert len(report.items) == 1

    def test_without_attendance(self):
        event = EventSnapshot(id="e1", title="Launch", owner_id="u1")
        report = aggregate_event(event, [], None, [])
        assert report.expected_attendees == 0
        assert report.attendance_rate == Decimal("0")

"""Tests for ratio helpers and feedback summaries (event_engines/rates.py)."""

from decimal import Decimal

from event_engines.rates import average_rating, feedback_summary, rate, safe_rate
from event_kernel.domain.dtos import FeedbackSnapshot


class TestSafeRate:
    def test_zero_expected_yields_zero(self):
        assert rate(5, 0) == Decimal("0")

    def test_negative_expected_yields_zero(self):
        assert safe_rate(5, -3) == Decimal("0")

    def test_half_attendance(self):
        assert rate(5, 10) == Decimal("50")

    def test_over_attendance_exceeds_hundred(self):
        assert safe_rate(15, 10) == Decimal("150")


class TestAverageRating:
    def test_ignores_missing_and_non_numeric(self):
        responses = [
            FeedbackSnapshot("e1", rating=Decimal("4")),
            FeedbackSnapshot("e1", rating=None),
            FeedbackSnapshot("e1", rating="great"),
            FeedbackSnapshot("e1", rating=5),
        ]
        assert average_rating(responses) == Decimal("4.5")

    def test_no_ratings_yields_zero(self):
        assert average_rating([FeedbackSnapshot("e1")]) == Decimal("0")


class TestFeedbackSummary:
    def test_counts_and_response_rate(self):
        responses = [
            FeedbackSnapshot("e1", rating=Decimal("5"), sentiment="positive"),
            FeedbackSnapshot("e1", rating=Decimal("3"), sentiment="neutral"),
            FeedbackSnapshot("e1", rating=None, sentiment="negative"),
            FeedbackSnapshot("e1", rating=Decimal("4"), sentiment="mixed"),
        ]
        summary = feedback_summary(responses, expected_attendees=8)
        assert summary.total_responses == 4
        assert summary.rated_responses == 3
        assert summary.average_rating == Decimal("4")
        assert summary.response_rate == Decimal("50")
        assert summary.sentiment_counts == {"positive": 1, "neutral": 1, "negative": 1}

    def test_no_expected_attendees(self):
        summary = feedback_summary([FeedbackSnapshot("e1", rating=4)], expected_attendees=0)
        assert summary.response_rate == Decimal("0")

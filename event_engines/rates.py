"""
event_engines.rates -- Percentage rates and feedback aggregates.

Responsibility:
    The single division guard for attendance and response rates, plus the
    average rating and a feedback summary over a set of responses.

Invariants enforced:
    - safe_rate returns 0 when the denominator is not positive; the result
      is never infinite or NaN.
    - Responses whose rating is missing or non-numeric are excluded from
      the average but counted in total responses.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from event_kernel.domain.dtos import FeedbackSnapshot
from event_kernel.domain.values import HUNDRED, ZERO, Sentiment, to_decimal


def safe_rate(actual: Decimal | int, expected: Decimal | int) -> Decimal:
    """``actual / expected x 100``, or 0 when ``expected`` is not positive."""
    expected = to_decimal(expected)
    if expected <= ZERO:
        return ZERO
    return to_decimal(actual) / expected * HUNDRED


rate = safe_rate


def average_rating(responses: Iterable[FeedbackSnapshot]) -> Decimal:
    """Mean of numeric ratings; 0 when there are none."""
    ratings = [to_decimal(r.rating) for r in responses if r.is_rated]
    if not ratings:
        return ZERO
    return sum(ratings, ZERO) / len(ratings)


@dataclass(frozen=True)
class FeedbackSummary:
    total_responses: int
    rated_responses: int
    average_rating: Decimal
    response_rate: Decimal
    sentiment_counts: dict[str, int] = field(default_factory=dict)


def feedback_summary(
    responses: Iterable[FeedbackSnapshot],
    expected_attendees: int,
) -> FeedbackSummary:
    """Totals, average rating, sentiment counts and response rate."""
    responses = list(responses)
    counts = {s.value: 0 for s in Sentiment}
    for r in responses:
        if r.sentiment in counts:
            counts[r.sentiment] += 1
    return FeedbackSummary(
        total_responses=len(responses),
        rated_responses=sum(1 for r in responses if r.is_rated),
        average_rating=average_rating(responses),
        response_rate=safe_rate(len(responses), expected_attendees),
        sentiment_counts=counts,
    )

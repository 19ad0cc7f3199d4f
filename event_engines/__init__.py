"""
Module: event_engines
Responsibility:
    Package entrypoint re-exporting the pure analytics engines: pricing
    cascade, distribution statistics, rates, scope and filters, portfolio
    aggregation, monthly trends, ranking, the baseline forecaster and the
    insight narrative helpers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import event_kernel.domain, event_kernel.exceptions and
    event_kernel.logging_config.  MUST NOT import event_services or the
    kernel's db, models, selectors or services.

Invariants enforced:
    - Engines never read the clock; dates are passed in.
    - Decimal-only arithmetic for money and rates.
    - Identical inputs always produce identical outputs.

Usage:
    from event_engines import apply_filters, aggregate_portfolio

    visible = apply_filters(events, attendance, FilterCriteria(category="Wedding"))
    report = aggregate_portfolio(visible, items, attendance, feedback)
"""

from event_kernel.logging_config import get_logger

logger = get_logger("engines")

from event_engines.forecast import BaselineForecaster, ForecastResult, MonthlyPrediction
from event_engines.narrative import build_insight_context, fallback_summary
from event_engines.portfolio import (
    ChartPoint,
    EventReport,
    PortfolioReport,
    ScatterPoint,
    aggregate_event,
    aggregate_portfolio,
)
from event_engines.pricing import (
    PricedEvent,
    PricingBreakdown,
    base_cost,
    calculate_pricing,
    price_event,
)
from event_engines.ranking import top_n
from event_engines.rates import FeedbackSummary, average_rating, feedback_summary, rate, safe_rate
from event_engines.scope import FilterCriteria, VisibleEvents, apply_filters, resolve_scope
from event_engines.statistics import StatisticsBlock, cost_statistics, quantity_statistics
from event_engines.trends import TimeBucket, TrendMetric, bucket_by_month, merge_series, month_key

__all__ = [
    "logger",
    # Pricing
    "PricedEvent",
    "PricingBreakdown",
    "base_cost",
    "calculate_pricing",
    "price_event",
    # Statistics
    "StatisticsBlock",
    "cost_statistics",
    "quantity_statistics",
    # Rates
    "FeedbackSummary",
    "average_rating",
    "feedback_summary",
    "rate",
    "safe_rate",
    # Scope
    "FilterCriteria",
    "VisibleEvents",
    "apply_filters",
    "resolve_scope",
    # Portfolio
    "ChartPoint",
    "EventReport",
    "PortfolioReport",
    "ScatterPoint",
    "aggregate_event",
    "aggregate_portfolio",
    # Trends
    "TimeBucket",
    "TrendMetric",
    "bucket_by_month",
    "merge_series",
    "month_key",
    # Ranking
    "top_n",
    # Forecast
    "BaselineForecaster",
    "ForecastResult",
    "MonthlyPrediction",
    # Narrative
    "build_insight_context",
    "fallback_summary",
]

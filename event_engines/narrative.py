"""
event_engines.narrative -- Context for the insight generator and the fallback text.

Responsibility:
    Turn a PortfolioReport (and optionally a forecast payload) into the
    structured numeric context sent to the text-generation collaborator,
    and render the deterministic summary used whenever that collaborator
    fails.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Monetary values in the context are strings with two decimals in the
      configured currency unit (not cents).
    - The fallback text depends only on the report, so a failed generation
      still persists a reproducible insight.
    - Amount rendering is total: very large values keep every integer
      digit, and non-finite values render as zero.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from event_kernel.domain.values import ZERO, round_half_up, to_decimal
from event_engines.portfolio import PortfolioReport
from event_engines.ranking import CHART_TOP_N, NARRATIVE_TOP_N, top_n
from event_engines.scope import EPOCH

TIMELINE_LIMIT = 30
PREDICTION_LIMIT = 5


def _fixed(value: Any, places: int = 2) -> str:
    return f"{round_half_up(to_decimal(value), places):.{places}f}"


def _prediction_context(forecast: Mapping[str, Any]) -> dict[str, Any]:
    trends = forecast.get("trends") or {}
    rows = list(forecast.get("predictions") or [])[:PREDICTION_LIMIT]
    return {
        "trends": {
            "cost_growth_rate": trends.get("cost_growth_rate") or 0,
            "revenue_growth_rate": trends.get("revenue_growth_rate") or 0,
            "avg_daily_cost_php": _fixed(trends.get("avg_daily_cost")),
            "avg_daily_revenue_php": _fixed(trends.get("avg_daily_revenue")),
            "avg_daily_events": _fixed(trends.get("avg_daily_events")),
            "avg_daily_expected_attendees": _fixed(
                trends.get("avg_daily_expected_attendees"), 0
            ),
        },
        "next_30_days_summary": [
            {
                "date": row.get("date"),
                "predicted_cost_php": _fixed(row.get("predicted_cost")),
                "predicted_revenue_php": _fixed(row.get("predicted_revenue")),
                "predicted_events": row.get("predicted_events") or 0,
                "predicted_expected_attendees": row.get("predicted_expected_attendees") or 0,
            }
            for row in rows
        ],
    }


def build_insight_context(
    report: PortfolioReport,
    forecast: Mapping[str, Any] | None = None,
    narrative_top_n: int = NARRATIVE_TOP_N,
    chart_top_n: int = CHART_TOP_N,
) -> dict[str, Any]:
    """
    Structured context for the text-generation collaborator.

    Sections: totals, attendance, top events, descriptive analytics (cost
    timeline, highest/lowest cost among the charted events, revenue
    analysis) and, when a forecast is given, prediction trends.
    """
    chart = top_n(report.priced_events, chart_top_n, key="base_cost")
    timeline = list(report.cost_timeline)[-TIMELINE_LIMIT:]

    def cost_entry(index: int) -> dict[str, str] | None:
        if not chart:
            return None
        return {"name": chart[index].title, "cost_php": _fixed(chart[index].base_cost)}

    return {
        "totals": {
            "events": report.total_events,
            "items": report.total_items,
            "total_cost_php": _fixed(report.total_item_cost),
            "estimated_revenue_php": _fixed(report.estimated_revenue),
            "avg_cost_per_event_php": _fixed(report.avg_cost_per_event),
            "avg_items_per_event": _fixed(report.avg_items_per_event),
        },
        "attendance": {
            "expected_total": report.expected_total,
            "actual_total": report.actual_total,
            "attendance_rate": _fixed(report.attendance_rate, 1),
            "avg_rating": _fixed(report.avg_rating),
        },
        "top_events": [
            {"name": p.title, "cost_php": _fixed(p.base_cost)}
            for p in chart[:narrative_top_n]
        ],
        "descriptive_analytics": {
            "time_series_summary": [
                {
                    "date": (point.date or EPOCH).date().isoformat(),
                    "cost_php": _fixed(point.value),
                }
                for point in timeline
            ],
            "cost_trends": {
                "highest_cost_event": cost_entry(0),
                "lowest_cost_event": cost_entry(-1),
            },
            "revenue_analysis": {
                "total_revenue_php": _fixed(report.estimated_revenue),
                "avg_revenue_per_event_php": _fixed(report.avg_revenue_per_event),
                "profit_margin_php": _fixed(report.gross_profit),
                "profit_margin_percent": _fixed(report.profit_margin_pct, 1),
            },
        },
        "predictions": _prediction_context(forecast) if forecast else None,
    }


def fallback_summary(report: PortfolioReport, currency: str = "PHP") -> str:
    """Deterministic overview used when the generator fails."""
    top = top_n(report.priced_events, 1, key="base_cost")
    top_name = top[0].title if top else "N/A"
    top_cost = top[0].base_cost if top else ZERO
    return (
        f"Overview: {report.total_events} events, {report.total_items} items; "
        f"total cost {currency} {_fixed(report.total_item_cost)}, "
        f"est. revenue {currency} {_fixed(report.estimated_revenue)}. "
        f"Pricing: average cost/event {currency} {_fixed(report.avg_cost_per_event)}; "
        f'top cost event "{top_name}" at {currency} {_fixed(top_cost)}. '
        "Recommendations: audit high-cost events, align markup/discount to target "
        "margins, and standardize item templates to reduce variance."
    )

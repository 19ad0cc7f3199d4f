"""
event_engines.ranking -- Bounded top-N views of priced events.

Sorting is stable and descending, so events with equal keys keep their
original relative order.
"""

from __future__ import annotations

from collections.abc import Iterable

from event_engines.pricing import PricedEvent

CHART_TOP_N = 10
NARRATIVE_TOP_N = 5

RANK_KEYS = ("base_cost", "final_price", "gross_profit")


def top_n(
    priced: Iterable[PricedEvent],
    n: int = CHART_TOP_N,
    key: str = "base_cost",
) -> list[PricedEvent]:
    """First ``n`` events by ``key`` (descending, ties in input order)."""
    if key not in RANK_KEYS:
        raise ValueError(f"Unsupported ranking key: {key!r}")
    if n <= 0:
        return []
    ranked = sorted(priced, key=lambda p: getattr(p, key), reverse=True)
    return ranked[:n]

"""
event_engines.statistics -- Descriptive statistics over cost and quantity samples.

Responsibility:
    Mean, median, mode, min, max, range and population standard deviation
    of a numeric sample, plus a one-line qualitative description of how
    much the sample varies.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - An empty sample yields zeros and the "all the same" description;
      nothing raises.
    - Standard deviation is the population form (divisor n).
    - Mode ties resolve to the smallest value among the most frequent, so
      the result does not depend on input order.
    - Quantity statistics carry no mode and no standard deviation.

Usage:
    from event_engines.statistics import cost_statistics

    block = cost_statistics([Decimal("10"), Decimal("20"), Decimal("20"), Decimal("30")])
    block.mean, block.mode  # Decimal("20"), Decimal("20")
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from event_kernel.domain.values import ZERO, to_decimal
from event_kernel.logging_config import get_logger
from event_engines.tracer import traced_engine

logger = get_logger("engines.statistics")

TWO = Decimal("2")

COST_SAME = "All items have the same cost"
COST_VERY_CONSISTENT = "Item costs are very consistent"
COST_MODERATELY_CONSISTENT = "Item costs are moderately consistent"
COST_VARY = "Item costs vary significantly"

QUANTITY_SAME = "All items have the same quantity"
QUANTITY_VERY_SIMILAR = "Item quantities are very similar"
QUANTITY_MODERATELY_VARIED = "Item quantities are moderately varied"
QUANTITY_VARY = "Item quantities vary significantly"


@dataclass(frozen=True)
class StatisticsBlock:
    """Descriptive statistics of one sample."""

    count: int
    mean: Decimal
    median: Decimal
    minimum: Decimal
    maximum: Decimal
    range: Decimal
    description: str
    mode: Decimal | None = None
    standard_deviation: Decimal | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "mode": self.mode,
            "min": self.minimum,
            "max": self.maximum,
            "range": self.range,
            "standard_deviation": self.standard_deviation,
            "description": self.description,
        }


def _median(ordered: list[Decimal]) -> Decimal:
    n = len(ordered)
    mid = n // 2
    if n % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / TWO


def _mode(values: list[Decimal]) -> Decimal:
    counts = Counter(values)
    top = max(counts.values())
    return min(v for v, c in counts.items() if c == top)


def _population_std(values: list[Decimal], mean: Decimal) -> Decimal:
    variance = sum(((v - mean) ** 2 for v in values), ZERO) / len(values)
    return variance.sqrt()


def describe_cost_spread(std: Decimal, mean: Decimal) -> str:
    if std == ZERO:
        return COST_SAME
    if std < mean * Decimal("0.1"):
        return COST_VERY_CONSISTENT
    if std < mean * Decimal("0.3"):
        return COST_MODERATELY_CONSISTENT
    return COST_VARY


def describe_quantity_spread(spread: Decimal) -> str:
    if spread == ZERO:
        return QUANTITY_SAME
    if spread <= 2:
        return QUANTITY_VERY_SIMILAR
    if spread <= 5:
        return QUANTITY_MODERATELY_VARIED
    return QUANTITY_VARY


@traced_engine("statistics", "1.0")
def cost_statistics(sample: Iterable[Decimal | int | float]) -> StatisticsBlock:
    """Full statistics block for a cost sample."""
    values = [to_decimal(v) for v in sample]
    if not values:
        return StatisticsBlock(
            count=0, mean=ZERO, median=ZERO, minimum=ZERO, maximum=ZERO,
            range=ZERO, description=COST_SAME, mode=ZERO, standard_deviation=ZERO,
        )

    ordered = sorted(values)
    mean = sum(values, ZERO) / len(values)
    std = _population_std(values, mean)
    block = StatisticsBlock(
        count=len(values),
        mean=mean,
        median=_median(ordered),
        minimum=ordered[0],
        maximum=ordered[-1],
        range=ordered[-1] - ordered[0],
        description=describe_cost_spread(std, mean),
        mode=_mode(values),
        standard_deviation=std,
    )
    logger.debug("cost_statistics_calculated", extra={
        "count": block.count,
        "mean": str(block.mean),
        "standard_deviation": str(std),
    })
    return block


@traced_engine("statistics", "1.0")
def quantity_statistics(sample: Iterable[Decimal | int | float]) -> StatisticsBlock:
    """Statistics block for a quantity sample (no mode, no deviation)."""
    values = [to_decimal(v) for v in sample]
    if not values:
        return StatisticsBlock(
            count=0, mean=ZERO, median=ZERO, minimum=ZERO, maximum=ZERO,
            range=ZERO, description=QUANTITY_SAME,
        )

    ordered = sorted(values)
    spread = ordered[-1] - ordered[0]
    return StatisticsBlock(
        count=len(values),
        mean=sum(values, ZERO) / len(values),
        median=_median(ordered),
        minimum=ordered[0],
        maximum=ordered[-1],
        range=spread,
        description=describe_quantity_spread(spread),
    )

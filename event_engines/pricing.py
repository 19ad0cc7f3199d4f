"""
event_engines.pricing -- Pricing cascade: base cost -> markup -> discount.

Responsibility:
    Turn an event's line items and its markup/discount rule into a priced
    breakdown: base cost, markup, price after markup, discount, final
    price, gross profit and profit margin.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only event_kernel.domain and event_kernel.exceptions.

Invariants enforced:
    - Fixed order: markup is applied to the base cost, the discount to the
      post-markup price (never to the base cost).
    - final_price >= 0 for any non-negative input, however large the
      discount.
    - profit_margin_pct is 0 when final_price is 0 (division guard lives
      here and in rates.safe_rate only).
    - discount_value is ignored when discount_type is "none".

Failure modes:
    - InvalidPricingRuleError for a markup or discount type outside the
      supported values.  Negative amounts are not rejected; preventing
      them at entry is the caller's responsibility.

Usage:
    from event_engines.pricing import calculate_pricing

    result = calculate_pricing(
        base_cost=Decimal("100"),
        markup_type="percentage", markup_value=Decimal("20"),
        discount_type="percentage", discount_value=Decimal("10"),
    )
    result.final_price  # Decimal("108")
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from event_kernel.domain.dtos import EventSnapshot, LineItemSnapshot
from event_kernel.domain.values import HUNDRED, ZERO, DiscountType, MarkupType, to_decimal
from event_kernel.exceptions import InvalidPricingRuleError
from event_kernel.logging_config import get_logger
from event_engines.tracer import traced_engine

logger = get_logger("engines.pricing")


@dataclass(frozen=True)
class PricingBreakdown:
    """Result of one pass through the cascade."""

    base_cost: Decimal
    markup_amount: Decimal
    price_after_markup: Decimal
    discount_amount: Decimal
    final_price: Decimal
    gross_profit: Decimal
    profit_margin_pct: Decimal


@dataclass(frozen=True)
class PricedEvent:
    """
    An event together with its pricing breakdown.

    Recomputed on every aggregation; never cached across item or rule
    changes.
    """

    event_id: str
    title: str
    pricing: PricingBreakdown
    item_count: int = 0
    date: datetime | None = None
    category: str | None = None

    @property
    def base_cost(self) -> Decimal:
        return self.pricing.base_cost

    @property
    def final_price(self) -> Decimal:
        return self.pricing.final_price

    @property
    def gross_profit(self) -> Decimal:
        return self.pricing.gross_profit


def _markup_type(value: MarkupType | str) -> MarkupType:
    try:
        return MarkupType(value)
    except ValueError:
        raise InvalidPricingRuleError("markup_type", str(value)) from None


def _discount_type(value: DiscountType | str | None) -> DiscountType:
    if value is None:
        return DiscountType.NONE
    try:
        return DiscountType(value)
    except ValueError:
        raise InvalidPricingRuleError("discount_type", str(value)) from None


def base_cost(items: Iterable[LineItemSnapshot]) -> Decimal:
    """Sum of ``cost x quantity``; quantity defaults to 1; 0 for no items."""
    return sum((item.line_cost for item in items), ZERO)


@traced_engine(
    "pricing",
    "1.0",
    fingerprint_fields=(
        "base_cost",
        "markup_type",
        "markup_value",
        "discount_type",
        "discount_value",
    ),
)
def calculate_pricing(
    *,
    base_cost: Decimal,
    markup_type: MarkupType | str,
    markup_value: Decimal,
    discount_type: DiscountType | str | None,
    discount_value: Decimal,
) -> PricingBreakdown:
    """
    Run the pricing cascade.

    Postconditions:
        final_price >= 0.  gross_profit may be negative.
    """
    t0 = time.monotonic()
    base = to_decimal(base_cost)
    markup_kind = _markup_type(markup_type)
    discount_kind = _discount_type(discount_type)
    markup_value = to_decimal(markup_value)
    discount_value = to_decimal(discount_value)

    logger.debug("pricing_started", extra={
        "base_cost": str(base),
        "markup_type": markup_kind.value,
        "markup_value": str(markup_value),
        "discount_type": discount_kind.value,
        "discount_value": str(discount_value),
    })

    if markup_kind is MarkupType.PERCENTAGE:
        markup_amount = base * markup_value / HUNDRED
    else:
        markup_amount = markup_value
    price_after_markup = base + markup_amount

    if discount_kind is DiscountType.NONE:
        discount_amount = ZERO
    elif discount_kind is DiscountType.PERCENTAGE:
        discount_amount = price_after_markup * discount_value / HUNDRED
    else:
        discount_amount = discount_value

    final_price = max(ZERO, price_after_markup - discount_amount)
    gross_profit = final_price - base
    if final_price > ZERO:
        profit_margin_pct = gross_profit / final_price * HUNDRED
    else:
        profit_margin_pct = ZERO

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.debug("pricing_calculated", extra={
        "final_price": str(final_price),
        "gross_profit": str(gross_profit),
        "clamped": price_after_markup - discount_amount < ZERO,
        "duration_ms": duration_ms,
    })

    return PricingBreakdown(
        base_cost=base,
        markup_amount=markup_amount,
        price_after_markup=price_after_markup,
        discount_amount=discount_amount,
        final_price=final_price,
        gross_profit=gross_profit,
        profit_margin_pct=profit_margin_pct,
    )


def price_event(event: EventSnapshot, items: Iterable[LineItemSnapshot]) -> PricedEvent:
    """Price ``event`` from its own line items."""
    own_items = [item for item in items if item.event_id == event.id]
    breakdown = calculate_pricing(
        base_cost=base_cost(own_items),
        markup_type=event.markup_type,
        markup_value=event.markup_value,
        discount_type=event.discount_type,
        discount_value=event.discount_value,
    )
    return PricedEvent(
        event_id=event.id,
        title=event.title,
        pricing=breakdown,
        item_count=len(own_items),
        date=event.date,
        category=event.category,
    )

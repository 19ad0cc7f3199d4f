"""
Value types for event analytics.

Enumerations for pricing rules, visibility scope and feedback sentiment,
plus Decimal coercion helpers.  All monetary and rate arithmetic in the
engines runs on ``Decimal``; floats arriving from storage or collaborators
are converted through ``to_decimal`` (via ``str`` so that ``0.1`` stays
``Decimal("0.1")``).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class MarkupType(str, Enum):
    """How an event's markup value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class DiscountType(str, Enum):
    """How an event's discount value is interpreted."""

    NONE = "none"
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Scope(str, Enum):
    """Which events are visible to the requesting user."""

    OWNED = "owned"
    JOINED = "joined"
    BOTH = "both"


class Sentiment(str, Enum):
    """Feedback sentiment label."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Coerce a numeric value to Decimal.

    None, booleans and non-numeric strings yield ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return default
    return default


def is_numeric(value: Any) -> bool:
    """True for int, float or Decimal values (booleans excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return value == value and value not in (float("inf"), float("-inf"))
    return isinstance(value, int)


def round_half_up(amount: Decimal, places: int = 2) -> Decimal:
    """
    Round to ``places`` decimals, half-up, at any magnitude.

    Precision is widened to fit the integer digits, so very large values
    never raise InvalidOperation.  Non-finite values yield ZERO.
    """
    if not amount.is_finite():
        return ZERO
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + places + 2)
        return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def quantize_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return round_half_up(amount, 2)


def format_money(amount: Decimal, currency: str = "PHP") -> str:
    """Render an amount as ``"PHP 1,350.00"``."""
    return f"{currency} {quantize_money(amount):,.2f}"


def as_datetime(value: Any) -> datetime | None:
    """
    Normalize to a naive local ``datetime``.

    Dates become local midnight; aware datetimes are converted to local time
    and stripped of tzinfo so that values from storage and from callers
    compare safely.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")

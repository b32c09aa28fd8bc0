"""
Amortization of a principal amount over usage.

Turns (principal, usage count) into cost-per-use and a value tier.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Union

from .errors import InvalidInputError

Number = Union[Decimal, int, str]

WHOLE_UNIT = Decimal("1")

# Tier thresholds: used at least 20x / 10x within the period
GOOD_USAGE_DIVISOR = 20
NORMAL_USAGE_DIVISOR = 10


class CostTier(Enum):
    """Value signal for a cost-per-use figure."""
    GOOD = "good"
    NORMAL = "normal"
    WARNING = "warning"


class CostBasis(Enum):
    """Which principal and usage window a subscription is amortized over."""
    MONTHLY = "monthly"    # monthly amount / usage in the calendar month
    LIFETIME = "lifetime"  # total amount / usage since start


@dataclass(frozen=True)
class Amortization:
    """Cost-per-use and tier for a principal and usage count."""
    principal: Decimal
    usage_count: int
    cost_per_use: Decimal
    tier: CostTier


def to_decimal(value: Number) -> Decimal:
    """Convert an int, str or Decimal amount to Decimal without rounding.

    Raises:
        TypeError: If value is a float
        InvalidInputError: If value is not a number
    """
    if isinstance(value, float):
        raise TypeError("Money amounts must not be floats")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except InvalidOperation:
        raise InvalidInputError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise InvalidInputError(f"Not a valid amount: {value!r}")
    return amount


def round_half_up(value: Number) -> Decimal:
    """Round to a whole unit, halves away from zero."""
    return to_decimal(value).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def divide_half_up(numerator: Number, denominator: Number) -> Decimal:
    """Divide and round the quotient half-up to a whole unit.

    Raises:
        ZeroDivisionError: If denominator is zero
    """
    denominator = to_decimal(denominator)
    if denominator == 0:
        raise ZeroDivisionError("Cannot divide an amount by zero")
    return round_half_up(to_decimal(numerator) / denominator)


def cost_per_use(principal: Number, usage_count: int) -> Decimal:
    """Amortized cost of a single use.

    With no usage the full principal is returned unchanged, the worst case
    cost until the first use.

    Args:
        principal: Amount paid for the period
        usage_count: Number of uses within the same period

    Returns:
        Cost per use rounded half-up to a whole unit

    Raises:
        ValueError: If usage_count is negative
    """
    if usage_count < 0:
        raise ValueError("usage_count cannot be negative")
    if usage_count == 0:
        return to_decimal(principal)
    return divide_half_up(principal, usage_count)


def tier_for(cost: Number, principal: Number) -> CostTier:
    """Classify a cost-per-use relative to thresholds derived from principal."""
    cost = to_decimal(cost)
    good_threshold = divide_half_up(principal, GOOD_USAGE_DIVISOR)
    normal_threshold = divide_half_up(principal, NORMAL_USAGE_DIVISOR)

    if cost <= good_threshold:
        return CostTier.GOOD
    if cost <= normal_threshold:
        return CostTier.NORMAL
    return CostTier.WARNING


def amortize(principal: Number, usage_count: int) -> Amortization:
    """Compute cost-per-use and tier in one step."""
    cost = cost_per_use(principal, usage_count)
    return Amortization(
        principal=to_decimal(principal),
        usage_count=usage_count,
        cost_per_use=cost,
        tier=tier_for(cost, principal),
    )

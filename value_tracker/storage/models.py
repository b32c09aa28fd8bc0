"""
Data models for storage layer.

Read-only snapshots of tracked subscriptions, investments and their usage.
The calculation engine receives these and never mutates them.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from value_tracker.core.amortization import to_decimal
from value_tracker.core.errors import InvalidInputError


def _set_money(record, field_name: str) -> None:
    """Normalise an amount field to a whole-unit Decimal on a frozen dataclass."""
    amount = to_decimal(getattr(record, field_name))
    if amount != amount.to_integral_value():
        raise InvalidInputError(f"{field_name} must be a whole amount, got {amount}")
    object.__setattr__(record, field_name, amount)


@dataclass(frozen=True)
class Subscription:
    """Recurring subscription paid for a period and checked in against."""
    user_id: str
    name: str
    emoji_code: str
    period_label: str  # free text, e.g. "1개월", "3개월"
    total_amount: Decimal
    monthly_amount: Decimal
    start_date: date
    end_date: Optional[date] = None
    monthly_target_usage: Optional[int] = None
    active: bool = True
    id: Optional[int] = None

    def __post_init__(self):
        """Validate amounts and the subscription period."""
        _set_money(self, "total_amount")
        _set_money(self, "monthly_amount")
        if not self.name or not self.name.strip():
            raise InvalidInputError("name is required and cannot be empty")
        if self.monthly_amount <= 0:
            raise InvalidInputError("monthly_amount must be > 0")
        if self.total_amount <= 0:
            raise InvalidInputError("total_amount must be > 0")
        if self.end_date is not None and self.end_date < self.start_date:
            raise InvalidInputError("end_date must not be before start_date")
        if self.monthly_target_usage is not None and self.monthly_target_usage <= 0:
            # Non-positive targets mean "auto-compute"
            object.__setattr__(self, "monthly_target_usage", None)

    def is_current(self, today: date) -> bool:
        """Active and not past its end date as of today."""
        return self.active and (self.end_date is None or self.end_date >= today)


@dataclass(frozen=True)
class UsageLog:
    """Subscription check-in. At most one per subscription and day."""
    subscription_id: int
    used_at: date
    note: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Investment:
    """One-time purchase expected to pay for itself through savings."""
    user_id: str
    name: str
    emoji_code: str
    category: str
    purchase_price: Decimal
    purchase_date: date
    comparison_baseline: Decimal  # per-use price of what the purchase displaces
    note: Optional[str] = None
    active: bool = True
    id: Optional[int] = None

    def __post_init__(self):
        """Validate amounts."""
        _set_money(self, "purchase_price")
        _set_money(self, "comparison_baseline")
        if not self.name or not self.name.strip():
            raise InvalidInputError("name is required and cannot be empty")
        if self.purchase_price < 0:
            raise InvalidInputError("purchase_price cannot be negative")
        if self.comparison_baseline < 0:
            raise InvalidInputError("comparison_baseline cannot be negative")


@dataclass(frozen=True)
class InvestmentUsage:
    """Single use of an investment. Several per day are allowed."""
    investment_id: int
    used_at: date
    item_name: str
    original_price: Decimal
    actual_price: Decimal  # 0 when the investment replaced the purchase
    source: Optional[str] = None
    note: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        """Validate prices."""
        _set_money(self, "original_price")
        _set_money(self, "actual_price")
        if self.original_price < 0:
            raise InvalidInputError("original_price cannot be negative")
        if self.actual_price < 0:
            raise InvalidInputError("actual_price cannot be negative")

    @property
    def saved_amount(self) -> Decimal:
        """Money not spent thanks to the investment."""
        return self.original_price - self.actual_price

"""
Lifetime progress projection for subscriptions.

Compares usage pace against elapsed-time pace over the subscription's
declared (or assumed one-year) lifetime.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from .amortization import Number, divide_half_up
from .periods import add_months, clamp, months_between
from value_tracker.storage.models import Subscription

DEFAULT_LIFETIME_MONTHS = 12
DEFAULT_TARGET_UNIT_PRICE = Decimal("3000")

# Usage may trail elapsed time by this many points before WARNING
NORMAL_TOLERANCE = 20


class ProgressStatus(Enum):
    """How usage pace compares to elapsed time."""
    GOOD = "good"
    NORMAL = "normal"
    WARNING = "warning"

    @property
    def message(self) -> str:
        return _MESSAGES[self][0]

    @property
    def message_en(self) -> str:
        return _MESSAGES[self][1]


_MESSAGES = {
    ProgressStatus.GOOD: ("잘 쓰는 중", "using it well"),
    ProgressStatus.NORMAL: ("조금 더 사용하면 좋아요", "a bit more use recommended"),
    ProgressStatus.WARNING: ("더 가야 본전!", "further to break-even"),
}


@dataclass(frozen=True)
class SubscriptionProgress:
    """Period and usage progress of a subscription."""
    subscription_id: Optional[int]
    name: str
    total_months: int
    elapsed_months: int
    period_progress: int  # percent, floor
    monthly_target: int
    target_total_usage: int
    current_total_usage: int
    usage_progress: int  # percent, floor
    status: ProgressStatus

    @property
    def status_message(self) -> str:
        return self.status.message


def monthly_target_for(
    subscription: Subscription,
    target_unit_price: Number = DEFAULT_TARGET_UNIT_PRICE,
) -> int:
    """Explicit monthly usage goal, or one use per unit price of the fee (min 1)."""
    if subscription.monthly_target_usage:
        return subscription.monthly_target_usage
    calculated = divide_half_up(subscription.monthly_amount, target_unit_price)
    return max(1, int(calculated))


def classify_progress(usage_progress: int, period_progress: int) -> ProgressStatus:
    """Classify usage pace against elapsed-time pace."""
    if usage_progress >= period_progress:
        return ProgressStatus.GOOD
    if usage_progress >= period_progress - NORMAL_TOLERANCE:
        return ProgressStatus.NORMAL
    return ProgressStatus.WARNING


def project_progress(
    subscription: Subscription,
    current_total_usage: int,
    today: date,
    default_lifetime_months: int = DEFAULT_LIFETIME_MONTHS,
    target_unit_price: Number = DEFAULT_TARGET_UNIT_PRICE,
) -> SubscriptionProgress:
    """Project a subscription's lifetime progress as of today.

    Args:
        subscription: Subscription snapshot
        current_total_usage: Check-ins since the subscription started
        today: Reference date
        default_lifetime_months: Lifetime assumed when there is no end date
        target_unit_price: Fee per expected use when no monthly target is set

    Returns:
        SubscriptionProgress with percentages and status
    """
    start = subscription.start_date
    end = subscription.end_date or add_months(start, default_lifetime_months)

    total_days = (end - start).days
    total_months = max(1, months_between(start, end))

    elapsed_days = clamp((today - start).days, 0, total_days)
    elapsed_months = clamp(months_between(start, today), 0, total_months)

    if total_days > 0:
        period_progress = clamp(elapsed_days * 100 // total_days, 0, 100)
    else:
        # Single-day lifetime
        period_progress = 100 if today >= start else 0

    monthly_target = monthly_target_for(subscription, target_unit_price)
    target_total_usage = monthly_target * total_months
    if target_total_usage > 0:
        usage_progress = clamp(current_total_usage * 100 // target_total_usage, 0, 100)
    else:
        usage_progress = 0

    return SubscriptionProgress(
        subscription_id=subscription.id,
        name=subscription.name,
        total_months=total_months,
        elapsed_months=elapsed_months,
        period_progress=period_progress,
        monthly_target=monthly_target,
        target_total_usage=target_total_usage,
        current_total_usage=current_total_usage,
        usage_progress=usage_progress,
        status=classify_progress(usage_progress, period_progress),
    )

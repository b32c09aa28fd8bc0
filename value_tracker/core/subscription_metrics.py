"""
Per-subscription usage metrics.

Counts check-ins and amortizes the subscription fee over them.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .amortization import CostBasis, CostTier, cost_per_use, tier_for
from .periods import month_bounds
from value_tracker.storage.models import Subscription, UsageLog


@dataclass(frozen=True)
class SubscriptionMetrics:
    """Usage and cost efficiency of one subscription as of a date."""
    subscription_id: Optional[int]
    monthly_usage_count: int
    lifetime_usage_count: int
    cost_per_use: Decimal
    tier: CostTier
    checked_in_today: bool
    basis: CostBasis = CostBasis.MONTHLY


def count_usage_between(
    usage_logs: Iterable[UsageLog],
    subscription_id: Optional[int],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> int:
    """Count check-ins of a subscription with start <= used_at <= end."""
    return sum(
        1
        for log in usage_logs
        if log.subscription_id == subscription_id
        and (start is None or log.used_at >= start)
        and (end is None or log.used_at <= end)
    )


def amortization_inputs(
    subscription: Subscription,
    monthly_usage_count: int,
    lifetime_usage_count: int,
    basis: CostBasis,
) -> Tuple[Decimal, int]:
    """Principal and usage count to amortize over for the given basis."""
    if basis == CostBasis.LIFETIME:
        return subscription.total_amount, lifetime_usage_count
    return subscription.monthly_amount, monthly_usage_count


def compute_subscription_metrics(
    subscription: Subscription,
    usage_logs: Iterable[UsageLog],
    as_of: date,
    today: Optional[date] = None,
    basis: CostBasis = CostBasis.MONTHLY,
) -> SubscriptionMetrics:
    """Compute usage metrics for a subscription.

    The monthly window is the calendar month containing as_of. Under the
    default MONTHLY basis the monthly amount is amortized over that month's
    check-ins; LIFETIME amortizes the total amount over every check-in up
    to as_of.

    Args:
        subscription: Subscription snapshot
        usage_logs: Check-ins (other subscriptions' logs are ignored)
        as_of: Reference date for the monthly window
        today: Date for the checked-in-today flag (defaults to as_of)
        basis: Amortization policy

    Returns:
        SubscriptionMetrics for the subscription
    """
    logs = list(usage_logs)
    today = today or as_of
    first, last = month_bounds(as_of)

    monthly_count = count_usage_between(logs, subscription.id, first, last)
    lifetime_count = count_usage_between(logs, subscription.id, end=as_of)

    principal, count = amortization_inputs(
        subscription, monthly_count, lifetime_count, basis
    )
    cost = cost_per_use(principal, count)

    checked_in_today = any(
        log.subscription_id == subscription.id and log.used_at == today
        for log in logs
    )

    return SubscriptionMetrics(
        subscription_id=subscription.id,
        monthly_usage_count=monthly_count,
        lifetime_usage_count=lifetime_count,
        cost_per_use=cost,
        tier=tier_for(cost, principal),
        checked_in_today=checked_in_today,
        basis=basis,
    )


def summarise_subscriptions(
    subscriptions: Iterable[Subscription],
    usage_logs: Iterable[UsageLog],
    today: date,
    basis: CostBasis = CostBasis.MONTHLY,
) -> List[Tuple[Subscription, SubscriptionMetrics]]:
    """Metrics for every current subscription, in input order."""
    logs = list(usage_logs)
    return [
        (sub, compute_subscription_metrics(sub, logs, as_of=today, basis=basis))
        for sub in subscriptions
        if sub.is_current(today)
    ]

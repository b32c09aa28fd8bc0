"""
Aggregate reporting across a user's subscriptions and investments.

Produces summary totals and fixed-length monthly series for charts.
Every series has exactly one point per calendar month, zero-filled.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Sequence, Tuple, Union

from .amortization import divide_half_up
from .periods import month_bounds, recent_months
from value_tracker.storage.models import (
    Investment,
    InvestmentUsage,
    Subscription,
    UsageLog,
)

DEFAULT_REPORT_MONTHS = 6

SeriesValue = Union[int, Decimal]


@dataclass(frozen=True)
class Series:
    """Labelled data points for a chart."""
    labels: Tuple[str, ...]
    data: Tuple[SeriesValue, ...]
    months: Tuple[date, ...] = ()

    def points(self) -> List[Tuple[str, SeriesValue]]:
        return list(zip(self.labels, self.data))


@dataclass(frozen=True)
class SummaryStats:
    """Headline totals for the dashboard."""
    subscription_count: int
    total_monthly_fee: Decimal
    total_usage_count: int  # check-ins this month
    avg_cost_per_use: Decimal
    investment_count: int


@dataclass(frozen=True)
class Report:
    """Everything the statistics page shows."""
    summary: SummaryStats
    monthly_usage: Series
    cost_comparison: Series
    investment_savings: Series


def month_label(month_start: date) -> str:
    return f"{month_start.month}월"


def _monthly_series(
    today: date,
    months: int,
    records: Sequence,
    value_of,
    zero: SeriesValue,
) -> Series:
    """Sum value_of(record) per calendar month over the last `months` months."""
    starts = recent_months(today, months)
    totals = []
    for start in starts:
        first, last = month_bounds(start)
        total = zero
        for record in records:
            if first <= record.used_at <= last:
                total += value_of(record)
        totals.append(total)
    return Series(
        labels=tuple(month_label(start) for start in starts),
        data=tuple(totals),
        months=tuple(starts),
    )


def monthly_usage_series(
    subscriptions: Iterable[Subscription],
    usage_logs: Iterable[UsageLog],
    today: date,
    months: int = DEFAULT_REPORT_MONTHS,
) -> Series:
    """Check-ins per month summed across current subscriptions."""
    ids = {sub.id for sub in subscriptions if sub.is_current(today)}
    logs = [log for log in usage_logs if log.subscription_id in ids]
    return _monthly_series(today, months, logs, lambda log: 1, 0)


def cost_comparison(subscriptions: Iterable[Subscription], today: date) -> Series:
    """Monthly amount of each current subscription, in input order."""
    current = [sub for sub in subscriptions if sub.is_current(today)]
    return Series(
        labels=tuple(sub.name for sub in current),
        data=tuple(sub.monthly_amount for sub in current),
    )


def investment_savings_series(
    investments: Iterable[Investment],
    usages: Iterable[InvestmentUsage],
    today: date,
    months: int = DEFAULT_REPORT_MONTHS,
) -> Series:
    """Saved amount per month summed across active investments."""
    ids = {inv.id for inv in investments if inv.active}
    own = [usage for usage in usages if usage.investment_id in ids]
    return _monthly_series(today, months, own, lambda usage: usage.saved_amount, Decimal(0))


def summary_stats(
    subscriptions: Iterable[Subscription],
    usage_logs: Iterable[UsageLog],
    investments: Iterable[Investment],
    today: date,
) -> SummaryStats:
    """Totals across current subscriptions and active investments.

    Average cost-per-use is weighted by usage: total monthly fee over the
    total number of check-ins this month.
    """
    current = [sub for sub in subscriptions if sub.is_current(today)]
    ids = {sub.id for sub in current}
    first, last = month_bounds(today)

    total_fee = sum((sub.monthly_amount for sub in current), Decimal(0))
    total_usage = sum(
        1
        for log in usage_logs
        if log.subscription_id in ids and first <= log.used_at <= last
    )
    avg_cost = divide_half_up(total_fee, total_usage) if total_usage else Decimal(0)

    return SummaryStats(
        subscription_count=len(current),
        total_monthly_fee=total_fee,
        total_usage_count=total_usage,
        avg_cost_per_use=avg_cost,
        investment_count=sum(1 for inv in investments if inv.active),
    )


def build_report(
    subscriptions: Iterable[Subscription],
    usage_logs: Iterable[UsageLog],
    investments: Iterable[Investment],
    investment_usages: Iterable[InvestmentUsage],
    today: date,
    months: int = DEFAULT_REPORT_MONTHS,
) -> Report:
    """Build the full statistics report as of today."""
    subscriptions = list(subscriptions)
    usage_logs = list(usage_logs)
    investments = list(investments)

    return Report(
        summary=summary_stats(subscriptions, usage_logs, investments, today),
        monthly_usage=monthly_usage_series(subscriptions, usage_logs, today, months),
        cost_comparison=cost_comparison(subscriptions, today),
        investment_savings=investment_savings_series(
            investments, investment_usages, today, months
        ),
    )

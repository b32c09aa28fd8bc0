"""
Investment break-even metrics.

Tracks how much a one-time purchase has saved and how close it is to
paying for itself.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from .amortization import divide_half_up, round_half_up
from .periods import clamp
from value_tracker.storage.models import Investment, InvestmentUsage


@dataclass(frozen=True)
class InvestmentMetrics:
    """Savings and break-even progress of one investment."""
    investment_id: Optional[int]
    usage_count: int
    total_savings: Decimal
    net_profit: Decimal
    break_even_reached: bool
    break_even_remaining: Decimal
    break_even_progress: int  # percent, 0-100
    avg_savings_per_use: Decimal
    recent_usages: Tuple[InvestmentUsage, ...] = field(default_factory=tuple)


def break_even_progress(total_savings: Decimal, purchase_price: Decimal) -> int:
    """Percent of the purchase price recovered, clamped to [0, 100].

    A free purchase is always fully recovered.
    """
    if purchase_price == 0:
        return 100
    progress = round_half_up(total_savings * 100 / purchase_price)
    return clamp(int(progress), 0, 100)


def compute_investment_metrics(
    investment: Investment,
    usages: Iterable[InvestmentUsage],
    recent_limit: int = 5,
) -> InvestmentMetrics:
    """Compute savings metrics for an investment.

    Usages of other investments are ignored. No usage yields zero savings,
    not an error.

    Args:
        investment: Investment snapshot
        usages: Usage records
        recent_limit: Number of newest usages to keep for display

    Returns:
        InvestmentMetrics for the investment
    """
    own = [u for u in usages if u.investment_id == investment.id]
    usage_count = len(own)

    total_savings = sum((u.saved_amount for u in own), Decimal(0))
    net_profit = total_savings - investment.purchase_price
    reached = net_profit >= 0

    if usage_count == 0:
        avg_savings = Decimal(0)
    else:
        avg_savings = divide_half_up(total_savings, usage_count)

    # Newest first; id breaks ties between usages on the same day
    recent = sorted(
        own,
        key=lambda u: (u.used_at, u.id if u.id is not None else -1),
        reverse=True,
    )[:recent_limit]

    return InvestmentMetrics(
        investment_id=investment.id,
        usage_count=usage_count,
        total_savings=total_savings,
        net_profit=net_profit,
        break_even_reached=reached,
        break_even_remaining=Decimal(0) if reached else abs(net_profit),
        break_even_progress=break_even_progress(total_savings, investment.purchase_price),
        avg_savings_per_use=avg_savings,
        recent_usages=tuple(recent),
    )

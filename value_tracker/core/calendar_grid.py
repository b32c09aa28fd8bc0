"""
Monthly calendar grid of subscription check-ins.

Builds a Sunday-start, whole-week grid for a month and annotates each
in-month day with the check-ins made on it and what each use cost.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .amortization import CostBasis, CostTier, amortize
from .labels import subscription_glyph
from .periods import month_bounds
from value_tracker.storage.models import Subscription, UsageLog


@dataclass(frozen=True)
class UsageEntry:
    """A single check-in shown on a calendar day."""
    subscription_id: int
    subscription_name: str
    glyph: str
    cost_per_use: Decimal
    tier: CostTier


@dataclass(frozen=True)
class DayCell:
    """One day of the calendar grid."""
    date: date
    day_of_month: int
    is_current_month: bool
    is_today: bool
    usages: Tuple[UsageEntry, ...] = field(default_factory=tuple)

    @property
    def has_usages(self) -> bool:
        return bool(self.usages)


@dataclass(frozen=True)
class LegendItem:
    """Subscription shown in the calendar legend."""
    subscription_id: int
    name: str
    glyph: str


def grid_range(year: int, month: int) -> Tuple[date, date]:
    """Sunday on/before the first and Saturday on/after the last day of the month.

    Raises:
        ValueError: If month is not in 1..12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    first, last = month_bounds(date(year, month, 1))
    # date.weekday(): Monday=0 ... Sunday=6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    end = last + timedelta(days=(5 - last.weekday()) % 7)
    return start, end


def displayed_subscriptions(
    subscriptions: Iterable[Subscription], today: date
) -> List[Subscription]:
    """Subscriptions shown on the calendar: current ones only."""
    return [sub for sub in subscriptions if sub.is_current(today)]


def legend(subscriptions: Iterable[Subscription], today: date) -> List[LegendItem]:
    """Legend entries for the displayed subscriptions, in input order."""
    return [
        LegendItem(sub.id, sub.name, subscription_glyph(sub.emoji_code))
        for sub in displayed_subscriptions(subscriptions, today)
    ]


def build_month(
    subscriptions: Iterable[Subscription],
    usage_logs: Iterable[UsageLog],
    year: int,
    month: int,
    today: date,
    basis: CostBasis = CostBasis.MONTHLY,
) -> List[DayCell]:
    """Build the calendar grid for a month.

    Each check-in on an in-month day becomes a UsageEntry. Under the
    MONTHLY basis cost-per-use is the monthly amount over the number of
    check-ins in this month. Under LIFETIME it is the total amount over
    every supplied check-in up to the end of the month, so the caller must
    then supply the full history.

    Args:
        subscriptions: The user's subscriptions
        usage_logs: Check-ins covering at least the target month
        year: Calendar year
        month: Calendar month (1-12)
        today: Reference date for current subscriptions and the today marker
        basis: Amortization policy

    Returns:
        Day cells from grid start to grid end, 28 to 42 of them
    """
    grid_start, grid_end = grid_range(year, month)
    first, last = month_bounds(date(year, month, 1))

    shown: Dict[int, Subscription] = {
        sub.id: sub for sub in displayed_subscriptions(subscriptions, today)
    }
    logs = [log for log in usage_logs if log.subscription_id in shown]

    month_counts: Dict[int, int] = defaultdict(int)
    lifetime_counts: Dict[int, int] = defaultdict(int)
    logs_by_date: Dict[date, List[UsageLog]] = defaultdict(list)
    for log in logs:
        if log.used_at <= last:
            lifetime_counts[log.subscription_id] += 1
        if first <= log.used_at <= last:
            month_counts[log.subscription_id] += 1
            logs_by_date[log.used_at].append(log)

    entry_cache: Dict[int, UsageEntry] = {}

    def entry_for(subscription_id: int) -> UsageEntry:
        if subscription_id not in entry_cache:
            sub = shown[subscription_id]
            if basis == CostBasis.LIFETIME:
                result = amortize(sub.total_amount, lifetime_counts[subscription_id])
            else:
                result = amortize(sub.monthly_amount, month_counts[subscription_id])
            entry_cache[subscription_id] = UsageEntry(
                subscription_id=sub.id,
                subscription_name=sub.name,
                glyph=subscription_glyph(sub.emoji_code),
                cost_per_use=result.cost_per_use,
                tier=result.tier,
            )
        return entry_cache[subscription_id]

    cells = []
    current = grid_start
    while current <= grid_end:
        in_month = current.month == month and current.year == year
        usages: Tuple[UsageEntry, ...] = ()
        if in_month:
            day_logs = sorted(logs_by_date.get(current, []), key=lambda l: l.subscription_id)
            usages = tuple(entry_for(log.subscription_id) for log in day_logs)
        cells.append(DayCell(
            date=current,
            day_of_month=current.day,
            is_current_month=in_month,
            is_today=current == today,
            usages=usages,
        ))
        current += timedelta(days=1)

    return cells


def find_cell(cells: Iterable[DayCell], day: date) -> Optional[DayCell]:
    """Cell for a given date, or None if outside the grid."""
    for cell in cells:
        if cell.date == day:
            return cell
    return None

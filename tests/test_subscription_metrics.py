"""
Unit tests for per-subscription metrics.
"""

from datetime import date
from decimal import Decimal

from conftest import make_logs, make_subscription
from value_tracker.core.amortization import CostBasis, CostTier
from value_tracker.core.subscription_metrics import (
    compute_subscription_metrics,
    count_usage_between,
    summarise_subscriptions,
)
from value_tracker.storage.models import UsageLog


class TestMonthlyMetrics:
    """Test metrics over the calendar month."""

    def test_no_usage_costs_full_monthly_amount(self):
        """Verify the worst case cost without check-ins."""
        sub = make_subscription(monthly_amount=20000)
        metrics = compute_subscription_metrics(sub, [], as_of=date(2025, 1, 15))

        assert metrics.monthly_usage_count == 0
        assert metrics.cost_per_use == Decimal("20000")
        assert metrics.tier == CostTier.WARNING
        assert metrics.checked_in_today is False

    def test_only_current_month_counted(self):
        """Verify check-ins outside the as-of month are ignored."""
        sub = make_subscription(monthly_amount=20000)
        days = [date(2024, 12, 31)] + [date(2025, 1, d) for d in range(1, 14)] + [date(2025, 2, 1)]
        metrics = compute_subscription_metrics(sub, make_logs(1, days), as_of=date(2025, 1, 20))

        assert metrics.monthly_usage_count == 13
        assert metrics.cost_per_use == Decimal("1538")
        assert metrics.tier == CostTier.NORMAL

    def test_twenty_uses_is_good(self):
        sub = make_subscription(monthly_amount=20000)
        days = [date(2025, 1, d) for d in range(1, 21)]
        metrics = compute_subscription_metrics(sub, make_logs(1, days), as_of=date(2025, 1, 31))

        assert metrics.cost_per_use == Decimal("1000")
        assert metrics.tier == CostTier.GOOD

    def test_other_subscriptions_ignored(self):
        """Verify logs of another subscription do not count."""
        sub = make_subscription(id=1)
        logs = make_logs(2, [date(2025, 1, 5), date(2025, 1, 6)])
        metrics = compute_subscription_metrics(sub, logs, as_of=date(2025, 1, 10))
        assert metrics.monthly_usage_count == 0

    def test_checked_in_today(self):
        """Verify the flag uses the explicit today."""
        sub = make_subscription()
        logs = make_logs(1, [date(2025, 1, 10)])

        assert compute_subscription_metrics(sub, logs, as_of=date(2025, 1, 10)).checked_in_today
        assert not compute_subscription_metrics(
            sub, logs, as_of=date(2025, 1, 10), today=date(2025, 1, 11)
        ).checked_in_today


class TestLifetimeBasis:
    """Test the total-amount amortization policy."""

    def test_total_amount_over_all_usage(self):
        """Verify lifetime basis uses total amount and every use up to as_of."""
        sub = make_subscription(monthly_amount=20000, total_amount=60000)
        days = [date(2025, 1, d) for d in range(1, 11)] + [date(2025, 2, d) for d in range(1, 11)]
        days.append(date(2025, 3, 1))  # after as_of
        metrics = compute_subscription_metrics(
            sub, make_logs(1, days), as_of=date(2025, 2, 28), basis=CostBasis.LIFETIME
        )

        assert metrics.lifetime_usage_count == 20
        assert metrics.monthly_usage_count == 10
        assert metrics.cost_per_use == Decimal("3000")
        assert metrics.tier == CostTier.GOOD
        assert metrics.basis == CostBasis.LIFETIME


class TestHelpers:
    """Test counting and listing helpers."""

    def test_count_usage_between_inclusive(self):
        logs = make_logs(1, [date(2025, 1, 1), date(2025, 1, 15), date(2025, 1, 31)])
        assert count_usage_between(logs, 1, date(2025, 1, 1), date(2025, 1, 31)) == 3
        assert count_usage_between(logs, 1, date(2025, 1, 2), date(2025, 1, 30)) == 1
        assert count_usage_between(logs, 1) == 3

    def test_summarise_skips_expired_and_inactive(self):
        """Verify only current subscriptions are summarised, in input order."""
        today = date(2025, 3, 10)
        subs = [
            make_subscription(id=1, name="A"),
            make_subscription(id=2, name="B", end_date=date(2025, 3, 9)),
            make_subscription(id=3, name="C", active=False),
            make_subscription(id=4, name="D", end_date=today),
        ]
        logs = [UsageLog(subscription_id=4, used_at=today)]
        result = summarise_subscriptions(subs, logs, today)

        assert [sub.name for sub, _ in result] == ["A", "D"]
        assert result[1][1].checked_in_today is True

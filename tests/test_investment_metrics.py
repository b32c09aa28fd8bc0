"""
Unit tests for investment break-even metrics.
"""

from datetime import date
from decimal import Decimal

from conftest import make_investment, make_usage
from value_tracker.core.investment_metrics import (
    break_even_progress,
    compute_investment_metrics,
)


class TestBreakEven:
    """Test savings and break-even calculations."""

    def test_no_usage_is_zero_not_error(self):
        """Verify absent usage yields zero savings."""
        metrics = compute_investment_metrics(make_investment(purchase_price=189000), [])

        assert metrics.usage_count == 0
        assert metrics.total_savings == Decimal(0)
        assert metrics.net_profit == Decimal("-189000")
        assert metrics.break_even_reached is False
        assert metrics.break_even_remaining == Decimal("189000")
        assert metrics.break_even_progress == 0
        assert metrics.avg_savings_per_use == Decimal(0)

    def test_break_even_reached(self):
        """Verify 250000 saved on a 189000 purchase."""
        usages = [
            make_usage(1, date(2025, 2, 1), 150000),
            make_usage(1, date(2025, 3, 1), 100000),
        ]
        metrics = compute_investment_metrics(make_investment(purchase_price=189000), usages)

        assert metrics.total_savings == Decimal("250000")
        assert metrics.net_profit == Decimal("61000")
        assert metrics.break_even_reached is True
        assert metrics.break_even_remaining == Decimal(0)
        assert metrics.break_even_progress == 100

    def test_exactly_even_counts_as_reached(self):
        usages = [make_usage(1, date(2025, 2, 1), 200000)]
        metrics = compute_investment_metrics(make_investment(purchase_price=200000), usages)
        assert metrics.break_even_reached is True
        assert metrics.break_even_progress == 100

    def test_half_way(self):
        """Verify 100000 saved on a 200000 purchase is 50%."""
        usages = [make_usage(1, date(2025, 2, 1), 100000)]
        metrics = compute_investment_metrics(make_investment(purchase_price=200000), usages)
        assert metrics.break_even_progress == 50
        assert metrics.break_even_remaining == Decimal("100000")

    def test_partial_payment_reduces_savings(self):
        """Verify saved amount is original minus actual price."""
        usages = [
            make_usage(1, date(2025, 2, 1), 15000, actual=5000),
            make_usage(1, date(2025, 2, 1), 14000),
        ]
        metrics = compute_investment_metrics(make_investment(), usages)
        assert metrics.total_savings == Decimal("24000")
        assert metrics.usage_count == 2

    def test_average_rounds_half_up(self):
        usages = [
            make_usage(1, date(2025, 2, 1), 10000),
            make_usage(1, date(2025, 2, 2), 10001),
        ]
        metrics = compute_investment_metrics(make_investment(), usages)
        # 20001 / 2 = 10000.5
        assert metrics.avg_savings_per_use == Decimal("10001")

    def test_other_investments_ignored(self):
        usages = [make_usage(2, date(2025, 2, 1), 50000)]
        metrics = compute_investment_metrics(make_investment(id=1), usages)
        assert metrics.usage_count == 0

    def test_recent_usages_newest_first(self):
        """Verify the display list keeps the five newest usages."""
        usages = [make_usage(1, date(2025, 1, d), 1000, id=d) for d in range(1, 9)]
        metrics = compute_investment_metrics(make_investment(), usages)

        assert [u.used_at.day for u in metrics.recent_usages] == [8, 7, 6, 5, 4]


class TestProgress:
    """Test progress percentage edge cases."""

    def test_free_purchase_is_complete(self):
        assert break_even_progress(Decimal(0), Decimal(0)) == 100

    def test_rounds_half_up(self):
        # 1 * 100 / 200 = 0.5 -> 1
        assert break_even_progress(Decimal(1), Decimal(200)) == 1

    def test_clamped_to_range(self):
        assert break_even_progress(Decimal(500), Decimal(100)) == 100
        assert break_even_progress(Decimal(-50), Decimal(100)) == 0

    def test_always_in_range(self):
        """Verify progress stays in [0, 100] and is 100 once profitable."""
        price = Decimal(1000)
        for savings in range(-500, 3001, 137):
            progress = break_even_progress(Decimal(savings), price)
            assert 0 <= progress <= 100
            if savings >= price:
                assert progress == 100

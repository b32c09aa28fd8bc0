"""
Unit tests for calendar period arithmetic.
"""

from datetime import date

import pytest

from value_tracker.core.periods import (
    add_months,
    clamp,
    month_bounds,
    months_between,
    recent_months,
)


class TestMonthBounds:
    """Test month boundary computation."""

    def test_thirty_one_day_month(self):
        assert month_bounds(date(2025, 1, 15)) == (date(2025, 1, 1), date(2025, 1, 31))

    def test_leap_february(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


class TestAddMonths:
    """Test month shifting with day clamping."""

    def test_end_of_month_clamps(self):
        """Verify Jan 31 + 1 month lands on the last day of February."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)

    def test_leap_day_plus_year(self):
        """Verify Feb 29 + 12 months is Feb 28."""
        assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)

    def test_negative_crosses_year(self):
        assert add_months(date(2025, 2, 1), -3) == date(2024, 11, 1)


class TestMonthsBetween:
    """Test complete-month counting."""

    def test_whole_year(self):
        assert months_between(date(2025, 1, 1), date(2026, 1, 1)) == 12

    def test_incomplete_month_not_counted(self):
        """Verify 2025-01-31 to 2025-02-28 is not a full month."""
        assert months_between(date(2025, 1, 31), date(2025, 2, 28)) == 0

    def test_day_reached(self):
        assert months_between(date(2025, 1, 15), date(2025, 3, 15)) == 2
        assert months_between(date(2025, 1, 15), date(2025, 3, 14)) == 1

    def test_negative(self):
        assert months_between(date(2025, 3, 15), date(2025, 1, 15)) == -2
        assert months_between(date(2025, 3, 15), date(2025, 1, 16)) == -1

    def test_same_day(self):
        assert months_between(date(2025, 3, 15), date(2025, 3, 15)) == 0


class TestRecentMonths:
    """Test trailing month windows."""

    def test_six_months_oldest_first(self):
        months = recent_months(date(2025, 3, 20), 6)
        assert months == [
            date(2024, 10, 1),
            date(2024, 11, 1),
            date(2024, 12, 1),
            date(2025, 1, 1),
            date(2025, 2, 1),
            date(2025, 3, 1),
        ]

    def test_invalid_count(self):
        with pytest.raises(ValueError, match="count must be >= 1"):
            recent_months(date(2025, 3, 20), 0)


def test_clamp():
    assert clamp(-5, 0, 100) == 0
    assert clamp(150, 0, 100) == 100
    assert clamp(42, 0, 100) == 42

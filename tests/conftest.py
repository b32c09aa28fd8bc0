"""Shared test fixtures for Value Tracker tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from value_tracker.storage.models import Investment, InvestmentUsage, Subscription, UsageLog
from value_tracker.storage.repository import TrackerRepository


def make_subscription(
    id=1,
    name="Gym",
    monthly_amount=20000,
    total_amount=None,
    start_date=date(2025, 1, 1),
    end_date=None,
    monthly_target_usage=None,
    active=True,
    emoji_code="gym",
    user_id="user-1",
) -> Subscription:
    """Build a subscription with sensible defaults."""
    return Subscription(
        id=id,
        user_id=user_id,
        name=name,
        emoji_code=emoji_code,
        period_label="1개월",
        total_amount=Decimal(total_amount if total_amount is not None else monthly_amount),
        monthly_amount=Decimal(monthly_amount),
        start_date=start_date,
        end_date=end_date,
        monthly_target_usage=monthly_target_usage,
        active=active,
    )


def make_logs(subscription_id, days):
    """One usage log per date."""
    return [
        UsageLog(id=i + 1, subscription_id=subscription_id, used_at=day)
        for i, day in enumerate(days)
    ]


def make_investment(id=1, purchase_price=189000, active=True, user_id="user-1") -> Investment:
    return Investment(
        id=id,
        user_id=user_id,
        name="E-reader",
        emoji_code="ereader",
        category="E_READER",
        purchase_price=Decimal(purchase_price),
        purchase_date=date(2025, 1, 1),
        comparison_baseline=Decimal(15000),
        active=active,
    )


def make_usage(investment_id, used_at, original, actual=0, id=None) -> InvestmentUsage:
    return InvestmentUsage(
        id=id,
        investment_id=investment_id,
        used_at=used_at,
        item_name="Book",
        original_price=Decimal(original),
        actual_price=Decimal(actual),
    )


@pytest.fixture
def repository():
    """Repository backed by a fresh database in a temporary directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        repo = TrackerRepository(os.path.join(temp_dir, "test.db"))
        repo.initialize_schema()
        yield repo

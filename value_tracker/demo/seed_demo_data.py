# value_tracker/demo/seed_demo_data.py

from datetime import date, timedelta
from decimal import Decimal
from typing import Dict

from value_tracker.core.periods import add_months
from value_tracker.storage.models import Investment, InvestmentUsage, Subscription
from value_tracker.storage.repository import TrackerRepository


def seed_demo_data(repository: TrackerRepository, user_id: str, today: date) -> Dict[str, int]:
    """Insert sample subscriptions, check-ins and an investment.

    Check-ins are placed on days of the current month up to today.

    Returns:
        Number of records inserted per kind
    """
    repository.initialize_schema()

    gym = repository.add_subscription(Subscription(
        user_id=user_id,
        name="동네 헬스장",
        emoji_code="gym",
        period_label="3개월",
        total_amount=Decimal("150000"),
        monthly_amount=Decimal("50000"),
        start_date=add_months(today, -1),
        end_date=add_months(today, 2),
        monthly_target_usage=12,
    ))
    streaming = repository.add_subscription(Subscription(
        user_id=user_id,
        name="Netflix",
        emoji_code="netflix",
        period_label="1개월",
        total_amount=Decimal("17000"),
        monthly_amount=Decimal("17000"),
        start_date=add_months(today, -5),
    ))

    check_ins = 0
    first = today.replace(day=1)
    for offset in range(0, today.day, 2):
        repository.check_in(gym.id, user_id, first + timedelta(days=offset))
        check_ins += 1
    for offset in range(0, today.day, 7):
        repository.check_in(streaming.id, user_id, first + timedelta(days=offset))
        check_ins += 1

    reader = repository.add_investment(Investment(
        user_id=user_id,
        name="전자책 리더기",
        emoji_code="ereader",
        category="E_READER",
        purchase_price=Decimal("189000"),
        purchase_date=add_months(today, -4),
        comparison_baseline=Decimal("15000"),
    ))
    books = [("소설", 14000), ("에세이", 15000), ("기술서", 32000)]
    for i, (item, price) in enumerate(books):
        repository.add_investment_usage(InvestmentUsage(
            investment_id=reader.id,
            used_at=add_months(today, -i),
            item_name=item,
            original_price=Decimal(price),
            actual_price=Decimal(0),
        ), user_id)

    return {"subscriptions": 2, "check_ins": check_ins, "investments": 1, "investment_usages": len(books)}

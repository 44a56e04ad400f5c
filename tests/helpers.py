"""
Builders for household records used across the test suite.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from flatledger.models.household import (
    RENT_PAYMENT_MATCH_TYPE,
    Flatmate,
    PaymentSchedule,
    Transaction,
)


# A Wednesday; the week's due date (Thursday 1 Feb) is still ahead
TODAY = date(2024, 1, 31)


def fixed_clock(today: date = TODAY):
    return lambda: today


def schedule(
    user: Flatmate,
    amount: str,
    start: date,
    end: Optional[date] = None,
) -> PaymentSchedule:
    return PaymentSchedule(
        user_id=user.id,
        weekly_amount=Decimal(amount),
        start_date=start,
        end_date=end,
    )


def rent_payment(
    user: Optional[Flatmate],
    day: date,
    amount: str = "250.00",
    match_type: Optional[str] = RENT_PAYMENT_MATCH_TYPE,
    description: str = "AP RENT",
) -> Transaction:
    return Transaction(
        transaction_date=day,
        amount=Decimal(amount),
        description=description,
        matched_user_id=user.id if user else None,
        match_type=match_type,
        match_confidence=0.9 if user else None,
    )

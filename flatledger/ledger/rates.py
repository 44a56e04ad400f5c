"""
Weekly Rate Resolution
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from flatledger.models.household import PaymentSchedule


def get_weekly_amount(
    schedules: Iterable[PaymentSchedule],
    week_start: date,
) -> Decimal:
    """
    Calculate the amount due for a week from a flatmate's schedules.

    Every schedule whose [start_date, end_date] range contains the week
    start is a candidate. If several overlap, the one with the latest
    start date wins as the most specific for that period; ties keep the
    earlier schedule in stored order. Returns 0 when nothing applies.
    """
    chosen: Optional[PaymentSchedule] = None
    for schedule in schedules:
        if not schedule.covers(week_start):
            continue
        if chosen is None or schedule.start_date > chosen.start_date:
            chosen = schedule

    if chosen is None:
        return Decimal("0")
    return chosen.weekly_amount

"""
Reporting Period Arithmetic

Expense weeks run Saturday to Friday so a week's groceries land in one
bucket. Months are calendar months.
"""

from datetime import date, timedelta
from typing import Iterator, Optional, Union

from dateutil.relativedelta import relativedelta

from flatledger.models.expense import ExpensePeriod, PeriodRange


SATURDAY = 5


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return day + relativedelta(day=31)


def iter_recent_months(today: date, months: int) -> Iterator[date]:
    """
    Yield the first day of each of the last `months` months, oldest first.

    The current month is always last.
    """
    current = start_of_month(today)
    for offset in range(months - 1, -1, -1):
        yield current - relativedelta(months=offset)


def get_period_dates(
    period: Union[ExpensePeriod, str],
    today: Optional[date] = None,
) -> PeriodRange:
    """
    Get the inclusive date range for a reporting period.

    - week: Saturday to Friday containing today
    - month: the current calendar month
    - year: the last twelve calendar months, this one included
    - all: unbounded
    """
    today = today or date.today()
    period = ExpensePeriod(period)

    if period == ExpensePeriod.WEEK:
        start = today - timedelta(days=(today.weekday() - SATURDAY) % 7)
        return PeriodRange(start_date=start, end_date=start + timedelta(days=6))

    if period == ExpensePeriod.MONTH:
        return PeriodRange(start_date=start_of_month(today), end_date=end_of_month(today))

    if period == ExpensePeriod.YEAR:
        return PeriodRange(
            start_date=start_of_month(today) - relativedelta(months=11),
            end_date=end_of_month(today),
        )

    return PeriodRange()

"""
Expense Calculator

DESIGN DECISION: Expense amounts are summed as absolute values. Bank
exports record spending as negative amounts but refunds and manual
entries are not always consistent, so the sign is ignored everywhere
in this module.

Every method reads the full set of categorised expenses once and
filters in memory. Household volumes are a few hundred rows a year.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional
from uuid import UUID

import structlog

from flatledger.expenses.periods import end_of_month, iter_recent_months
from flatledger.models.expense import (
    BurnRate,
    CategorizedExpense,
    ExpenseCategory,
    ExpenseCategorySummary,
    MonthlyAmount,
    MonthlyCategoryAmount,
    MonthlyExpenseData,
)
from flatledger.services.storage import ExpenseStorageInterface


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


def _in_range(
    expense: CategorizedExpense,
    start_date: Optional[date],
    end_date: Optional[date],
) -> bool:
    day = expense.transaction.transaction_date
    if start_date and day < start_date:
        return False
    if end_date and day > end_date:
        return False
    return True


def _filter_range(
    expenses: Iterable[CategorizedExpense],
    start_date: Optional[date],
    end_date: Optional[date],
) -> list[CategorizedExpense]:
    return [e for e in expenses if _in_range(e, start_date, end_date)]


def _total(expenses: Iterable[CategorizedExpense]) -> Decimal:
    return sum((abs(e.transaction.amount) for e in expenses), ZERO)


def _summarise(
    category: ExpenseCategory,
    expenses: list[CategorizedExpense],
) -> ExpenseCategorySummary:
    total = _total(expenses)
    count = len(expenses)
    return ExpenseCategorySummary(
        category=category,
        total_amount=total,
        transaction_count=count,
        average_amount=total / count if count else ZERO,
    )


class ExpenseCalculator:
    """
    Aggregates categorised expenses for the expenses page.

    Unknown categories yield None or an empty list, never an exception.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        power_category_slug: str = "power",
        clock: Optional[Callable[[], date]] = None,
    ):
        self._storage = storage
        self._power_category_slug = power_category_slug
        self._clock = clock or date.today

    def today(self) -> date:
        return self._clock()

    async def get_expense_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ExpenseCategorySummary]:
        """
        Summarise every active category over a date range.

        When both bounds are given, each summary carries a trend: the
        percent change against the period of the same length ending
        that many days earlier. A category with nothing spent in the
        previous period has no trend.
        """
        categories = await self._storage.list_categories(active_only=True)
        all_expenses = await self._storage.list_expenses()

        summaries = []
        for category in categories:
            category_expenses = [
                e for e in all_expenses if e.category.id == category.id
            ]
            summary = _summarise(
                category,
                _filter_range(category_expenses, start_date, end_date),
            )

            if start_date and end_date:
                period_length = timedelta(days=(end_date - start_date).days)
                previous_total = _total(
                    _filter_range(
                        category_expenses,
                        start_date - period_length,
                        end_date - period_length,
                    )
                )
                if previous_total > 0:
                    summary.trend = float(
                        (summary.total_amount - previous_total) / previous_total * 100
                    )

            summaries.append(summary)

        logger.debug(
            "expense_summary_calculated",
            categories=len(summaries),
            start_date=str(start_date) if start_date else None,
            end_date=str(end_date) if end_date else None,
        )
        return summaries

    async def get_category_expense_summary(
        self,
        category_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Optional[ExpenseCategorySummary]:
        """Summary for one category, without a trend. None if it doesn't exist."""
        category = await self._storage.get_category(category_id)
        if category is None:
            return None

        expenses = await self._storage.list_expenses(category_id=category_id)
        return _summarise(category, _filter_range(expenses, start_date, end_date))

    async def calculate_burn_rate(
        self,
        category_id: Optional[UUID] = None,
    ) -> Optional[BurnRate]:
        """
        Average spend per day, week and month across a category's history.

        Defaults to the power category. The rate is spread over the days
        between the oldest and newest payment, at least one.

        Returns None if the category cannot be found.
        """
        if category_id is None:
            category = await self._storage.get_category_by_slug(self._power_category_slug)
        else:
            category = await self._storage.get_category(category_id)

        if category is None:
            return None

        # Newest first
        expenses = await self._storage.list_expenses(category_id=category.id)
        if not expenses:
            return BurnRate()

        newest = expenses[0].transaction
        oldest = expenses[-1].transaction
        total_spent = _total(expenses)
        days_covered = max(1, (newest.transaction_date - oldest.transaction_date).days)
        daily_rate = total_spent / days_covered

        return BurnRate(
            daily_rate=daily_rate,
            weekly_rate=daily_rate * 7,
            monthly_rate=daily_rate * 30,
            total_spent=total_spent,
            days_covered=days_covered,
            last_payment_date=newest.transaction_date,
            last_payment_amount=abs(newest.amount),
        )

    async def get_expense_transactions_for_category(
        self,
        category_id: UUID,
        limit: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CategorizedExpense]:
        """A category's expenses, newest first."""
        category = await self._storage.get_category(category_id)
        if category is None:
            return []

        expenses = await self._storage.list_expenses(category_id=category_id)
        expenses = _filter_range(expenses, start_date, end_date)
        if limit:
            expenses = expenses[:limit]
        return expenses

    async def get_all_expense_transactions(
        self,
        limit: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CategorizedExpense]:
        """
        Every categorised expense, newest first.

        Expenses whose category has been deleted are not returned.
        """
        expenses = await self._storage.list_expenses()
        expenses = _filter_range(expenses, start_date, end_date)
        if limit:
            expenses = expenses[:limit]
        return expenses

    async def get_monthly_expense_breakdown(
        self,
        category_id: UUID,
        months: int = 6,
    ) -> list[MonthlyAmount]:
        """Monthly totals for one category, oldest month first."""
        expenses = await self._storage.list_expenses(category_id=category_id)

        results = []
        for month_start in iter_recent_months(self.today(), months):
            month_expenses = _filter_range(expenses, month_start, end_of_month(month_start))
            results.append(
                MonthlyAmount(
                    month=month_start.strftime("%b %y"),
                    amount=_total(month_expenses),
                )
            )
        return results

    async def get_monthly_expense_data(self, months: int = 12) -> list[MonthlyExpenseData]:
        """Per-category monthly totals for a stacked chart, oldest month first."""
        categories = await self._storage.list_categories(active_only=True)
        expenses = await self._storage.list_expenses()

        results = []
        for month_start in iter_recent_months(self.today(), months):
            month_expenses = _filter_range(expenses, month_start, end_of_month(month_start))

            category_data = [
                MonthlyCategoryAmount(
                    category_id=category.id,
                    category_name=category.name,
                    category_color=category.color,
                    amount=_total(
                        e for e in month_expenses if e.category.id == category.id
                    ),
                )
                for category in categories
            ]

            results.append(
                MonthlyExpenseData(
                    month=month_start.strftime("%b"),
                    month_date=month_start,
                    categories=category_data,
                    total=sum((c.amount for c in category_data), ZERO),
                )
            )
        return results

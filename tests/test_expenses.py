"""
Tests for expense summaries, burn rate and reporting periods.

Today is fixed to Friday 2024-03-15.
"""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from flatledger.expenses import ExpenseCalculator, get_period_dates
from flatledger.models.expense import ExpenseCategory, ExpensePeriod, ExpenseTransaction
from flatledger.models.household import Transaction
from flatledger.services.storage import InMemoryExpenseStorage, InMemoryHouseholdStorage

from tests.helpers import fixed_clock


TODAY = date(2024, 3, 15)

GROCERIES = ExpenseCategory(name="Groceries", slug="groceries", color="#f59e0b", sort_order=0)
POWER = ExpenseCategory(name="Power", slug="Power", color="#eab308", sort_order=1, track_allotments=True)
INTERNET = ExpenseCategory(name="Internet", slug="internet", sort_order=2, is_active=False)

SPENDING = [
    (POWER, date(2024, 1, 10), "100.00"),
    (POWER, date(2024, 2, 10), "120.00"),
    (POWER, date(2024, 3, 10), "80.00"),
    (GROCERIES, date(2024, 2, 20), "60.00"),
    (GROCERIES, date(2024, 3, 2), "50.00"),
    (GROCERIES, date(2024, 3, 9), "70.00"),
    (INTERNET, date(2024, 3, 1), "90.00"),
]


async def add_expense(household, storage, category, day, amount):
    tx = Transaction(transaction_date=day, amount=-Decimal(amount), description=category.name)
    await household.save_transaction(tx)
    await storage.link_transaction(ExpenseTransaction(transaction_id=tx.id, category_id=category.id))
    return tx


@pytest.fixture
def storage():
    household = InMemoryHouseholdStorage()
    storage = InMemoryExpenseStorage(household, categories=[GROCERIES, POWER, INTERNET])

    async def seed():
        for category, day, amount in SPENDING:
            await add_expense(household, storage, category, day, amount)

    asyncio.run(seed())
    return storage


@pytest.fixture
def calculator(storage):
    return ExpenseCalculator(storage, clock=fixed_clock(TODAY))


class TestExpenseSummary:
    """Tests for category summaries."""

    def test_active_categories_in_sort_order(self, calculator):
        """Test inactive categories are excluded and the rest follow sort_order."""
        summaries = asyncio.run(calculator.get_expense_summary())
        assert [s.category.slug for s in summaries] == ["groceries", "power"]

    def test_totals_use_absolute_amounts(self, calculator):
        """Test spending is summed as positive amounts."""
        groceries, power = asyncio.run(calculator.get_expense_summary())
        assert groceries.total_amount == Decimal("180.00")
        assert groceries.transaction_count == 3
        assert groceries.average_amount == Decimal("60")
        assert power.total_amount == Decimal("300.00")
        assert groceries.trend is None

    def test_trend_against_previous_period(self, calculator):
        """Test the trend compares to the period of equal length before it."""
        groceries, power = asyncio.run(
            calculator.get_expense_summary(date(2024, 3, 1), date(2024, 3, 31))
        )
        assert groceries.total_amount == Decimal("120.00")
        assert groceries.trend == pytest.approx(100.0)
        assert power.total_amount == Decimal("80.00")
        assert power.trend == pytest.approx(-33.333, rel=1e-3)

    def test_no_trend_without_previous_spending(self, calculator):
        """Test the trend is omitted when nothing was spent in the previous period."""
        summaries = asyncio.run(
            calculator.get_expense_summary(date(2024, 1, 1), date(2024, 1, 31))
        )
        assert all(s.trend is None for s in summaries)

    def test_empty_range(self, calculator):
        """Test a range with no spending has zero totals and averages."""
        groceries, _ = asyncio.run(
            calculator.get_expense_summary(date(2023, 1, 1), date(2023, 1, 31))
        )
        assert groceries.total_amount == Decimal("0")
        assert groceries.average_amount == Decimal("0")

    def test_category_summary(self, calculator):
        """Test one category's summary has no trend."""
        summary = asyncio.run(
            calculator.get_category_expense_summary(POWER.id, date(2024, 2, 1), date(2024, 3, 31))
        )
        assert summary.total_amount == Decimal("200.00")
        assert summary.transaction_count == 2
        assert summary.trend is None

    def test_category_summary_unknown(self, calculator):
        """Test an unknown category yields None."""
        assert asyncio.run(calculator.get_category_expense_summary(uuid4())) is None


class TestBurnRate:
    """Tests for calculate_burn_rate."""

    def test_defaults_to_power(self, calculator):
        """Test the power category is used when none is given."""
        burn = asyncio.run(calculator.calculate_burn_rate())
        assert burn.total_spent == Decimal("300.00")
        assert burn.days_covered == 60
        assert burn.daily_rate == Decimal("5")
        assert burn.weekly_rate == Decimal("35")
        assert burn.monthly_rate == Decimal("150")
        assert burn.last_payment_date == date(2024, 3, 10)
        assert burn.last_payment_amount == Decimal("80.00")

    def test_missing_power_category(self):
        """Test None when there is no power category."""
        calculator = ExpenseCalculator(InMemoryExpenseStorage(InMemoryHouseholdStorage()))
        assert asyncio.run(calculator.calculate_burn_rate()) is None

    def test_unknown_category_id(self, calculator):
        """Test None for an unknown category id."""
        assert asyncio.run(calculator.calculate_burn_rate(uuid4())) is None

    def test_category_without_transactions(self):
        """Test zeros for a category with no spending."""
        storage = InMemoryExpenseStorage(InMemoryHouseholdStorage(), categories=[POWER])
        burn = asyncio.run(ExpenseCalculator(storage).calculate_burn_rate())
        assert burn.total_spent == Decimal("0")
        assert burn.days_covered == 0
        assert burn.last_payment_date is None

    def test_single_payment_covers_one_day(self):
        """Test a single payment is spread over one day."""
        household = InMemoryHouseholdStorage()
        storage = InMemoryExpenseStorage(household, categories=[POWER])
        asyncio.run(add_expense(household, storage, POWER, date(2024, 3, 1), "42.00"))

        burn = asyncio.run(ExpenseCalculator(storage).calculate_burn_rate(POWER.id))

        assert burn.days_covered == 1
        assert burn.daily_rate == Decimal("42.00")


class TestExpenseTransactions:
    """Tests for expense transaction listings."""

    def test_category_transactions_newest_first(self, calculator):
        """Test listings are newest first and respect the limit."""
        expenses = asyncio.run(
            calculator.get_expense_transactions_for_category(POWER.id, limit=2)
        )
        assert [e.transaction.transaction_date for e in expenses] == [
            date(2024, 3, 10),
            date(2024, 2, 10),
        ]
        assert all(e.category.id == POWER.id for e in expenses)

    def test_category_transactions_unknown(self, calculator):
        """Test an unknown category yields an empty list."""
        assert asyncio.run(calculator.get_expense_transactions_for_category(uuid4())) == []

    def test_all_transactions(self, calculator):
        """Test every categorised expense is listed, inactive categories included."""
        expenses = asyncio.run(calculator.get_all_expense_transactions())
        assert len(expenses) == len(SPENDING)
        dates = [e.transaction.transaction_date for e in expenses]
        assert dates == sorted(dates, reverse=True)

    def test_all_transactions_date_filter(self, calculator):
        """Test the date bounds are inclusive."""
        expenses = asyncio.run(
            calculator.get_all_expense_transactions(start_date=date(2024, 3, 1), end_date=date(2024, 3, 9))
        )
        assert [e.transaction.transaction_date for e in expenses] == [
            date(2024, 3, 9),
            date(2024, 3, 2),
            date(2024, 3, 1),
        ]


class TestMonthlyData:
    """Tests for monthly chart data."""

    def test_monthly_breakdown_is_per_month(self, calculator):
        """Test each month only counts its own spending."""
        breakdown = asyncio.run(calculator.get_monthly_expense_breakdown(POWER.id, months=3))
        assert [(m.month, m.amount) for m in breakdown] == [
            ("Jan 24", Decimal("100.00")),
            ("Feb 24", Decimal("120.00")),
            ("Mar 24", Decimal("80.00")),
        ]

    def test_monthly_breakdown_default_six_months(self, calculator):
        """Test six months are returned, ending with the current month."""
        breakdown = asyncio.run(calculator.get_monthly_expense_breakdown(POWER.id))
        assert len(breakdown) == 6
        assert breakdown[0].month == "Oct 23"
        assert breakdown[0].amount == Decimal("0")

    def test_monthly_expense_data(self, calculator):
        """Test stacked data covers active categories for each month."""
        data = asyncio.run(calculator.get_monthly_expense_data(months=2))

        assert [d.month for d in data] == ["Feb", "Mar"]
        assert data[0].month_date == date(2024, 2, 1)

        february = {c.category_name: c.amount for c in data[0].categories}
        assert february == {"Groceries": Decimal("60.00"), "Power": Decimal("120.00")}
        assert data[0].total == Decimal("180.00")
        assert data[1].total == Decimal("200.00")


class TestPeriodDates:
    """Tests for get_period_dates."""

    def test_week_runs_saturday_to_friday(self):
        """Test the expense week containing a Friday starts the Saturday before."""
        period = get_period_dates(ExpensePeriod.WEEK, today=date(2024, 3, 15))
        assert period.start_date == date(2024, 3, 9)
        assert period.end_date == date(2024, 3, 15)

    def test_week_starting_today(self):
        """Test a Saturday starts its own week."""
        period = get_period_dates("week", today=date(2024, 3, 16))
        assert period.start_date == date(2024, 3, 16)
        assert period.end_date == date(2024, 3, 22)

    def test_month(self):
        """Test the month period is the calendar month."""
        period = get_period_dates("month", today=date(2024, 2, 10))
        assert period.start_date == date(2024, 2, 1)
        assert period.end_date == date(2024, 2, 29)

    def test_year(self):
        """Test the year period covers twelve calendar months."""
        period = get_period_dates("year", today=date(2024, 3, 15))
        assert period.start_date == date(2023, 4, 1)
        assert period.end_date == date(2024, 3, 31)

    def test_all_is_unbounded(self):
        """Test the all period has no bounds."""
        period = get_period_dates(ExpensePeriod.ALL, today=date(2024, 3, 15))
        assert period.start_date is None
        assert period.end_date is None

    def test_unknown_period_rejected(self):
        """Test an unknown period name raises ValueError."""
        with pytest.raises(ValueError):
            get_period_dates("fortnight")

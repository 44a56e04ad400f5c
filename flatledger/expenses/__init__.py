"""
Shared household expenses: category summaries, burn rates and charts.
"""

from flatledger.expenses.calculator import ExpenseCalculator
from flatledger.expenses.periods import (
    end_of_month,
    get_period_dates,
    iter_recent_months,
    start_of_month,
)

__all__ = [
    "ExpenseCalculator",
    "end_of_month",
    "get_period_dates",
    "iter_recent_months",
    "start_of_month",
]

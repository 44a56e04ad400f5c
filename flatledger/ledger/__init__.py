"""
Rent ledger: due dates, weekly rates, balances and autopayment advice.
"""

from flatledger.ledger.autopayment import detect_autopayment, recommend_autopayment
from flatledger.ledger.calculator import BalanceCalculator, classify_week_payment
from flatledger.ledger.dates import (
    get_due_date,
    iter_week_starts,
    parse_start_date,
    payment_window,
    resolve_analysis_start_date,
    week_end_of,
    week_start_of,
)
from flatledger.ledger.formatting import describe_balance, format_currency, sort_flatmates
from flatledger.ledger.rates import get_weekly_amount

__all__ = [
    "BalanceCalculator",
    "classify_week_payment",
    "detect_autopayment",
    "recommend_autopayment",
    "get_due_date",
    "iter_week_starts",
    "parse_start_date",
    "payment_window",
    "resolve_analysis_start_date",
    "week_end_of",
    "week_start_of",
    "describe_balance",
    "format_currency",
    "sort_flatmates",
    "get_weekly_amount",
]

"""
Display helpers shared by the dashboard pages.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from uuid import UUID

from flatledger.models.ledger import FlatmateBalance


CURRENCY_SYMBOLS = {
    "NZD": "$",
    "AUD": "$",
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
}

SETTLED_TOLERANCE = Decimal("0.01")


def format_currency(amount: Decimal, currency: str = "NZD") -> str:
    """
    Format an amount as currency with two decimals and thousands separators.

    Examples: Decimal("1234.5") -> "$1,234.50", Decimal("-20") -> "-$20.00"
    """
    rounded = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"


def describe_balance(balance: Decimal, currency: str = "NZD") -> str:
    """Human summary of a balance: "$x ahead", "Settled up" or "$x behind"."""
    if balance >= SETTLED_TOLERANCE:
        return f"{format_currency(balance, currency)} ahead"
    if abs(balance) < SETTLED_TOLERANCE:
        return "Settled up"
    return f"{format_currency(abs(balance), currency)} behind"


def sort_flatmates(
    balances: Iterable[FlatmateBalance],
    current_user_id: Optional[UUID] = None,
) -> list[FlatmateBalance]:
    """Current user first, then the rest from most behind to most ahead."""
    return sorted(
        balances,
        key=lambda b: (b.user_id != current_user_id, b.balance),
    )

"""
Tests for dashboard display helpers.
"""

from decimal import Decimal
from uuid import uuid4

from flatledger.ledger.formatting import describe_balance, format_currency, sort_flatmates
from flatledger.models.ledger import FlatmateBalance


def balance(amount: str, name: str = "Sam") -> FlatmateBalance:
    return FlatmateBalance(
        user_id=uuid4(),
        user_name=name,
        user_email=f"{name.lower()}@example.com",
        balance=Decimal(amount),
    )


class TestFormatCurrency:
    """Tests for format_currency."""

    def test_thousands_and_cents(self):
        """Test grouping and two decimal places."""
        assert format_currency(Decimal("1234.5")) == "$1,234.50"

    def test_negative(self):
        """Test the sign goes before the symbol."""
        assert format_currency(Decimal("-20")) == "-$20.00"

    def test_rounds_half_up(self):
        """Test half cents round away from zero."""
        assert format_currency(Decimal("0.125")) == "$0.13"

    def test_other_currencies(self):
        """Test known symbols and the code fallback."""
        assert format_currency(Decimal("5"), "GBP") == "£5.00"
        assert format_currency(Decimal("5"), "JPY") == "JPY 5.00"


class TestDescribeBalance:
    """Tests for describe_balance."""

    def test_ahead(self):
        assert describe_balance(Decimal("50")) == "$50.00 ahead"

    def test_behind(self):
        assert describe_balance(Decimal("-125.5")) == "$125.50 behind"

    def test_settled(self):
        """Test a balance under a cent reads as settled."""
        assert describe_balance(Decimal("0")) == "Settled up"
        assert describe_balance(Decimal("-0.004")) == "Settled up"


class TestSortFlatmates:
    """Tests for sort_flatmates."""

    def test_most_behind_first(self):
        """Test flatmates are ordered from most behind to most ahead."""
        balances = [balance("10", "A"), balance("-40", "B"), balance("0", "C")]
        assert [b.user_name for b in sort_flatmates(balances)] == ["B", "C", "A"]

    def test_current_user_first(self):
        """Test the viewing flatmate is always listed first."""
        me = balance("100", "Me")
        balances = [balance("-40", "B"), me, balance("0", "C")]

        ordered = sort_flatmates(balances, current_user_id=me.user_id)

        assert [b.user_name for b in ordered] == ["Me", "B", "C"]

"""
Tests for week and due-date arithmetic.
"""

import pytest
from datetime import date, timedelta

from flatledger.ledger.dates import (
    THURSDAY,
    get_due_date,
    iter_week_starts,
    parse_start_date,
    payment_window,
    resolve_analysis_start_date,
    week_end_of,
    week_start_of,
)


class TestDueDate:
    """Tests for get_due_date."""

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2024, 1, 1), date(2024, 1, 4)),    # Monday
            (date(2024, 1, 3), date(2024, 1, 4)),    # Wednesday
            (date(2024, 1, 4), date(2024, 1, 4)),    # Thursday
            (date(2024, 1, 5), date(2024, 1, 11)),   # Friday
            (date(2024, 1, 7), date(2024, 1, 11)),   # Sunday
        ],
    )
    def test_due_date_for_each_part_of_week(self, day, expected):
        """Test Thursday or earlier maps to this week, later to next week."""
        assert get_due_date(day) == expected

    def test_due_date_properties_over_a_month(self):
        """Test every due date is a Thursday no earlier than the week start and within six days."""
        start = date(2024, 2, 1)
        for offset in range(31):
            day = start + timedelta(days=offset)
            due = get_due_date(day)
            assert due.weekday() == THURSDAY
            assert due >= week_start_of(day)
            assert 0 <= (due - day).days <= 6

    def test_due_date_crosses_year_boundary(self):
        """Test a Friday in late December rolls into January."""
        assert get_due_date(date(2021, 12, 31)) == date(2022, 1, 6)

    def test_custom_due_weekday(self):
        """Test a Monday due weekday."""
        assert get_due_date(date(2024, 1, 2), due_weekday=0) == date(2024, 1, 8)


class TestWeekHelpers:
    """Tests for week boundaries and iteration."""

    def test_week_start_and_end(self):
        """Test weeks run Monday to Sunday."""
        assert week_start_of(date(2024, 1, 7)) == date(2024, 1, 1)
        assert week_start_of(date(2024, 1, 1)) == date(2024, 1, 1)
        assert week_end_of(date(2024, 1, 3)) == date(2024, 1, 7)

    def test_iter_week_starts_covers_partial_weeks(self):
        """Test iteration starts at the Monday of the first week and includes the last week."""
        weeks = list(iter_week_starts(date(2024, 1, 3), date(2024, 1, 15)))
        assert weeks == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]

    def test_iter_week_starts_empty_when_end_precedes_start_week(self):
        """Test no weeks when the end is before the first Monday."""
        assert list(iter_week_starts(date(2024, 1, 10), date(2024, 1, 7))) == []

    def test_payment_window(self):
        """Test the window runs seven days before to three days after."""
        assert payment_window(date(2024, 1, 11)) == (date(2024, 1, 4), date(2024, 1, 14))

    def test_payment_window_custom_sizes(self):
        """Test window sizes can be changed."""
        start, end = payment_window(date(2024, 1, 11), days_before=2, days_after=0)
        assert start == date(2024, 1, 9)
        assert end == date(2024, 1, 11)


class TestStartDate:
    """Tests for parsing and resolving the analysis start date."""

    def test_parse_plain_date(self):
        """Test an ISO date parses."""
        assert parse_start_date("2024-02-01") == date(2024, 2, 1)

    def test_parse_timestamp(self):
        """Test an ISO timestamp keeps only its date."""
        assert parse_start_date("2024-02-01T00:00:00Z") == date(2024, 2, 1)
        assert parse_start_date("2024-02-01T10:30:00+13:00") == date(2024, 2, 1)

    @pytest.mark.parametrize("raw", [None, "", "   ", "not-a-date", "2024-13-45"])
    def test_parse_invalid_is_none(self, raw):
        """Test blank and invalid values are treated as unset."""
        assert parse_start_date(raw) is None

    def test_explicit_wins(self):
        """Test an explicit start overrides the configured one."""
        result = resolve_analysis_start_date(
            today=date(2024, 6, 1),
            explicit=date(2024, 3, 1),
            configured=date(2024, 1, 1),
        )
        assert result == date(2024, 3, 1)

    def test_configured_used_without_explicit(self):
        """Test the configured start is used when no explicit one is given."""
        result = resolve_analysis_start_date(
            today=date(2024, 6, 1),
            configured=date(2024, 1, 1),
        )
        assert result == date(2024, 1, 1)

    def test_default_lookback(self):
        """Test the default is 180 days before today."""
        result = resolve_analysis_start_date(today=date(2024, 6, 29))
        assert result == date(2024, 6, 29) - timedelta(days=180)

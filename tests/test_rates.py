"""
Tests for weekly rate resolution.
"""

from datetime import date
from decimal import Decimal

from flatledger.ledger.rates import get_weekly_amount
from flatledger.models.household import Flatmate

from tests.helpers import schedule


USER = Flatmate(email="carol@example.com")


class TestWeeklyAmount:
    """Tests for get_weekly_amount."""

    def test_no_schedules_is_zero(self):
        """Test a week with no schedule owes nothing."""
        assert get_weekly_amount([], date(2024, 1, 1)) == Decimal("0")

    def test_single_schedule(self):
        """Test an open-ended schedule applies from its start date."""
        schedules = [schedule(USER, "250.00", date(2024, 1, 1))]
        assert get_weekly_amount(schedules, date(2024, 1, 1)) == Decimal("250.00")
        assert get_weekly_amount(schedules, date(2024, 12, 30)) == Decimal("250.00")
        assert get_weekly_amount(schedules, date(2023, 12, 25)) == Decimal("0")

    def test_latest_start_wins_on_overlap(self):
        """Test the most recently started schedule applies when two overlap."""
        schedules = [
            schedule(USER, "200.00", date(2024, 1, 1)),
            schedule(USER, "300.00", date(2024, 3, 1)),
        ]
        assert get_weekly_amount(schedules, date(2024, 3, 4)) == Decimal("300.00")
        assert get_weekly_amount(schedules, date(2024, 2, 26)) == Decimal("200.00")

    def test_order_of_schedules_does_not_matter_for_latest_start(self):
        """Test the latest start wins regardless of stored order."""
        schedules = [
            schedule(USER, "300.00", date(2024, 3, 1)),
            schedule(USER, "200.00", date(2024, 1, 1)),
        ]
        assert get_weekly_amount(schedules, date(2024, 3, 4)) == Decimal("300.00")

    def test_end_date_is_inclusive(self):
        """Test a schedule still applies on its end date but not after."""
        schedules = [schedule(USER, "250.00", date(2024, 1, 1), end=date(2024, 1, 8))]
        assert get_weekly_amount(schedules, date(2024, 1, 8)) == Decimal("250.00")
        assert get_weekly_amount(schedules, date(2024, 1, 15)) == Decimal("0")

    def test_expired_schedule_falls_back_to_earlier_one(self):
        """Test a closed schedule gives way to an older open one once it ends."""
        schedules = [
            schedule(USER, "200.00", date(2024, 1, 1)),
            schedule(USER, "150.00", date(2024, 2, 5), end=date(2024, 2, 18)),
        ]
        assert get_weekly_amount(schedules, date(2024, 2, 12)) == Decimal("150.00")
        assert get_weekly_amount(schedules, date(2024, 2, 19)) == Decimal("200.00")

    def test_same_start_keeps_stored_order(self):
        """Test ties on start date keep the first schedule."""
        schedules = [
            schedule(USER, "220.00", date(2024, 1, 1)),
            schedule(USER, "240.00", date(2024, 1, 1)),
        ]
        assert get_weekly_amount(schedules, date(2024, 1, 8)) == Decimal("220.00")

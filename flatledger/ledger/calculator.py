"""
Rent Balance Calculator

DESIGN DECISION: Balances are DERIVED on every request from schedules
and transactions. There is no stored running total to drift out of
sync when a schedule is edited or a transaction is re-matched.

How a flatmate's ledger is built:
1. Walk every Monday-aligned week in the analysis window
2. Skip weeks whose due date has not arrived yet
3. Look up the weekly rate in effect at the start of the week
4. Assign rent payments that land in the window around the due date,
   oldest week first; a payment claimed by one week is not offered to
   the next
5. Sum what was due and what was paid

total_paid is summed over every qualifying payment in the window, not
over the weekly assignment. The two differ when a payment falls outside
every weekly window; FlatmateBalance.unassigned_paid exposes the gap.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

import structlog

from flatledger.config import LedgerSettings, get_settings
from flatledger.ledger.dates import (
    get_due_date,
    iter_week_starts,
    payment_window,
    resolve_analysis_start_date,
    week_end_of,
    week_start_of,
)
from flatledger.ledger.rates import get_weekly_amount
from flatledger.models.household import (
    Flatmate,
    Transaction,
)
from flatledger.models.ledger import (
    CurrentWeekStatus,
    FlatmateBalance,
    PaymentSummary,
    PaymentTransactionRef,
    WeeklyObligation,
    WeekPaymentStatus,
)
from flatledger.services.storage import HouseholdStorageInterface


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


def classify_week_payment(
    amount_paid: Decimal,
    amount_due: Decimal,
    paid_ratio: Decimal = Decimal("0.95"),
    overpaid_ratio: Decimal = Decimal("1.1"),
) -> WeekPaymentStatus:
    """
    Classify one week's payment against what was due.

    Paying within 5% under the rate counts as paid, 10% over as
    overpaid. A week with nothing due and nothing paid is paid; any
    payment against nothing due is an overpayment.
    """
    if amount_paid == 0:
        return WeekPaymentStatus.UNPAID if amount_due > 0 else WeekPaymentStatus.PAID
    if amount_paid >= amount_due * overpaid_ratio:
        return WeekPaymentStatus.OVERPAID
    if amount_paid >= amount_due * paid_ratio:
        return WeekPaymentStatus.PAID
    return WeekPaymentStatus.PARTIAL


class BalanceCalculator:
    """
    Computes rent ledgers for flatmates.

    GUARANTEES:
    - A transaction is assigned to at most one week
    - Future weeks are never charged
    - Unknown flatmates yield None, never an exception
    """

    def __init__(
        self,
        storage: HouseholdStorageInterface,
        settings: Optional[LedgerSettings] = None,
        analysis_start_date: Optional[date] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize calculator.

        Args:
            storage: Where flatmates, schedules and transactions are read
            settings: Reconciliation rules; defaults to the environment
            analysis_start_date: Configured start of the analysis window.
                                 Used when a call does not pass one.
            clock: Returns today's date; injectable for tests
        """
        self._storage = storage
        self._settings = settings or get_settings().ledger
        self._analysis_start_date = analysis_start_date
        self._clock = clock or date.today

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    def today(self) -> date:
        return self._clock()

    def resolve_start_date(self, start_date: Optional[date] = None) -> date:
        """Explicit start, else configured start, else the default lookback."""
        return resolve_analysis_start_date(
            today=self.today(),
            explicit=start_date,
            configured=self._analysis_start_date,
            lookback_days=self._settings.default_lookback_days,
        )

    async def _rent_payments(
        self,
        user_id: UUID,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> list[Transaction]:
        """Incoming rent payments for one flatmate, oldest first."""
        return await self._storage.list_transactions(
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            rent_only=True,
        )

    async def calculate_flatmate_balance(
        self,
        flatmate: Flatmate,
        start_date: date,
        end_date: date,
    ) -> FlatmateBalance:
        """Build the weekly ledger for one flatmate over [start_date, end_date]."""
        schedules = await self._storage.list_schedules(user_id=flatmate.id)
        payments = await self._rent_payments(flatmate.id, start_date, end_date)

        today = self.today()
        weekly_breakdown: list[WeeklyObligation] = []
        total_due = ZERO
        assigned_ids: set[UUID] = set()

        for week_start in iter_week_starts(start_date, end_date):
            due_date = get_due_date(week_start, self._settings.due_weekday)

            # Not payable yet
            if due_date > today:
                continue

            amount_due = get_weekly_amount(schedules, week_start)
            window_start, window_end = payment_window(
                due_date,
                days_before=self._settings.payment_window_days_before,
                days_after=self._settings.payment_window_days_after,
            )

            week_payments = [
                tx for tx in payments
                if tx.id not in assigned_ids
                and window_start <= tx.transaction_date <= window_end
            ]
            assigned_ids.update(tx.id for tx in week_payments)

            amount_paid = sum((tx.amount for tx in week_payments), ZERO)
            total_due += amount_due

            weekly_breakdown.append(
                WeeklyObligation(
                    week_start=week_start,
                    week_end=week_end_of(week_start),
                    due_date=due_date,
                    amount_due=amount_due,
                    amount_paid=amount_paid,
                    balance=amount_paid - amount_due,
                    payment_transactions=[
                        PaymentTransactionRef.from_transaction(tx)
                        for tx in week_payments
                    ],
                )
            )

        total_paid = sum((tx.amount for tx in payments), ZERO)
        current_rate = get_weekly_amount(schedules, today)

        balance = FlatmateBalance(
            user_id=flatmate.id,
            user_name=flatmate.name,
            user_email=flatmate.email,
            total_due=total_due,
            total_paid=total_paid,
            balance=total_paid - total_due,
            weekly_breakdown=weekly_breakdown,
            current_weekly_rate=current_rate or None,
        )

        logger.debug(
            "flatmate_balance_calculated",
            user_id=str(flatmate.id),
            weeks=len(weekly_breakdown),
            total_due=str(total_due),
            total_paid=str(total_paid),
            unassigned_paid=str(balance.unassigned_paid),
        )
        return balance

    async def calculate_user_balance(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
    ) -> Optional[FlatmateBalance]:
        """
        Calculate the balance for one flatmate up to today.

        Returns None if the flatmate does not exist.
        """
        flatmate = await self._storage.get_flatmate(user_id)
        if flatmate is None:
            logger.info("flatmate_not_found", user_id=str(user_id))
            return None

        return await self.calculate_flatmate_balance(
            flatmate,
            self.resolve_start_date(start_date),
            self.today(),
        )

    async def calculate_all_balances(
        self,
        start_date: Optional[date] = None,
        user_ids: Optional[list[UUID]] = None,
    ) -> PaymentSummary:
        """
        Calculate balances for every flatmate, admins included.

        If user_ids is given, only those flatmates are included and
        ids that do not exist are left out.
        """
        calc_start = self.resolve_start_date(start_date)
        end_date = self.today()

        if user_ids is None:
            flatmates = await self._storage.list_flatmates()
        else:
            found = await asyncio.gather(
                *(self._storage.get_flatmate(user_id) for user_id in user_ids)
            )
            flatmates = [f for f in found if f is not None]

        balances = await asyncio.gather(
            *(
                self.calculate_flatmate_balance(f, calc_start, end_date)
                for f in flatmates
            )
        )
        balances = list(balances)

        return PaymentSummary(
            flatmates=balances,
            total_due=sum((b.total_due for b in balances), ZERO),
            total_paid=sum((b.total_paid for b in balances), ZERO),
            total_balance=sum((b.balance for b in balances), ZERO),
        )

    async def _current_week_status(
        self,
        flatmate: Flatmate,
        week_start: date,
        due_date: date,
    ) -> CurrentWeekStatus:
        schedules = await self._storage.list_schedules(user_id=flatmate.id)
        amount_due = get_weekly_amount(schedules, week_start)

        window_start, window_end = payment_window(
            due_date,
            days_before=self._settings.payment_window_days_before,
            days_after=self._settings.payment_window_days_after,
        )
        payments = await self._rent_payments(flatmate.id, window_start, window_end)
        amount_paid = sum((tx.amount for tx in payments), ZERO)

        return CurrentWeekStatus(
            user_id=flatmate.id,
            user_name=flatmate.name,
            amount_due=amount_due,
            amount_paid=amount_paid,
            status=classify_week_payment(
                amount_paid,
                amount_due,
                paid_ratio=Decimal(str(self._settings.paid_ratio)),
                overpaid_ratio=Decimal(str(self._settings.overpaid_ratio)),
            ),
        )

    async def get_current_week_summary(self) -> list[CurrentWeekStatus]:
        """
        Who owes what for the week containing today.

        Every payment in the current week's window counts; earlier weeks
        are not consulted.
        """
        week_start = week_start_of(self.today())
        due_date = get_due_date(week_start, self._settings.due_weekday)

        flatmates = await self._storage.list_flatmates()
        statuses = await asyncio.gather(
            *(self._current_week_status(f, week_start, due_date) for f in flatmates)
        )
        return list(statuses)

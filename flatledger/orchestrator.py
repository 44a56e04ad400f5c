"""
Main Orchestrator for Flat Ledger

This module ties together storage, calculators and the audit log and
defines the flows behind each dashboard page:
1. Payments (analysis start date → balances → current week → advice)
2. Expenses (period → category summaries → burn rate → monthly chart)
3. Settings (read / set / clear the analysis start date)

DESIGN DECISION: The orchestrator is the only place that knows where the
analysis start date comes from. Calculators receive it as a plain value
and never read the system state store themselves.

Storage failures are recorded in the audit log and re-raised. A page
should show an error rather than a balance computed from partial data.
"""

from datetime import date
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from flatledger.audit import AuditLogger, create_correlation_id
from flatledger.config import LedgerSettings, get_settings
from flatledger.expenses import ExpenseCalculator, get_period_dates
from flatledger.ledger import BalanceCalculator, recommend_autopayment
from flatledger.ledger.analysis_settings import AnalysisSettingsService
from flatledger.models.expense import (
    BurnRate,
    CategorizedExpense,
    ExpenseCategorySummary,
    ExpensePeriod,
    MonthlyAmount,
    MonthlyExpenseData,
)
from flatledger.models.ledger import (
    AnalysisStartDateResult,
    AutopaymentAdvice,
    CurrentWeekStatus,
    FlatmateBalance,
    PaymentSummary,
)
from flatledger.services.storage import (
    ExpenseStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    GoogleSheetsHouseholdStorage,
    HouseholdStorageInterface,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    InMemoryHouseholdStorage,
    StorageError,
)


logger = structlog.get_logger(__name__)


class PaymentDashboardFlow:
    """
    Orchestrates the payments page.

    Flow:
    1. Resolve the analysis start date from system state
    2. Calculate every flatmate's ledger concurrently
    3. Summarise the current week
    4. Advise on autopayments per flatmate
    """

    def __init__(
        self,
        household_storage: HouseholdStorageInterface,
        settings_service: Optional[AnalysisSettingsService] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self._storage = household_storage
        self._settings = settings or get_settings().ledger
        self._audit_logger = audit_logger or AuditLogger()
        self._settings_service = settings_service or AnalysisSettingsService(
            household_storage,
            audit_logger=self._audit_logger,
            settings=self._settings,
        )
        self._clock = clock

    async def _calculator(self) -> BalanceCalculator:
        start_date = await self._settings_service.get_analysis_start_date()
        return BalanceCalculator(
            self._storage,
            settings=self._settings,
            analysis_start_date=start_date,
            clock=self._clock,
        )

    async def load_summary(
        self,
        start_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PaymentSummary:
        """Household balances over the analysis window."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            calculator = await self._calculator()
            summary = await calculator.calculate_all_balances(start_date=start_date)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="calculate_all_balances",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_balances_calculated(
            flatmate_count=len(summary.flatmates),
            total_balance=str(summary.total_balance),
            start_date=calculator.resolve_start_date(start_date),
            correlation_id=correlation_id,
        )
        return summary

    async def load_user_balance(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[FlatmateBalance]:
        """One flatmate's ledger, or None if they don't exist."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            calculator = await self._calculator()
            balance = await calculator.calculate_user_balance(user_id, start_date)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="calculate_user_balance",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_user_balance_calculated(
            user_id=user_id,
            balance=str(balance.balance) if balance else None,
            correlation_id=correlation_id,
        )
        return balance

    async def load_current_week(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> list[CurrentWeekStatus]:
        """Payment status of every flatmate for the week containing today."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            calculator = await self._calculator()
            return await calculator.get_current_week_summary()
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="get_current_week_summary",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    def autopayment_advice(self, balance: FlatmateBalance) -> Optional[AutopaymentAdvice]:
        """Autopayment recommendation for a computed ledger."""
        return recommend_autopayment(
            current_weekly_rate=balance.current_weekly_rate,
            total_balance=balance.balance,
            weekly_breakdown=balance.weekly_breakdown,
            lookback_weeks=self._settings.autopayment_lookback_weeks,
            correction_weeks=self._settings.autopayment_correction_weeks,
        )


class ExpenseDashboardFlow:
    """
    Orchestrates the expenses page.

    Everything is read-only; the flow only audits the summary run and
    storage failures.
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or date.today
        self._calculator = ExpenseCalculator(
            expense_storage,
            power_category_slug=self._settings.power_category_slug,
            clock=self._clock,
        )

    @property
    def calculator(self) -> ExpenseCalculator:
        return self._calculator

    async def load_overview(
        self,
        period: Union[ExpensePeriod, str] = ExpensePeriod.MONTH,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[list[ExpenseCategorySummary], Optional[BurnRate], list[MonthlyExpenseData]]:
        """
        Load everything the expenses page shows for a period.

        Returns:
            (category_summaries, power_burn_rate, monthly_chart_data)
        """
        correlation_id = correlation_id or create_correlation_id()
        period_range = get_period_dates(period, today=self._clock())

        try:
            summaries = await self._calculator.get_expense_summary(
                period_range.start_date,
                period_range.end_date,
            )
            burn_rate = await self._calculator.calculate_burn_rate()
            monthly = await self._calculator.get_monthly_expense_data()
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="load_expense_overview",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_expense_summary_calculated(
            category_count=len(summaries),
            period=ExpensePeriod(period).value,
            correlation_id=correlation_id,
        )
        return summaries, burn_rate, monthly

    async def load_category(
        self,
        category_id: UUID,
        period: Union[ExpensePeriod, str] = ExpensePeriod.ALL,
        limit: Optional[int] = 50,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ExpenseCategorySummary], list[CategorizedExpense], list[MonthlyAmount]]:
        """
        Load one category's detail view.

        Returns:
            (summary, recent_transactions, monthly_breakdown)
            summary is None for an unknown category.
        """
        correlation_id = correlation_id or create_correlation_id()
        period_range = get_period_dates(period, today=self._clock())

        try:
            summary = await self._calculator.get_category_expense_summary(
                category_id,
                period_range.start_date,
                period_range.end_date,
            )
            transactions = await self._calculator.get_expense_transactions_for_category(
                category_id,
                limit=limit,
                start_date=period_range.start_date,
                end_date=period_range.end_date,
            )
            breakdown = await self._calculator.get_monthly_expense_breakdown(category_id)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="load_expense_category",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        return summary, transactions, breakdown


class SettingsFlow:
    """Orchestrates the settings page."""

    def __init__(
        self,
        settings_service: AnalysisSettingsService,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings_service = settings_service
        self._audit_logger = audit_logger or AuditLogger()

    async def current_analysis_start_date(self) -> Optional[date]:
        return await self._settings_service.get_analysis_start_date()

    async def update_analysis_start_date(
        self,
        raw_value: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AnalysisStartDateResult:
        """Set the date, or clear it when raw_value is blank."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            return await self._settings_service.set_analysis_start_date(
                raw_value,
                correlation_id=correlation_id,
            )
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="set_analysis_start_date",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise


def create_app_components(
    use_storage: bool = True,
    settings: Optional[LedgerSettings] = None,
    clock: Optional[Callable[[], date]] = None,
) -> tuple[PaymentDashboardFlow, ExpenseDashboardFlow, SettingsFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to the configured storage backend.
                    Set to False to run against empty in-memory storage.
        settings: Ledger rules; defaults to the environment
        clock: Returns today's date; defaults to date.today

    Returns:
        (payment_flow, expense_flow, settings_flow, sheets_client)
    """
    settings = settings or get_settings().ledger
    sheets_client = None
    household_storage: HouseholdStorageInterface
    expense_storage: ExpenseStorageInterface

    backend = get_settings().app.storage_backend if use_storage else "memory"

    if backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            household_storage = GoogleSheetsHouseholdStorage(sheets_client)
            expense_storage = GoogleSheetsExpenseStorage(household_storage, sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue with empty in-memory data
            logger.warning("storage_not_configured", error=str(e))
            backend = "memory"
            sheets_client = None

    if backend == "memory":
        household_storage = InMemoryHouseholdStorage()
        expense_storage = InMemoryExpenseStorage(household_storage)
        audit_logger = AuditLogger(InMemoryAuditStorage())

    settings_service = AnalysisSettingsService(
        household_storage,
        audit_logger=audit_logger,
        settings=settings,
    )

    payment_flow = PaymentDashboardFlow(
        household_storage,
        settings_service=settings_service,
        audit_logger=audit_logger,
        settings=settings,
        clock=clock,
    )
    expense_flow = ExpenseDashboardFlow(
        expense_storage,
        audit_logger=audit_logger,
        settings=settings,
        clock=clock,
    )
    settings_flow = SettingsFlow(settings_service, audit_logger=audit_logger)

    return payment_flow, expense_flow, settings_flow, sheets_client

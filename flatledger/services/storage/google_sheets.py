"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the household's storage backend because:
1. Flatmates can look at the raw schedules and payments themselves
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (one household is a few thousand rows)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so the ledger does
not know or care which backend it is reading from.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from flatledger.config import GoogleSheetsSettings, get_settings
from flatledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from flatledger.models.expense import (
    CategorizedExpense,
    ExpenseCategory,
    ExpenseTransaction,
)
from flatledger.models.household import (
    Flatmate,
    PaymentSchedule,
    Transaction,
    UserRole,
)
from flatledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    HouseholdStorageInterface,
    NotFoundError,
    StorageError,
)
from flatledger.services.storage.memory import filter_transactions


# Column mappings, one list per worksheet
FLATMATE_COLUMNS = ["id", "name", "email", "role"]

SCHEDULE_COLUMNS = [
    "id",
    "user_id",
    "weekly_amount",
    "start_date",
    "end_date",
    "created_at",
    "notes",
]

TRANSACTION_COLUMNS = [
    "id",
    "date",
    "amount",
    "description",
    "matched_user_id",
    "match_type",
    "match_confidence",
]

SYSTEM_STATE_COLUMNS = ["key", "value", "updated_at"]

CATEGORY_COLUMNS = [
    "id",
    "name",
    "slug",
    "color",
    "sort_order",
    "is_active",
    "track_allotments",
]

EXPENSE_LINK_COLUMNS = [
    "id",
    "transaction_id",
    "category_id",
    "notes",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

T = TypeVar("T")

# Writes are retried on transient API errors, never on a rejected write
write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
    reraise=True,
)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and blanks."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _optional_date(value: str) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _optional_uuid(value: str) -> Optional[UUID]:
    return UUID(value) if value else None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_flatmates_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.flatmates_sheet_name, FLATMATE_COLUMNS, rows=50)

    def get_schedules_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.schedules_sheet_name, SCHEDULE_COLUMNS)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=5000)

    def get_system_state_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.system_state_sheet_name, SYSTEM_STATE_COLUMNS, rows=50)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS, rows=100)

    def get_expense_links_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.expense_links_sheet_name, EXPENSE_LINK_COLUMNS, rows=5000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


def _read_rows(sheet: gspread.Worksheet, parse: Callable[[list], T]) -> list[T]:
    """Parse every data row of a sheet, skipping blank and malformed rows."""
    records = []
    for row in sheet.get_all_values()[1:]:  # Skip header
        if not row or not row[0]:
            continue
        try:
            records.append(parse(row))
        except Exception:
            continue  # Skip malformed rows
    return records


class GoogleSheetsHouseholdStorage(HouseholdStorageInterface):
    """
    Google Sheets implementation of household storage.

    Each record type has its own worksheet with one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -- row conversion ------------------------------------------------------

    @staticmethod
    def _flatmate_to_row(flatmate: Flatmate) -> list:
        return [
            str(flatmate.id),
            flatmate.name or "",
            flatmate.email,
            flatmate.role.value,
        ]

    @staticmethod
    def _row_to_flatmate(row: list) -> Flatmate:
        return Flatmate(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1) or None,
            email=_cell(row, 2),
            role=UserRole(_cell(row, 3, UserRole.FLATMATE.value)),
        )

    @staticmethod
    def _schedule_to_row(schedule: PaymentSchedule) -> list:
        return [
            str(schedule.id),
            str(schedule.user_id),
            str(schedule.weekly_amount),
            schedule.start_date.isoformat(),
            schedule.end_date.isoformat() if schedule.end_date else "",
            schedule.created_at.isoformat(),
            schedule.notes or "",
        ]

    @staticmethod
    def _row_to_schedule(row: list) -> PaymentSchedule:
        return PaymentSchedule(
            id=UUID(_cell(row, 0)),
            user_id=UUID(_cell(row, 1)),
            weekly_amount=Decimal(_cell(row, 2)),
            start_date=date.fromisoformat(_cell(row, 3)),
            end_date=_optional_date(_cell(row, 4)),
            created_at=datetime.fromisoformat(_cell(row, 5)),
            notes=_cell(row, 6) or None,
        )

    @staticmethod
    def _transaction_to_row(tx: Transaction) -> list:
        return [
            str(tx.id),
            tx.transaction_date.isoformat(),
            str(tx.amount),
            tx.description,
            str(tx.matched_user_id) if tx.matched_user_id else "",
            tx.match_type or "",
            str(tx.match_confidence) if tx.match_confidence is not None else "",
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        confidence = _cell(row, 6)
        return Transaction(
            id=UUID(_cell(row, 0)),
            transaction_date=date.fromisoformat(_cell(row, 1)),
            amount=Decimal(_cell(row, 2)),
            description=_cell(row, 3),
            matched_user_id=_optional_uuid(_cell(row, 4)),
            match_type=_cell(row, 5) or None,
            match_confidence=float(confidence) if confidence else None,
        )

    # -- flatmates -----------------------------------------------------------

    async def list_flatmates(self) -> list[Flatmate]:
        try:
            sheet = self._client.get_flatmates_sheet()
            return _read_rows(sheet, self._row_to_flatmate)
        except Exception as e:
            raise StorageError(f"Failed to list flatmates: {e}")

    async def get_flatmate(self, user_id: UUID) -> Optional[Flatmate]:
        for flatmate in await self.list_flatmates():
            if flatmate.id == user_id:
                return flatmate
        return None

    @write_retry
    async def save_flatmate(self, flatmate: Flatmate) -> bool:
        if await self.get_flatmate(flatmate.id):
            raise DuplicateError(f"Flatmate already exists: {flatmate.id}")
        try:
            sheet = self._client.get_flatmates_sheet()
            sheet.append_row(self._flatmate_to_row(flatmate), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save flatmate: {e}")

    # -- schedules -----------------------------------------------------------

    async def list_schedules(
        self,
        user_id: Optional[UUID] = None,
    ) -> list[PaymentSchedule]:
        try:
            sheet = self._client.get_schedules_sheet()
            schedules = _read_rows(sheet, self._row_to_schedule)
        except Exception as e:
            raise StorageError(f"Failed to list schedules: {e}")
        return [s for s in schedules if user_id is None or s.user_id == user_id]

    @write_retry
    async def save_schedule(self, schedule: PaymentSchedule) -> bool:
        try:
            sheet = self._client.get_schedules_sheet()
            all_rows = sheet.get_all_values()
            new_row = self._schedule_to_row(schedule)

            # Overwrite in place if the schedule already exists
            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
                if row and row[0] == str(schedule.id):
                    for col_idx, value in enumerate(new_row, start=1):
                        sheet.update_cell(idx, col_idx, value)
                    return True

            sheet.append_row(new_row, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save schedule: {e}")

    async def delete_schedule(self, schedule_id: UUID) -> bool:
        try:
            sheet = self._client.get_schedules_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(schedule_id):
                    sheet.delete_rows(idx)
                    return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete schedule: {e}")

    # -- transactions --------------------------------------------------------

    async def list_transactions(
        self,
        user_id: Optional[UUID] = None,
        match_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        rent_only: bool = False,
    ) -> list[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            transactions = _read_rows(sheet, self._row_to_transaction)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        return filter_transactions(
            transactions,
            user_id=user_id,
            match_type=match_type,
            date_from=date_from,
            date_to=date_to,
            rent_only=rent_only,
        )

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        for tx in await self.list_transactions():
            if tx.id == transaction_id:
                return tx
        return None

    @write_retry
    async def save_transaction(self, transaction: Transaction) -> bool:
        if await self.get_transaction(transaction.id):
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    # -- system state --------------------------------------------------------

    def _find_state_row(self, sheet: gspread.Worksheet, key: str) -> tuple[Optional[int], Optional[list]]:
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == key:
                return idx, row
        return None, None

    async def get_state_value(self, key: str) -> Optional[str]:
        try:
            sheet = self._client.get_system_state_sheet()
            _, row = self._find_state_row(sheet, key)
        except Exception as e:
            raise StorageError(f"Failed to read setting {key}: {e}")
        if row is None:
            return None
        return _cell(row, 1) or None

    @write_retry
    async def set_state_value(self, key: str, value: str) -> bool:
        try:
            sheet = self._client.get_system_state_sheet()
            idx, _ = self._find_state_row(sheet, key)
            updated_at = datetime.utcnow().isoformat()
            if idx is None:
                sheet.append_row([key, value, updated_at], value_input_option="RAW")
            else:
                sheet.update_cell(idx, 2, value)
                sheet.update_cell(idx, 3, updated_at)
            return True
        except Exception as e:
            raise StorageError(f"Failed to write setting {key}: {e}")

    async def delete_state_value(self, key: str) -> bool:
        try:
            sheet = self._client.get_system_state_sheet()
            idx, _ = self._find_state_row(sheet, key)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete setting {key}: {e}")


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of expense storage.

    Transactions are read through the household storage so the
    Transactions worksheet stays the single copy of bank records.
    """

    def __init__(
        self,
        household: GoogleSheetsHouseholdStorage,
        client: Optional[GoogleSheetsClient] = None,
    ):
        self._household = household
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _category_to_row(category: ExpenseCategory) -> list:
        return [
            str(category.id),
            category.name,
            category.slug,
            category.color,
            str(category.sort_order),
            str(category.is_active),
            str(category.track_allotments),
        ]

    @staticmethod
    def _row_to_category(row: list) -> ExpenseCategory:
        return ExpenseCategory(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            slug=_cell(row, 2),
            color=_cell(row, 3, "#10b981"),
            sort_order=int(_cell(row, 4, "0")),
            is_active=_cell(row, 5, "True").lower() == "true",
            track_allotments=_cell(row, 6, "False").lower() == "true",
        )

    @staticmethod
    def _link_to_row(link: ExpenseTransaction) -> list:
        return [
            str(link.id),
            str(link.transaction_id),
            str(link.category_id),
            link.notes or "",
            link.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_link(row: list) -> ExpenseTransaction:
        return ExpenseTransaction(
            id=UUID(_cell(row, 0)),
            transaction_id=UUID(_cell(row, 1)),
            category_id=UUID(_cell(row, 2)),
            notes=_cell(row, 3) or None,
            created_at=datetime.fromisoformat(_cell(row, 4)),
        )

    async def list_categories(self, active_only: bool = False) -> list[ExpenseCategory]:
        try:
            sheet = self._client.get_categories_sheet()
            categories = _read_rows(sheet, self._row_to_category)
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

        if active_only:
            categories = [c for c in categories if c.is_active]
        categories.sort(key=lambda c: c.sort_order)
        return categories

    async def get_category(self, category_id: UUID) -> Optional[ExpenseCategory]:
        for category in await self.list_categories():
            if category.id == category_id:
                return category
        return None

    async def get_category_by_slug(self, slug: str) -> Optional[ExpenseCategory]:
        for category in await self.list_categories():
            if category.slug == slug.lower():
                return category
        return None

    @write_retry
    async def save_category(self, category: ExpenseCategory) -> bool:
        existing = await self.get_category_by_slug(category.slug)
        if existing and existing.id != category.id:
            raise DuplicateError(f"Category slug already in use: {category.slug}")
        try:
            sheet = self._client.get_categories_sheet()
            sheet.append_row(self._category_to_row(category), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}")

    @write_retry
    async def link_transaction(self, link: ExpenseTransaction) -> bool:
        if await self.get_category(link.category_id) is None:
            raise NotFoundError(f"Category not found: {link.category_id}")
        try:
            sheet = self._client.get_expense_links_sheet()
            sheet.append_row(self._link_to_row(link), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to link transaction: {e}")

    async def list_expenses(
        self,
        category_id: Optional[UUID] = None,
    ) -> list[CategorizedExpense]:
        try:
            sheet = self._client.get_expense_links_sheet()
            links = _read_rows(sheet, self._row_to_link)
        except Exception as e:
            raise StorageError(f"Failed to list expense links: {e}")

        categories = {c.id: c for c in await self.list_categories()}
        transactions = {t.id: t for t in await self._household.list_transactions()}

        expenses = []
        for link in links:
            if category_id and link.category_id != category_id:
                continue
            category = categories.get(link.category_id)
            transaction = transactions.get(link.transaction_id)
            if category is None or transaction is None:
                continue
            expenses.append(
                CategorizedExpense(
                    transaction=transaction,
                    expense_transaction=link,
                    category=category,
                )
            )

        expenses.sort(key=lambda e: e.transaction.transaction_date, reverse=True)
        return expenses


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _row_to_event(row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_optional_uuid(_cell(row, 5)),
            correlation_id=_optional_uuid(_cell(row, 6)),
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            is_user_action=_cell(row, 10).lower() == "true",
        )

    @write_retry
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            events = _read_rows(sheet, self._row_to_event)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = [e for e in events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            events = _read_rows(sheet, self._row_to_event)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

"""
In-Memory Storage Implementation

Used by the test suite and by the dashboard when no spreadsheet is
configured. Records are kept in insertion order, which is the order
the interface promises for schedules.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from flatledger.models.audit import AuditEvent
from flatledger.models.expense import (
    CategorizedExpense,
    ExpenseCategory,
    ExpenseTransaction,
)
from flatledger.models.household import Flatmate, PaymentSchedule, Transaction
from flatledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    HouseholdStorageInterface,
    NotFoundError,
)


def filter_transactions(
    transactions: list[Transaction],
    user_id: Optional[UUID] = None,
    match_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    rent_only: bool = False,
) -> list[Transaction]:
    """Apply the list_transactions filters and sort oldest first."""
    result = []
    for tx in transactions:
        if user_id and tx.matched_user_id != user_id:
            continue
        if match_type and tx.match_type != match_type:
            continue
        if date_from and tx.transaction_date < date_from:
            continue
        if date_to and tx.transaction_date > date_to:
            continue
        if rent_only and not tx.is_rent_income:
            continue
        result.append(tx)

    result.sort(key=lambda t: t.transaction_date)
    return result


class InMemoryHouseholdStorage(HouseholdStorageInterface):
    """Dict-backed household storage."""

    def __init__(
        self,
        flatmates: Optional[list[Flatmate]] = None,
        schedules: Optional[list[PaymentSchedule]] = None,
        transactions: Optional[list[Transaction]] = None,
        state: Optional[dict[str, str]] = None,
    ):
        self._flatmates: dict[UUID, Flatmate] = {f.id: f for f in flatmates or []}
        self._schedules: dict[UUID, PaymentSchedule] = {s.id: s for s in schedules or []}
        self._transactions: dict[UUID, Transaction] = {t.id: t for t in transactions or []}
        self._state: dict[str, str] = dict(state or {})

    async def list_flatmates(self) -> list[Flatmate]:
        return list(self._flatmates.values())

    async def get_flatmate(self, user_id: UUID) -> Optional[Flatmate]:
        return self._flatmates.get(user_id)

    async def save_flatmate(self, flatmate: Flatmate) -> bool:
        if flatmate.id in self._flatmates:
            raise DuplicateError(f"Flatmate already exists: {flatmate.id}")
        self._flatmates[flatmate.id] = flatmate
        return True

    async def list_schedules(
        self,
        user_id: Optional[UUID] = None,
    ) -> list[PaymentSchedule]:
        return [
            s for s in self._schedules.values()
            if user_id is None or s.user_id == user_id
        ]

    async def save_schedule(self, schedule: PaymentSchedule) -> bool:
        self._schedules[schedule.id] = schedule
        return True

    async def delete_schedule(self, schedule_id: UUID) -> bool:
        return self._schedules.pop(schedule_id, None) is not None

    async def list_transactions(
        self,
        user_id: Optional[UUID] = None,
        match_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        rent_only: bool = False,
    ) -> list[Transaction]:
        return filter_transactions(
            list(self._transactions.values()),
            user_id=user_id,
            match_type=match_type,
            date_from=date_from,
            date_to=date_to,
            rent_only=rent_only,
        )

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def save_transaction(self, transaction: Transaction) -> bool:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return True

    async def get_state_value(self, key: str) -> Optional[str]:
        return self._state.get(key)

    async def set_state_value(self, key: str, value: str) -> bool:
        self._state[key] = value
        return True

    async def delete_state_value(self, key: str) -> bool:
        return self._state.pop(key, None) is not None


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """
    Dict-backed expense storage.

    Transactions are looked up through the household storage so both
    stores see the same bank records.
    """

    def __init__(
        self,
        household: HouseholdStorageInterface,
        categories: Optional[list[ExpenseCategory]] = None,
        links: Optional[list[ExpenseTransaction]] = None,
    ):
        self._household = household
        self._categories: dict[UUID, ExpenseCategory] = {c.id: c for c in categories or []}
        self._links: dict[UUID, ExpenseTransaction] = {l.id: l for l in links or []}

    async def list_categories(self, active_only: bool = False) -> list[ExpenseCategory]:
        categories = [
            c for c in self._categories.values()
            if c.is_active or not active_only
        ]
        categories.sort(key=lambda c: c.sort_order)
        return categories

    async def get_category(self, category_id: UUID) -> Optional[ExpenseCategory]:
        return self._categories.get(category_id)

    async def get_category_by_slug(self, slug: str) -> Optional[ExpenseCategory]:
        for category in self._categories.values():
            if category.slug == slug.lower():
                return category
        return None

    async def save_category(self, category: ExpenseCategory) -> bool:
        existing = await self.get_category_by_slug(category.slug)
        if existing and existing.id != category.id:
            raise DuplicateError(f"Category slug already in use: {category.slug}")
        self._categories[category.id] = category
        return True

    async def link_transaction(self, link: ExpenseTransaction) -> bool:
        if link.category_id not in self._categories:
            raise NotFoundError(f"Category not found: {link.category_id}")
        self._links[link.id] = link
        return True

    async def list_expenses(
        self,
        category_id: Optional[UUID] = None,
    ) -> list[CategorizedExpense]:
        expenses = []
        for link in self._links.values():
            if category_id and link.category_id != category_id:
                continue
            category = self._categories.get(link.category_id)
            transaction = await self._household.get_transaction(link.transaction_id)
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


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep Google Sheets as the household's backing store
2. Use in-memory storage for testing and demos
3. Keep the ledger decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the reads the ledger needs plus the writes that seed them.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from flatledger.models.household import Flatmate, PaymentSchedule, Transaction
from flatledger.models.expense import (
    CategorizedExpense,
    ExpenseCategory,
    ExpenseTransaction,
)
from flatledger.models.audit import AuditEvent


class HouseholdStorageInterface(ABC):
    """
    Abstract interface for flatmates, schedules, transactions and
    system settings.
    """

    @abstractmethod
    async def list_flatmates(self) -> list[Flatmate]:
        """List every household member, admins included."""
        pass

    @abstractmethod
    async def get_flatmate(self, user_id: UUID) -> Optional[Flatmate]:
        """
        Retrieve a flatmate by ID.

        Returns:
            The flatmate if found, None otherwise
        """
        pass

    @abstractmethod
    async def save_flatmate(self, flatmate: Flatmate) -> bool:
        """
        Save a flatmate.

        Raises:
            DuplicateError: If a flatmate with this ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_schedules(
        self,
        user_id: Optional[UUID] = None,
    ) -> list[PaymentSchedule]:
        """
        List payment schedules, optionally for one flatmate.

        Returns schedules in stored order.
        """
        pass

    @abstractmethod
    async def save_schedule(self, schedule: PaymentSchedule) -> bool:
        """
        Save a payment schedule.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_schedule(self, schedule_id: UUID) -> bool:
        """
        Delete a schedule by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: Optional[UUID] = None,
        match_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        rent_only: bool = False,
    ) -> list[Transaction]:
        """
        List transactions with optional filters.

        Args:
            user_id: Only transactions matched to this flatmate
            match_type: Only transactions with this match type
            date_from: Transactions on or after this date
            date_to: Transactions on or before this date
            rent_only: Only incoming rent payments (see Transaction.is_rent_income)

        Returns:
            Matching transactions, oldest first
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a transaction by ID, None if missing."""
        pass

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a transaction.

        Raises:
            DuplicateError: If a transaction with this ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_state_value(self, key: str) -> Optional[str]:
        """Read a system setting, None if unset."""
        pass

    @abstractmethod
    async def set_state_value(self, key: str, value: str) -> bool:
        """Create or overwrite a system setting."""
        pass

    @abstractmethod
    async def delete_state_value(self, key: str) -> bool:
        """
        Remove a system setting.

        Returns:
            True if removed, False if it was not set
        """
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense categories and their transaction links.
    """

    @abstractmethod
    async def list_categories(self, active_only: bool = False) -> list[ExpenseCategory]:
        """List categories ordered by sort_order."""
        pass

    @abstractmethod
    async def get_category(self, category_id: UUID) -> Optional[ExpenseCategory]:
        pass

    @abstractmethod
    async def get_category_by_slug(self, slug: str) -> Optional[ExpenseCategory]:
        pass

    @abstractmethod
    async def save_category(self, category: ExpenseCategory) -> bool:
        """
        Save a category.

        Raises:
            DuplicateError: If the slug is already taken
        """
        pass

    @abstractmethod
    async def link_transaction(self, link: ExpenseTransaction) -> bool:
        """
        Categorise a transaction.

        Raises:
            NotFoundError: If the category does not exist
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        category_id: Optional[UUID] = None,
    ) -> list[CategorizedExpense]:
        """
        List categorised transactions, newest first.

        Links whose category or transaction no longer exists are skipped.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one dashboard request).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

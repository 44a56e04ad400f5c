"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the household backend; in-memory storage backs tests
and the offline demo.
"""

from flatledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    HouseholdStorageInterface,
    NotFoundError,
    StorageError,
)
from flatledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    InMemoryHouseholdStorage,
)
from flatledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    GoogleSheetsHouseholdStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStorageInterface",
    "HouseholdStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "InMemoryHouseholdStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "GoogleSheetsHouseholdStorage",
]

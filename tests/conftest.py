"""
Shared fixtures.

Nothing here touches the network: storage is in-memory and Google
Sheets is replaced by fake worksheets in test_storage.
"""

import pytest

from flatledger.audit import AuditLogger
from flatledger.config import LedgerSettings
from flatledger.models.household import Flatmate, UserRole
from flatledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    InMemoryHouseholdStorage,
)


@pytest.fixture
def ledger_settings():
    """Default ledger rules, ignoring any local .env file."""
    return LedgerSettings(_env_file=None)


@pytest.fixture
def alice():
    return Flatmate(name="Alice", email="alice@example.com", role=UserRole.ADMIN)


@pytest.fixture
def bob():
    return Flatmate(name="Bob", email="bob@example.com")


@pytest.fixture
def household(alice, bob):
    return InMemoryHouseholdStorage(flatmates=[alice, bob])


@pytest.fixture
def expense_storage(household):
    return InMemoryExpenseStorage(household)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)

"""
Tests for the analysis start date setting.
"""

import asyncio
from datetime import date

from flatledger.config import LedgerSettings
from flatledger.ledger.analysis_settings import ANALYSIS_START_DATE_KEY, AnalysisSettingsService
from flatledger.models.audit import AuditEventType
from flatledger.services.storage import InMemoryHouseholdStorage


def recent_event_types(audit_storage):
    events = asyncio.run(audit_storage.get_recent_events())
    return [e.event_type for e in events]


class TestGetAnalysisStartDate:
    """Tests for reading the setting."""

    def test_stored_value(self, ledger_settings):
        """Test a stored ISO date is returned."""
        storage = InMemoryHouseholdStorage(state={ANALYSIS_START_DATE_KEY: "2024-01-15"})
        service = AnalysisSettingsService(storage, settings=ledger_settings)

        assert asyncio.run(service.get_analysis_start_date()) == date(2024, 1, 15)

    def test_stored_timestamp(self, ledger_settings):
        """Test a stored timestamp is reduced to its date."""
        storage = InMemoryHouseholdStorage(state={ANALYSIS_START_DATE_KEY: "2024-01-15T00:00:00.000Z"})
        service = AnalysisSettingsService(storage, settings=ledger_settings)

        assert asyncio.run(service.get_analysis_start_date()) == date(2024, 1, 15)

    def test_missing_value(self, ledger_settings):
        """Test nothing stored and nothing configured yields None."""
        service = AnalysisSettingsService(InMemoryHouseholdStorage(), settings=ledger_settings)

        assert asyncio.run(service.get_analysis_start_date()) is None

    def test_invalid_stored_value_is_ignored(self, ledger_settings):
        """Test an unparseable stored value is treated as unset."""
        storage = InMemoryHouseholdStorage(state={ANALYSIS_START_DATE_KEY: "last tuesday"})
        service = AnalysisSettingsService(storage, settings=ledger_settings)

        assert asyncio.run(service.get_analysis_start_date()) is None

    def test_falls_back_to_settings(self):
        """Test the environment setting is used when nothing is stored."""
        settings = LedgerSettings(_env_file=None, analysis_start_date="2023-11-01")
        service = AnalysisSettingsService(InMemoryHouseholdStorage(), settings=settings)

        assert asyncio.run(service.get_analysis_start_date()) == date(2023, 11, 1)

    def test_stored_value_beats_settings(self):
        """Test a stored value wins over the environment setting."""
        settings = LedgerSettings(_env_file=None, analysis_start_date="2023-11-01")
        storage = InMemoryHouseholdStorage(state={ANALYSIS_START_DATE_KEY: "2024-01-15"})
        service = AnalysisSettingsService(storage, settings=settings)

        assert asyncio.run(service.get_analysis_start_date()) == date(2024, 1, 15)


class TestSetAnalysisStartDate:
    """Tests for changing the setting."""

    def test_set_valid_date(self, ledger_settings, audit_logger, audit_storage):
        """Test a valid date is stored and audited."""
        storage = InMemoryHouseholdStorage()
        service = AnalysisSettingsService(storage, audit_logger, ledger_settings)

        result = asyncio.run(service.set_analysis_start_date("2024-02-01"))

        assert result.success is True
        assert result.cleared is False
        assert result.start_date == date(2024, 2, 1)
        assert result.message == "Analysis start date updated"
        assert asyncio.run(storage.get_state_value(ANALYSIS_START_DATE_KEY)) == "2024-02-01"
        assert recent_event_types(audit_storage) == [AuditEventType.ANALYSIS_START_DATE_SET]

    def test_blank_clears(self, ledger_settings, audit_logger, audit_storage):
        """Test a blank value removes the stored date."""
        storage = InMemoryHouseholdStorage(state={ANALYSIS_START_DATE_KEY: "2024-01-15"})
        service = AnalysisSettingsService(storage, audit_logger, ledger_settings)

        result = asyncio.run(service.set_analysis_start_date("  "))

        assert result.success is True
        assert result.cleared is True
        assert asyncio.run(storage.get_state_value(ANALYSIS_START_DATE_KEY)) is None
        assert recent_event_types(audit_storage) == [AuditEventType.ANALYSIS_START_DATE_CLEARED]

    def test_none_clears(self, ledger_settings, audit_logger):
        """Test None also clears the setting."""
        service = AnalysisSettingsService(InMemoryHouseholdStorage(), audit_logger, ledger_settings)

        assert asyncio.run(service.set_analysis_start_date(None)).cleared is True

    def test_invalid_date_rejected_without_writing(self, ledger_settings, audit_logger, audit_storage):
        """Test an invalid value returns an error and leaves the stored date alone."""
        storage = InMemoryHouseholdStorage(state={ANALYSIS_START_DATE_KEY: "2024-01-15"})
        service = AnalysisSettingsService(storage, audit_logger, ledger_settings)

        result = asyncio.run(service.set_analysis_start_date("2024-02-30"))

        assert result.success is False
        assert result.error == "Invalid date format"
        assert result.message == "Invalid date format"
        assert asyncio.run(storage.get_state_value(ANALYSIS_START_DATE_KEY)) == "2024-01-15"
        assert recent_event_types(audit_storage) == [AuditEventType.ANALYSIS_START_DATE_REJECTED]

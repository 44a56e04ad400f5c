"""
Analysis Start Date Setting

The analysis start date is the cutoff before which obligations and
payments are ignored. It is stored in the household's system state so
every flatmate sees the same ledger.

A stored value that does not parse is treated as unset. It never breaks
a balance calculation.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from flatledger.audit import AuditLogger
from flatledger.config import LedgerSettings, get_settings
from flatledger.ledger.dates import parse_start_date
from flatledger.models.ledger import AnalysisStartDateResult
from flatledger.services.storage import HouseholdStorageInterface


logger = structlog.get_logger(__name__)

ANALYSIS_START_DATE_KEY = "analysis_start_date"


class AnalysisSettingsService:
    """Reads and writes the analysis start date."""

    def __init__(
        self,
        storage: HouseholdStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._settings = settings or get_settings().ledger

    async def get_analysis_start_date(self) -> Optional[date]:
        """
        Get the configured analysis start date.

        The stored value wins; the LEDGER_ANALYSIS_START_DATE setting is
        the fallback when nothing is stored.
        """
        raw = await self._storage.get_state_value(ANALYSIS_START_DATE_KEY)
        if raw is not None and raw.strip():
            return parse_start_date(raw)
        return parse_start_date(self._settings.analysis_start_date)

    async def set_analysis_start_date(
        self,
        raw_value: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AnalysisStartDateResult:
        """
        Set or clear the analysis start date.

        A blank value clears the setting. An unparseable value is
        rejected and nothing is written.
        """
        if raw_value is None or not raw_value.strip():
            await self._storage.delete_state_value(ANALYSIS_START_DATE_KEY)
            await self._audit.log_analysis_start_date_cleared(correlation_id)
            return AnalysisStartDateResult(success=True, cleared=True)

        try:
            start_date = date.fromisoformat(raw_value.strip())
        except ValueError:
            logger.info("analysis_start_date_rejected", raw_value=raw_value)
            await self._audit.log_analysis_start_date_rejected(raw_value, correlation_id)
            return AnalysisStartDateResult(
                success=False,
                error="Invalid date format",
            )

        await self._storage.set_state_value(
            ANALYSIS_START_DATE_KEY,
            start_date.isoformat(),
        )
        await self._audit.log_analysis_start_date_set(start_date, correlation_id)
        return AnalysisStartDateResult(success=True, start_date=start_date)

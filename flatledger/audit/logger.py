"""
Audit Logger

DESIGN DECISION: Settings changes, balance runs and failures are logged.
This provides:
1. Traceability when a flatmate disputes a balance
2. Debugging capability
3. A history of who moved the analysis start date

A failed audit write never fails the page that triggered it. Events from
one page render share a correlation id.
"""

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from flatledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from flatledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


SEVERITY_LEVELS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "error",
}


class AuditLogger:
    """
    Writes audit events to the structlog stream and, when configured,
    to audit storage where every flatmate can read them.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Record an event.

        Returns False only when the storage append failed.
        """
        level = SEVERITY_LEVELS.get(event.severity, "info")
        getattr(self._logger, level)("audit_event", **event.to_log_dict())

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_analysis_start_date_set(
        self,
        start_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new analysis start date."""
        await self.log(
            AuditEventBuilder.analysis_start_date_set(
                start_date=start_date,
                correlation_id=correlation_id,
            )
        )

    async def log_analysis_start_date_cleared(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log removal of the analysis start date."""
        await self.log(
            AuditEventBuilder.analysis_start_date_cleared(
                correlation_id=correlation_id,
            )
        )

    async def log_analysis_start_date_rejected(
        self,
        raw_value: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.analysis_start_date_rejected(
                raw_value=raw_value,
                correlation_id=correlation_id,
            )
        )

    async def log_balances_calculated(
        self,
        flatmate_count: int,
        total_balance: str,
        start_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a household balance run."""
        await self.log(
            AuditEventBuilder.balances_calculated(
                flatmate_count=flatmate_count,
                total_balance=total_balance,
                start_date=start_date,
                correlation_id=correlation_id,
            )
        )

    async def log_user_balance_calculated(
        self,
        user_id: UUID,
        balance: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.user_balance_calculated(
                user_id=user_id,
                balance=balance,
                correlation_id=correlation_id,
            )
        )

    async def log_expense_summary_calculated(
        self,
        category_count: int,
        period: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.expense_summary_calculated(
                category_count=category_count,
                period=period,
                correlation_id=correlation_id,
            )
        )

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage backend failure."""
        await self.log(
            AuditEventBuilder.storage_error(
                operation=operation,
                error_message=error_message,
                correlation_id=correlation_id,
            )
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a page request and pass it through
    every flow call made while rendering it.
    """
    return uuid4()

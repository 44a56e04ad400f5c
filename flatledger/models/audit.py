"""
Audit Models for Flat Ledger

Settings changes, balance runs and failures are recorded so that a
flatmate asking "why does it say I'm behind?" can be answered from the
history rather than from memory.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Settings
    ANALYSIS_START_DATE_SET = "analysis_start_date_set"
    ANALYSIS_START_DATE_CLEARED = "analysis_start_date_cleared"
    ANALYSIS_START_DATE_REJECTED = "analysis_start_date_rejected"

    # Calculations
    BALANCES_CALCULATED = "balances_calculated"
    USER_BALANCE_CALCULATED = "user_balance_calculated"
    EXPENSE_SUMMARY_CALCULATED = "expense_summary_calculated"

    # Failures
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'flatmate', 'setting')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events raised by one page request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.analysis_start_date_set(date(2024, 1, 1))
        event = AuditEventBuilder.balances_calculated(4, "-120.00", correlation_id)
    """

    @staticmethod
    def analysis_start_date_set(
        start_date: date,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_START_DATE_SET,
            entity_type="setting",
            correlation_id=correlation_id,
            description=f"Analysis start date set to {start_date.isoformat()}",
            details={
                "analysis_start_date": start_date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def analysis_start_date_cleared(
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_START_DATE_CLEARED,
            entity_type="setting",
            correlation_id=correlation_id,
            description="Analysis start date cleared",
            is_user_action=True,
        )

    @staticmethod
    def analysis_start_date_rejected(
        raw_value: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_START_DATE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="setting",
            correlation_id=correlation_id,
            description="Rejected invalid analysis start date",
            details={
                "raw_value": raw_value,
            },
            is_user_action=True,
        )

    @staticmethod
    def balances_calculated(
        flatmate_count: int,
        total_balance: str,
        start_date: date,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_CALCULATED,
            entity_type="household",
            correlation_id=correlation_id,
            description=f"Balances calculated for {flatmate_count} flatmates",
            details={
                "flatmate_count": flatmate_count,
                "total_balance": total_balance,
                "start_date": start_date.isoformat(),
            },
        )

    @staticmethod
    def user_balance_calculated(
        user_id: UUID,
        balance: Optional[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        found = balance is not None
        return AuditEvent(
            event_type=AuditEventType.USER_BALANCE_CALCULATED,
            entity_type="flatmate",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=(
                f"Balance calculated: {balance}" if found
                else "Balance requested for unknown flatmate"
            ),
            details={
                "found": found,
                "balance": balance,
            },
        )

    @staticmethod
    def expense_summary_calculated(
        category_count: int,
        period: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SUMMARY_CALCULATED,
            entity_type="expenses",
            correlation_id=correlation_id,
            description=f"Expense summary for {category_count} categories ({period})",
            details={
                "category_count": category_count,
                "period": period,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )

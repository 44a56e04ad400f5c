"""
Data Models Package

This package contains all Pydantic models used in Flat Ledger.
Persisted records live in household/expense; derived results in ledger.
"""

from flatledger.models.household import (
    RENT_PAYMENT_MATCH_TYPE,
    Flatmate,
    PaymentSchedule,
    Transaction,
    UserRole,
    is_rent_payment,
)
from flatledger.models.ledger import (
    AnalysisStartDateResult,
    AutopaymentAdvice,
    AutopaymentStatus,
    CurrentWeekStatus,
    FlatmateBalance,
    PaymentSummary,
    PaymentTransactionRef,
    WeeklyObligation,
    WeekPaymentStatus,
)
from flatledger.models.expense import (
    BurnRate,
    CategorizedExpense,
    ExpenseCategory,
    ExpenseCategorySummary,
    ExpensePeriod,
    ExpenseTransaction,
    MonthlyAmount,
    MonthlyCategoryAmount,
    MonthlyExpenseData,
    PeriodRange,
)
from flatledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Household records
    "RENT_PAYMENT_MATCH_TYPE",
    "Flatmate",
    "PaymentSchedule",
    "Transaction",
    "UserRole",
    "is_rent_payment",
    # Ledger results
    "AnalysisStartDateResult",
    "AutopaymentAdvice",
    "AutopaymentStatus",
    "CurrentWeekStatus",
    "FlatmateBalance",
    "PaymentSummary",
    "PaymentTransactionRef",
    "WeeklyObligation",
    "WeekPaymentStatus",
    # Expenses
    "BurnRate",
    "CategorizedExpense",
    "ExpenseCategory",
    "ExpenseCategorySummary",
    "ExpensePeriod",
    "ExpenseTransaction",
    "MonthlyAmount",
    "MonthlyCategoryAmount",
    "MonthlyExpenseData",
    "PeriodRange",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

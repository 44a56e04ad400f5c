"""
Derived Ledger Models

Everything in this module is computed on request from schedules and
transactions. Nothing here is persisted.

Sign convention for every balance field:
    positive = paid ahead (credit)
    negative = behind (owes)
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from flatledger.models.household import Transaction


class PaymentTransactionRef(BaseModel):
    """A transaction as it appears inside a weekly breakdown."""

    id: UUID
    transaction_date: date
    amount: Decimal
    description: str = ""
    match_type: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "PaymentTransactionRef":
        return cls(
            id=tx.id,
            transaction_date=tx.transaction_date,
            amount=tx.amount,
            description=tx.description,
            match_type=tx.match_type,
            confidence=tx.match_confidence,
        )


class WeeklyObligation(BaseModel):
    """
    One week of rent for one flatmate.

    The week runs Monday to Sunday. Payments are counted towards the
    week if they land in the window around the due date and were not
    already claimed by an earlier week.
    """

    week_start: date = Field(..., description="Monday of the week")
    week_end: date = Field(..., description="Sunday of the week")
    due_date: date = Field(..., description="Thursday the rent is due")
    amount_due: Decimal = Field(default=Decimal("0"))
    amount_paid: Decimal = Field(default=Decimal("0"))
    balance: Decimal = Field(
        default=Decimal("0"),
        description="amount_paid - amount_due"
    )
    payment_transactions: list[PaymentTransactionRef] = Field(
        default_factory=list,
        description="Transactions assigned to this week"
    )


class FlatmateBalance(BaseModel):
    """
    Running balance for one flatmate over the analysis window.

    NOTE: total_paid is summed over every qualifying transaction in the
    window, not over the weekly breakdown. A payment that falls outside
    all weekly windows still counts here; see unassigned_paid.
    """

    user_id: UUID
    user_name: Optional[str] = None
    user_email: str
    total_due: Decimal = Field(default=Decimal("0"))
    total_paid: Decimal = Field(default=Decimal("0"))
    balance: Decimal = Field(
        default=Decimal("0"),
        description="total_paid - total_due"
    )
    weekly_breakdown: list[WeeklyObligation] = Field(default_factory=list)
    current_weekly_rate: Optional[Decimal] = Field(
        default=None,
        description="Rate in effect today, None if no schedule applies"
    )

    @property
    def display_name(self) -> str:
        return self.user_name or self.user_email.split("@")[0]

    @property
    def unassigned_paid(self) -> Decimal:
        """Paid amount that no weekly window picked up."""
        assigned = sum(
            (week.amount_paid for week in self.weekly_breakdown),
            Decimal("0"),
        )
        return self.total_paid - assigned


class PaymentSummary(BaseModel):
    """Household-wide roll-up of every flatmate's balance."""

    flatmates: list[FlatmateBalance] = Field(default_factory=list)
    total_due: Decimal = Field(default=Decimal("0"))
    total_paid: Decimal = Field(default=Decimal("0"))
    total_balance: Decimal = Field(default=Decimal("0"))


class WeekPaymentStatus(str, Enum):
    """Payment status for the current week."""
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"
    OVERPAID = "overpaid"


class CurrentWeekStatus(BaseModel):
    """Who owes what for the week containing today."""

    user_id: UUID
    user_name: Optional[str] = None
    amount_due: Decimal
    amount_paid: Decimal
    status: WeekPaymentStatus


class AutopaymentStatus(str, Enum):
    """How a flatmate's balance compares to their weekly rate."""
    ON_TRACK = "on_track"
    AHEAD = "ahead"
    BEHIND = "behind"


class AutopaymentAdvice(BaseModel):
    """
    Recommendation for a flatmate's recurring bank payment.

    detected_amount is the most common recent payment (rounded to the
    dollar) if it appeared at least twice.
    """

    status: AutopaymentStatus
    required_weekly: Decimal
    total_balance: Decimal
    detected_amount: Optional[Decimal] = None
    detected_frequency: int = Field(default=0, ge=0)
    weeks_to_settle: Decimal = Field(
        default=Decimal("0"),
        description="How many weeks of rent the balance represents"
    )
    correction_weeks: int = Field(default=8, ge=1)
    suggested_weekly_payment: Decimal = Field(
        default=Decimal("0"),
        description="Payment that clears the balance over correction_weeks"
    )

    @property
    def is_on_track(self) -> bool:
        return self.status == AutopaymentStatus.ON_TRACK

    @property
    def detected_matches_rate(self) -> bool:
        """True if the detected payment is within a dollar of the rate."""
        if self.detected_amount is None:
            return False
        return abs(self.detected_amount - self.required_weekly) <= 1


class AnalysisStartDateResult(BaseModel):
    """Outcome of changing the analysis start date."""

    success: bool
    cleared: bool = False
    start_date: Optional[date] = None
    error: Optional[str] = None

    @property
    def message(self) -> str:
        if not self.success:
            return self.error or "Could not update analysis start date"
        if self.cleared:
            return "Analysis start date cleared"
        return "Analysis start date updated"

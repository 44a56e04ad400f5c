"""
Household Data Models

These are the persisted records the ledger reads: flatmates, their
payment schedules, and bank transactions that have been matched to them.

DESIGN DECISION: Money is always Decimal. Rent is compared against
thresholds (95%, 110%) and summed over months of weeks, so float
rounding drift would show up as "$0.00 behind" on the dashboard.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# Match type assigned by the bank-import matcher to rent income
RENT_PAYMENT_MATCH_TYPE = "rent_payment"


def is_rent_payment(match_type: Optional[str]) -> bool:
    """Check if a match type marks a transaction as rent."""
    return match_type == RENT_PAYMENT_MATCH_TYPE


class UserRole(str, Enum):
    """Role of a household member."""
    ADMIN = "admin"
    FLATMATE = "flatmate"


class Flatmate(BaseModel):
    """
    A member of the household.

    Admins pay rent too, so they are included in every balance run.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique user ID"
    )
    name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Display name"
    )
    email: str = Field(
        ...,
        min_length=3,
        max_length=320,
        description="Login email"
    )
    role: UserRole = Field(
        default=UserRole.FLATMATE,
        description="Household role"
    )

    @property
    def display_name(self) -> str:
        """Name if set, otherwise the local part of the email."""
        return self.name or self.email.split("@")[0]


class PaymentSchedule(BaseModel):
    """
    A weekly rent rate for one flatmate over a date range.

    Schedules may overlap. When they do, the one that started most
    recently wins for any given week.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique schedule ID"
    )
    user_id: UUID = Field(
        ...,
        description="Flatmate this schedule applies to"
    )
    weekly_amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Rent owed per week"
    )
    start_date: date = Field(
        ...,
        description="First day the rate applies (inclusive)"
    )
    end_date: Optional[date] = Field(
        default=None,
        description="Last day the rate applies (inclusive); open-ended if None"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=500
    )

    @model_validator(mode='after')
    def validate_dates(self) -> 'PaymentSchedule':
        """End date must not precede start date."""
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    def covers(self, day: date) -> bool:
        """Check whether this schedule is in effect on the given day."""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


class Transaction(BaseModel):
    """
    A bank transaction.

    Amounts are signed: positive is money into the household account,
    negative is money out. Matching to a flatmate happens at import
    time and is only read here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    transaction_date: date = Field(
        ...,
        description="Date the transaction cleared"
    )
    amount: Decimal = Field(
        ...,
        decimal_places=2,
        description="Signed amount (positive = incoming)"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Bank statement description"
    )
    matched_user_id: Optional[UUID] = Field(
        default=None,
        description="Flatmate this transaction was matched to"
    )
    match_type: Optional[str] = Field(
        default=None,
        max_length=50,
        description="What the matcher decided this is (e.g. rent_payment)"
    )
    match_confidence: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Matcher confidence (0-1)"
    )

    @property
    def is_rent_income(self) -> bool:
        """Incoming money explicitly matched as rent."""
        return is_rent_payment(self.match_type) and self.amount > 0

"""
Expense Models

Shared household expenses (power, internet, groceries...) are bank
transactions linked to an expense category. The link is stored
separately from the transaction so a transaction can be re-categorised
without touching the bank record.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flatledger.models.household import Transaction


class ExpensePeriod(str, Enum):
    """Reporting periods offered on the expenses page."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class ExpenseCategory(BaseModel):
    """A bucket of shared expenses."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="URL-safe identifier (e.g. 'power')"
    )
    color: str = Field(
        default="#10b981",
        description="Chart colour"
    )
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    track_allotments: bool = Field(
        default=False,
        description="Show a burn rate for this category"
    )

    @field_validator('slug')
    @classmethod
    def normalise_slug(cls, v: str) -> str:
        return v.lower()


class ExpenseTransaction(BaseModel):
    """Link between a bank transaction and an expense category."""

    id: UUID = Field(default_factory=uuid4)
    transaction_id: UUID
    category_id: UUID
    notes: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CategorizedExpense(BaseModel):
    """A transaction together with its category link and category."""

    transaction: Transaction
    expense_transaction: ExpenseTransaction
    category: ExpenseCategory


class ExpenseCategorySummary(BaseModel):
    """Totals for one category over a period."""

    category: ExpenseCategory
    total_amount: Decimal = Field(default=Decimal("0"))
    transaction_count: int = Field(default=0, ge=0)
    average_amount: Decimal = Field(default=Decimal("0"))
    trend: Optional[float] = Field(
        default=None,
        description="Percent change from the previous period of equal length"
    )


class BurnRate(BaseModel):
    """How quickly money is going out in one category."""

    daily_rate: Decimal = Field(default=Decimal("0"))
    weekly_rate: Decimal = Field(default=Decimal("0"))
    monthly_rate: Decimal = Field(default=Decimal("0"))
    total_spent: Decimal = Field(default=Decimal("0"))
    days_covered: int = Field(default=0, ge=0)
    last_payment_date: Optional[date] = None
    last_payment_amount: Optional[Decimal] = None


class MonthlyCategoryAmount(BaseModel):
    category_id: UUID
    category_name: str
    category_color: str
    amount: Decimal = Field(default=Decimal("0"))


class MonthlyExpenseData(BaseModel):
    """One month of the stacked expense chart."""

    month: str = Field(..., description="Short label, e.g. 'Mar'")
    month_date: date = Field(..., description="First day of the month")
    categories: list[MonthlyCategoryAmount] = Field(default_factory=list)
    total: Decimal = Field(default=Decimal("0"))


class MonthlyAmount(BaseModel):
    month: str = Field(..., description="Label, e.g. 'Mar 24'")
    amount: Decimal = Field(default=Decimal("0"))


class PeriodRange(BaseModel):
    """Inclusive date bounds for a reporting period; None means unbounded."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None

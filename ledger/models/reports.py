"""
Derived / Report Models

These are never persisted in the ledger logs. They describe what the
engines and queries hand back to a presentation layer: history rows,
loan quotes and reminders, spending breakdowns.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ledger.models.account import Money


class ReminderKind(str, Enum):
    """Kind of loan reminder signal."""
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"


class LoanReminder(BaseModel):
    """
    Informational signal about the active loan.

    The engine never acts on this itself; the overdue gate is enforced
    separately by the transaction ledger.
    """
    model_config = ConfigDict(frozen=True)

    kind: ReminderKind
    loan_id: int
    due_date: date
    outstanding_balance: Money
    days_remaining: Optional[int] = Field(
        default=None,
        ge=0,
        description="Days until the due date (due-soon only)"
    )
    suggested_monthly_payment: Optional[Money] = Field(
        default=None,
        description="outstanding / repayment period (due-soon only)"
    )

    @property
    def is_overdue(self) -> bool:
        return self.kind == ReminderKind.OVERDUE


class LoanQuote(BaseModel):
    """Loan summary shown before the user confirms an application."""
    model_config = ConfigDict(frozen=True)

    principal_amount: Money
    interest_rate: Decimal
    repayment_period: int
    total_interest: Money
    total_repayment: Money
    monthly_payment: Money


class LoanProgress(BaseModel):
    """How far along repayment of a loan is."""
    model_config = ConfigDict(frozen=True)

    loan_id: int
    total_repayment: Money
    repaid_amount: Money
    outstanding_balance: Money
    percent_repaid: Money


class SavingsGrowthPoint(BaseModel):
    """Projected savings pot at the end of one month."""
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1)
    savings: Money


class HistoryRow(BaseModel):
    """
    One line of the transaction history report.

    Exactly one of debit / credit is set. balance is the gross running
    balance (savings diversions are NOT subtracted).
    """
    model_config = ConfigDict(frozen=True)

    entry_date: date
    description: str
    debit: Optional[Money] = None
    credit: Optional[Money] = None
    balance: Money


class SpendingShare(BaseModel):
    """One slice of the spending distribution."""
    model_config = ConfigDict(frozen=True)

    description: str
    amount: Money
    percentage: Money

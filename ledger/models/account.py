"""
Core Data Models for Personal Ledger

These models define the strict schemas for everything the ledger
stores or derives. They are designed to:
1. Keep every monetary value at exactly two decimal places
2. Provide clear validation error messages
3. Be convertible to and from CSV rows
4. Make the immutable parts (transactions, users) actually immutable

DESIGN DECISION: Money is Decimal, rounded half-up to 2dp on every write.
Floats never touch a balance.

NAMING NOTE: a "debit" puts money INTO the account and a "credit" takes
money OUT. This is the ledger's own convention, not the accounting one.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Optional

from dateutil.relativedelta import relativedelta
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


Money = Annotated[Decimal, AfterValidator(quantize_money)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a transaction. DEBIT adds to balance, CREDIT subtracts."""
    DEBIT = "debit"
    CREDIT = "credit"


class SavingsStatus(str, Enum):
    """Whether savings diversion is switched on."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class LoanStatus(str, Enum):
    """
    Loan lifecycle status.

    REPAID is terminal: a repaid loan never becomes active again.
    """
    ACTIVE = "active"
    REPAID = "repaid"


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class User(BaseModel):
    """
    A registered user.

    The password hash is opaque here; it is produced by the credential
    hashing helper in the validation package.
    """
    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254)
    password_hash: str = Field(..., min_length=1)


class Transaction(BaseModel):
    """
    A single ledger entry.

    CRITICAL: Transactions are immutable once created. The log of
    transactions is the event source every balance is derived from.
    """
    model_config = ConfigDict(frozen=True)

    transaction_id: int = Field(..., ge=1)
    user_id: int = Field(..., ge=1)
    kind: TransactionKind
    amount: Decimal = Field(
        ...,
        description="Always positive; direction comes from kind"
    )
    description: str = ""
    transaction_date: date

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Round half-up at construction and keep amounts positive."""
        v = quantize_money(v)
        if v <= 0:
            raise ValueError("Transaction amount must be positive")
        return v

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the running balance."""
        if self.kind == TransactionKind.DEBIT:
            return self.amount
        return -self.amount


class SavingsSetting(BaseModel):
    """
    One savings configuration entry.

    Settings are appended as history; only the latest row per user counts.
    """
    model_config = ConfigDict(frozen=True)

    savings_id: int = Field(..., ge=1)
    user_id: int = Field(..., ge=1)
    status: SavingsStatus
    percentage: int = Field(..., ge=0, le=100)

    @property
    def is_active(self) -> bool:
        return self.status == SavingsStatus.ACTIVE


class Loan(BaseModel):
    """
    A simple-interest installment loan.

    Loans are never mutated in place: repayment builds an updated copy,
    persists it, and only then swaps it into memory.
    """
    model_config = ConfigDict(frozen=True)

    loan_id: int = Field(..., ge=1)
    user_id: int = Field(..., ge=1)
    principal_amount: Money = Field(..., gt=0)
    interest_rate: Decimal = Field(
        ...,
        gt=0,
        description="Annual simple interest, in percent"
    )
    repayment_period: int = Field(
        ...,
        ge=1,
        description="Repayment period in months"
    )
    outstanding_balance: Money = Field(..., ge=0)
    status: LoanStatus = LoanStatus.ACTIVE
    created_at: date

    @property
    def due_date(self) -> date:
        """Creation date plus the repayment period, clamped to month end."""
        return self.created_at + relativedelta(months=self.repayment_period)

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE

    @property
    def total_repayment(self) -> Decimal:
        """Principal plus total simple interest over the whole period."""
        interest = (
            self.principal_amount
            * self.interest_rate
            * self.repayment_period
            / Decimal(1200)
        )
        return quantize_money(self.principal_amount + interest)


class AccountState(BaseModel):
    """
    Persisted part of the account projection that no other log can rebuild.

    diverted_total is the running sum of every amount ever moved into
    savings; it is what lets balance be re-derived from the transaction
    log after a restart.
    """
    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., ge=1)
    savings: Money = Field(default=ZERO, ge=0)
    diverted_total: Money = Field(default=ZERO, ge=0)
    last_activity_date: date


# =============================================================================
# ACCOUNT PROJECTION
# =============================================================================

class Account(BaseModel):
    """
    Mutable per-user projection.

    INVARIANT: balance == signed sum of the user's transactions
    minus diverted_total. It is a cache, never an independent source
    of truth. Every assignment is re-validated so money fields stay at 2dp.
    """
    model_config = ConfigDict(validate_assignment=True)

    user: User
    balance: Money = ZERO
    savings: Money = Field(default=ZERO, ge=0)
    outstanding_loan: Money = Field(default=ZERO, ge=0)
    savings_percentage: int = Field(default=0, ge=0, le=100)
    savings_active: bool = False
    last_activity_date: date
    diverted_total: Money = Field(default=ZERO, ge=0)

    @property
    def user_id(self) -> int:
        return self.user.user_id

    def state(self, **changes) -> AccountState:
        """Build the persisted state row, optionally with pending changes."""
        values = {
            "user_id": self.user_id,
            "savings": self.savings,
            "diverted_total": self.diverted_total,
            "last_activity_date": self.last_activity_date,
        }
        values.update(changes)
        return AccountState(**values)

    def snapshot(self) -> dict:
        """Plain dict of the projection for display and logging."""
        return {
            "user_id": self.user_id,
            "name": self.user.name,
            "balance": str(self.balance),
            "savings": str(self.savings),
            "outstanding_loan": str(self.outstanding_loan),
            "savings_active": self.savings_active,
            "savings_percentage": self.savings_percentage,
            "last_activity_date": self.last_activity_date.isoformat(),
        }


def find_latest_setting(
    settings: list[SavingsSetting],
    user_id: int,
) -> Optional[SavingsSetting]:
    """Return the authoritative (last appended) savings setting for a user."""
    latest = None
    for setting in settings:
        if setting.user_id == user_id:
            latest = setting
    return latest

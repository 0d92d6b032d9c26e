"""
Data Models Package

This package contains all Pydantic models used by the ledger.
All data flowing through the engines must conform to these schemas.
"""

from ledger.models.account import (
    ZERO,
    Account,
    AccountState,
    Loan,
    LoanStatus,
    Money,
    SavingsSetting,
    SavingsStatus,
    Transaction,
    TransactionKind,
    User,
    ValidationIssue,
    find_latest_setting,
    quantize_money,
)
from ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from ledger.models.reports import (
    HistoryRow,
    LoanProgress,
    LoanQuote,
    LoanReminder,
    ReminderKind,
    SavingsGrowthPoint,
    SpendingShare,
)

__all__ = [
    # Ledger models
    "ZERO",
    "Account",
    "AccountState",
    "Loan",
    "LoanStatus",
    "Money",
    "SavingsSetting",
    "SavingsStatus",
    "Transaction",
    "TransactionKind",
    "User",
    "ValidationIssue",
    "find_latest_setting",
    "quantize_money",
    # Report models
    "HistoryRow",
    "LoanProgress",
    "LoanQuote",
    "LoanReminder",
    "ReminderKind",
    "SavingsGrowthPoint",
    "SpendingShare",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

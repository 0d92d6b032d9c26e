"""
Audit Models for Personal Ledger

Every significant action in the ledger is logged for audit purposes.
This provides:
1. Traceability of every balance change
2. Debugging information when things go wrong
3. Ability to reconstruct what a session did

DESIGN DECISION: Audit events are emitted, never edited. They describe
what happened; they are not a second source of truth for balances.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every engine operation has its own event type.
    """
    # Identity
    USER_REGISTERED = "user_registered"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"

    # Transactions
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_BLOCKED = "transaction_blocked"
    VALIDATION_FAILED = "validation_failed"

    # Savings
    SAVINGS_CONFIGURED = "savings_configured"
    SAVINGS_DEACTIVATED = "savings_deactivated"
    SAVINGS_SWEPT = "savings_swept"

    # Loans
    LOAN_ORIGINATED = "loan_originated"
    LOAN_REPAYMENT = "loan_repayment"
    LOAN_REPAID = "loan_repaid"
    LOAN_REMINDER = "loan_reminder"

    # Reports
    HISTORY_EXPORTED = "history_exported"

    # System events
    PERSISTENCE_FAILED = "persistence_failed"
    ROLLBACK_FAILED = "rollback_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """One line of the audit trail. Built by AuditEventBuilder, never edited."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about: 'user', 'transaction', 'savings' or 'loan'
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    user_id: Optional[int] = None

    # One id per login session
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Flatten for structlog: ids and timestamps as strings, enums as values."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_registered(user_id, email)
        event = AuditEventBuilder.loan_originated(loan_id, user_id, total, correlation_id)
    """

    @staticmethod
    def user_registered(
        user_id: int,
        email: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description=f"User registered: {email}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def login_succeeded(
        user_id: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="User logged in",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description="Login failed",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: int,
        user_id: int,
        kind: str,
        amount: Decimal,
        diverted: Decimal,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Recorded {kind} of {amount}",
            details={
                "kind": kind,
                "amount": str(amount),
                "diverted_to_savings": str(diverted),
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_blocked(
        user_id: int,
        loan_id: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="loan",
            entity_id=loan_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Transaction blocked by overdue loan",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def savings_configured(
        savings_id: int,
        user_id: int,
        status: str,
        percentage: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        event_type = (
            AuditEventType.SAVINGS_CONFIGURED
            if status == "active"
            else AuditEventType.SAVINGS_DEACTIVATED
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="savings",
            entity_id=savings_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Savings set to {status} at {percentage}%",
            details={"status": status, "percentage": percentage},
            is_user_action=True,
        )

    @staticmethod
    def savings_swept(
        transaction_id: int,
        user_id: int,
        amount: Decimal,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_SWEPT,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Monthly savings of {amount} transferred to balance",
            details={"amount": str(amount)},
        )

    @staticmethod
    def loan_originated(
        loan_id: int,
        user_id: int,
        principal: Decimal,
        total_repayment: Decimal,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_ORIGINATED,
            entity_type="loan",
            entity_id=loan_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Loan of {principal} originated, {total_repayment} to repay",
            details={
                "principal": str(principal),
                "total_repayment": str(total_repayment),
            },
            is_user_action=True,
        )

    @staticmethod
    def loan_repayment(
        loan_id: int,
        user_id: int,
        amount: Decimal,
        outstanding: Decimal,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        event_type = (
            AuditEventType.LOAN_REPAID
            if outstanding == 0
            else AuditEventType.LOAN_REPAYMENT
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="loan",
            entity_id=loan_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Repayment of {amount}, {outstanding} outstanding",
            details={
                "amount": str(amount),
                "outstanding_balance": str(outstanding),
            },
            is_user_action=True,
        )

    @staticmethod
    def loan_reminder(
        loan_id: int,
        user_id: int,
        kind: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_REMINDER,
            severity=(
                AuditSeverity.WARNING if kind == "overdue" else AuditSeverity.INFO
            ),
            entity_type="loan",
            entity_id=loan_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Loan reminder: {kind}",
            details={"kind": kind},
        )

    @staticmethod
    def history_exported(
        user_id: int,
        path: str,
        row_count: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_EXPORTED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"History exported: {row_count} rows",
            details={"path": path, "row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        kind: str,
        error_message: str,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Failed to persist {kind} log",
            error_message=error_message,
            details={"kind": kind},
        )

    @staticmethod
    def rollback_failed(
        user_id: int,
        kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLBACK_FAILED,
            severity=AuditSeverity.CRITICAL,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Could not undo a partial write to the {kind} log",
            error_message=error_message,
            details={"kind": kind},
        )

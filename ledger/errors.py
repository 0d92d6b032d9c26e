"""
Domain errors for the ledger.

Engines raise these without knowing anything about how they are shown
to the user. The caller decides whether to print, retry or abort.

Exception hierarchy:
    LedgerError (base)
    ├── ValidationError       - malformed or out-of-range input
    ├── ConflictError         - uniqueness / cardinality violation
    ├── BlockedByOverdueLoan  - policy gate while a loan is overdue
    ├── AuthenticationError   - unknown email or wrong password
    └── PersistenceError      - store write failed (services.storage)
        └── RollbackError     - undo of an earlier write failed too
"""

from datetime import date
from typing import Optional

from ledger.models.account import ValidationIssue


class LedgerError(Exception):
    """Base exception for all ledger domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


class ValidationError(LedgerError):
    """
    Raised when user input is malformed or out of range.

    Attributes:
        issues: Every problem found, not just the first one.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        detail = "; ".join(issue.message for issue in issues) or "Invalid input"
        super().__init__(detail)

    @classmethod
    def single(
        cls,
        field: str,
        issue_type: str,
        message: str,
    ) -> "ValidationError":
        """Shortcut for the common one-issue case."""
        return cls([
            ValidationIssue(field=field, issue_type=issue_type, message=message)
        ])

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


class ConflictError(LedgerError):
    """Raised when an operation would break a uniqueness or cardinality rule."""
    pass


class BlockedByOverdueLoan(LedgerError):
    """Raised when a transaction is attempted while the active loan is overdue."""

    def __init__(self, loan_id: int, due_date: date):
        self.loan_id = loan_id
        self.due_date = due_date
        super().__init__(
            f"Cannot perform transactions: loan {loan_id} was due on "
            f"{due_date.isoformat()} and is overdue"
        )


class AuthenticationError(LedgerError):
    """Raised when login credentials are incorrect."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or "Invalid email or password")

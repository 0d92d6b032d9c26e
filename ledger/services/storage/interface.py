"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep flat CSV files today and swap in a database later
2. Use in-memory storage for testing
3. Keep the accounting engines decoupled from file handling

The interface is intentionally tiny - three raw operations per log:
append one row, rewrite every row, load every row. Typed helpers on top
convert between rows and models so engines never see raw strings.

Callers compute identities; the store never assigns ids.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ledger.errors import LedgerError
from ledger.models.account import (
    AccountState,
    Loan,
    SavingsSetting,
    Transaction,
    User,
)
from ledger.services.storage import records


class RecordKind(str, Enum):
    """The logs the ledger keeps, one file each."""
    USERS = "users"
    TRANSACTIONS = "transactions"
    SAVINGS = "savings"
    LOANS = "loans"
    ACCOUNTS = "accounts"


# Fixed header row written when a log is created
HEADERS: dict[RecordKind, list[str]] = {
    RecordKind.USERS: records.USER_COLUMNS,
    RecordKind.TRANSACTIONS: records.TRANSACTION_COLUMNS,
    RecordKind.SAVINGS: records.SAVINGS_COLUMNS,
    RecordKind.LOANS: records.LOAN_COLUMNS,
    RecordKind.ACCOUNTS: records.ACCOUNT_COLUMNS,
}

Row = dict[str, str]


class PersistenceError(LedgerError):
    """
    A store operation failed.

    The mutating operation that triggered it must be treated as not
    applied: in-memory state is left exactly as it was.
    """

    def __init__(self, kind: str, detail: str, line: Optional[int] = None):
        self.kind = kind
        self.line = line
        location = f" (line {line})" if line is not None else ""
        super().__init__(f"{kind} log{location}: {detail}")


class RollbackError(PersistenceError):
    """
    Undoing an earlier write of the same operation failed.

    The log named by kind still holds the row written by the first step
    while the step after it was never saved. In-memory state mirrors what
    is on disk, not what the operation intended.
    """


class RecordStoreInterface(ABC):
    """
    Abstract interface for the ledger's durable logs.

    Any storage implementation (CSV files, SQLite, in-memory, etc.)
    must implement the three raw methods plus ensure_logs.
    """

    @abstractmethod
    def ensure_logs(self) -> None:
        """Create every missing log with its header row."""
        pass

    @abstractmethod
    def append_row(self, kind: RecordKind, row: Row) -> None:
        """
        Durably add one row to the end of a log.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def rewrite_all(self, kind: RecordKind, rows: list[Row]) -> None:
        """
        Replace the entire content of a log (header is kept).

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def load_all(self, kind: RecordKind) -> list[Row]:
        """
        Return every row of a log in file order, header excluded.

        Raises:
            PersistenceError: If the log cannot be read
        """
        pass

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def _load_typed(self, kind: RecordKind, convert) -> list:
        typed = []
        # Line 1 is the header
        for line, row in enumerate(self.load_all(kind), start=2):
            try:
                typed.append(convert(row))
            except (KeyError, TypeError, ValueError, ArithmeticError) as e:
                raise PersistenceError(kind.value, f"malformed row: {e}", line=line)
        return typed

    def load_users(self) -> list[User]:
        return self._load_typed(RecordKind.USERS, records.row_to_user)

    def load_transactions(self) -> list[Transaction]:
        return self._load_typed(RecordKind.TRANSACTIONS, records.row_to_transaction)

    def load_savings_settings(self) -> list[SavingsSetting]:
        return self._load_typed(RecordKind.SAVINGS, records.row_to_savings_setting)

    def load_loans(self) -> list[Loan]:
        return self._load_typed(RecordKind.LOANS, records.row_to_loan)

    def load_account_states(self) -> list[AccountState]:
        return self._load_typed(RecordKind.ACCOUNTS, records.row_to_account_state)

    def append_user(self, user: User) -> None:
        self.append_row(RecordKind.USERS, records.user_to_row(user))

    def append_transaction(self, transaction: Transaction) -> None:
        self.append_row(RecordKind.TRANSACTIONS, records.transaction_to_row(transaction))

    def append_savings_setting(self, setting: SavingsSetting) -> None:
        self.append_row(RecordKind.SAVINGS, records.savings_setting_to_row(setting))

    def append_loan(self, loan: Loan) -> None:
        self.append_row(RecordKind.LOANS, records.loan_to_row(loan))

    def rewrite_loans(self, loans: list[Loan]) -> None:
        self.rewrite_all(RecordKind.LOANS, [records.loan_to_row(loan) for loan in loans])

    def rewrite_account_states(self, states: list[AccountState]) -> None:
        self.rewrite_all(
            RecordKind.ACCOUNTS,
            [records.account_state_to_row(state) for state in states],
        )

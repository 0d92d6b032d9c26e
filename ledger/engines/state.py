"""
In-memory ledger state.

Hydrated once from the record store at startup and then kept in step
with it by the engines: every engine persists first and only then
updates these collections.

Identity assignment: the next id of a log is the highest id already in
it plus one. The persisted log itself is the counter, so gaps never
cause collisions.
"""

from typing import Optional

from ledger.models.account import (
    AccountState,
    Loan,
    SavingsSetting,
    Transaction,
    User,
    find_latest_setting,
)
from ledger.services.storage import RecordStoreInterface


class LedgerState:
    """Every record the ledger knows about, in log order."""

    def __init__(
        self,
        users: Optional[list[User]] = None,
        transactions: Optional[list[Transaction]] = None,
        savings_settings: Optional[list[SavingsSetting]] = None,
        loans: Optional[list[Loan]] = None,
        account_states: Optional[list[AccountState]] = None,
    ):
        self.users: list[User] = list(users or [])
        self.transactions: list[Transaction] = list(transactions or [])
        self.savings_settings: list[SavingsSetting] = list(savings_settings or [])
        self.loans: list[Loan] = list(loans or [])
        self.account_states: dict[int, AccountState] = {
            state.user_id: state for state in (account_states or [])
        }

    @classmethod
    def load(cls, store: RecordStoreInterface) -> "LedgerState":
        """Read every log once."""
        return cls(
            users=store.load_users(),
            transactions=store.load_transactions(),
            savings_settings=store.load_savings_settings(),
            loans=store.load_loans(),
            account_states=store.load_account_states(),
        )

    # ------------------------------------------------------------------
    # Id assignment
    # ------------------------------------------------------------------

    def next_user_id(self) -> int:
        return max((user.user_id for user in self.users), default=0) + 1

    def next_transaction_id(self) -> int:
        return max((t.transaction_id for t in self.transactions), default=0) + 1

    def next_savings_id(self) -> int:
        return max((s.savings_id for s in self.savings_settings), default=0) + 1

    def next_loan_id(self) -> int:
        return max((loan.loan_id for loan in self.loans), default=0) + 1

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def user_by_email(self, email: str) -> Optional[User]:
        for user in self.users:
            if user.email == email:
                return user
        return None

    def transactions_for(self, user_id: int) -> list[Transaction]:
        return [t for t in self.transactions if t.user_id == user_id]

    def latest_savings_setting(self, user_id: int) -> Optional[SavingsSetting]:
        return find_latest_setting(self.savings_settings, user_id)

    def loans_for(self, user_id: int) -> list[Loan]:
        return [loan for loan in self.loans if loan.user_id == user_id]

    def active_loan(self, user_id: int) -> Optional[Loan]:
        for loan in self.loans:
            if loan.user_id == user_id and loan.is_active:
                return loan
        return None

    def loan_by_id(self, loan_id: int) -> Optional[Loan]:
        for loan in self.loans:
            if loan.loan_id == loan_id:
                return loan
        return None

    # ------------------------------------------------------------------
    # Derived views used for full rewrites
    # ------------------------------------------------------------------

    def loans_with(self, updated: Loan) -> list[Loan]:
        """The loan log with one loan replaced by its updated version."""
        return [
            updated if loan.loan_id == updated.loan_id else loan
            for loan in self.loans
        ]

    def account_states_with(self, updated: AccountState) -> list[AccountState]:
        """The account-state log with one user's row added or replaced."""
        states = dict(self.account_states)
        states[updated.user_id] = updated
        return [states[user_id] for user_id in sorted(states)]

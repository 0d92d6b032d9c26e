"""
Transaction Ledger

Every balance change goes through record_transaction:

    overdue gate -> validate -> build -> persist -> mutate memory -> audit

Persistence always happens before the Account projection or the
in-memory log changes, so a PersistenceError leaves the session exactly
as it was. When a debit also diverts money into savings, the account
state row is written first and rolled back if the transaction append
then fails.

NAMING NOTE: debit = money in, credit = money out. The savings
diversion fires on DEBIT.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union
from uuid import UUID

from ledger.audit import AuditLogger
from ledger.config import LedgerRulesSettings, get_settings
from ledger.errors import BlockedByOverdueLoan, ValidationError
from ledger.models.account import (
    ZERO,
    Account,
    Transaction,
    TransactionKind,
)
from ledger.models.audit import AuditEventBuilder
from ledger.models.reports import HistoryRow
from ledger.services.storage import PersistenceError, RecordKind, RecordStoreInterface
from ledger.engines.loans import LoanEngine
from ledger.engines.savings import SavingsEngine
from ledger.engines.state import LedgerState
from ledger.validation import InputValidator
from ledger.validation.validator import NumberLike


class TransactionLedger:
    """Records debits and credits against an account."""

    def __init__(
        self,
        store: RecordStoreInterface,
        state: LedgerState,
        savings: SavingsEngine,
        loans: LoanEngine,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        rules: Optional[LedgerRulesSettings] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._store = store
        self._state = state
        self._savings = savings
        self._loans = loans
        self._rules = rules or get_settings().rules
        self._validator = validator or InputValidator(self._rules)
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

    def transactions_for(self, user_id: int) -> list[Transaction]:
        return self._state.transactions_for(user_id)

    def record_transaction(
        self,
        account: Account,
        kind: Union[str, TransactionKind],
        amount: NumberLike,
        description: str = "",
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record one debit or credit.

        Args:
            account: Projection of the logged-in user (mutated on success)
            kind: "debit" (money in) or "credit" (money out)
            amount: Positive amount, rounded half-up to 2dp
            description: Free text, at most description_max_length characters
            today: Transaction date (defaults to the engine clock)
            correlation_id: Session id for the audit trail

        Returns:
            The persisted transaction

        Raises:
            BlockedByOverdueLoan: If the user's active loan is overdue
            ValidationError: If kind, amount or description is invalid
            PersistenceError: If the store write failed (nothing changed)
        """
        today = today or self._clock()

        # Step 1: Overdue gate, checked before the input is even looked at
        overdue = self._loans.overdue_loan(account.user_id, today)
        if overdue is not None:
            self._audit.log(AuditEventBuilder.transaction_blocked(
                user_id=account.user_id,
                loan_id=overdue.loan_id,
                correlation_id=correlation_id,
            ))
            raise BlockedByOverdueLoan(overdue.loan_id, overdue.due_date)

        # Step 2: Validate
        try:
            kind, amount, description = self._validator.validate_transaction(
                kind, amount, description
            )
        except ValidationError as e:
            self._audit.log_validation_failed(
                operation="record_transaction",
                issues=[issue.model_dump() for issue in e.issues],
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        # Step 3: Build
        transaction = Transaction(
            transaction_id=self._state.next_transaction_id(),
            user_id=account.user_id,
            kind=kind,
            amount=amount,
            description=description,
            transaction_date=today,
        )

        diverted = ZERO
        if kind == TransactionKind.DEBIT:
            diverted = self._savings.apply_savings_on_credit(account, amount)

        # Step 4: Persist
        previous_state = account.state()
        if diverted > 0:
            self._savings.persist_account_state(
                account.state(
                    savings=account.savings + diverted,
                    diverted_total=account.diverted_total + diverted,
                ),
                correlation_id,
            )

        try:
            self._store.append_transaction(transaction)
        except PersistenceError as e:
            self._audit.log_persistence_failed(
                kind=RecordKind.TRANSACTIONS.value,
                error_message=e.detail,
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            if diverted > 0:
                self._savings.restore_account_state(previous_state, correlation_id)
            raise

        # Step 5: Mutate memory
        self._state.transactions.append(transaction)
        account.balance = account.balance + transaction.signed_amount - diverted
        if diverted > 0:
            account.savings = account.savings + diverted
            account.diverted_total = account.diverted_total + diverted

        self._audit.log(AuditEventBuilder.transaction_recorded(
            transaction_id=transaction.transaction_id,
            user_id=account.user_id,
            kind=kind.value,
            amount=amount,
            diverted=diverted,
            correlation_id=correlation_id,
        ))
        return transaction

    def debit(
        self,
        account: Account,
        amount: NumberLike,
        description: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """Money in."""
        return self.record_transaction(
            account, TransactionKind.DEBIT, amount, description,
            correlation_id=correlation_id,
        )

    def credit(
        self,
        account: Account,
        amount: NumberLike,
        description: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """Money out."""
        return self.record_transaction(
            account, TransactionKind.CREDIT, amount, description,
            correlation_id=correlation_id,
        )


def compute_history(transactions: Iterable[Transaction]) -> list[HistoryRow]:
    """
    Rebuild the running balance of a transaction list, oldest first.

    Ties on date keep their log order. Savings diversions are NOT
    subtracted, so the last balance is the gross sum and can be higher
    than the live account balance.
    """
    rows = []
    balance = ZERO
    for transaction in sorted(transactions, key=lambda t: t.transaction_date):
        balance += transaction.signed_amount
        is_debit = transaction.kind == TransactionKind.DEBIT
        rows.append(HistoryRow(
            entry_date=transaction.transaction_date,
            description=transaction.description,
            debit=transaction.amount if is_debit else None,
            credit=None if is_debit else transaction.amount,
            balance=balance,
        ))
    return rows


def signed_total(transactions: Iterable[Transaction]) -> Decimal:
    """Gross balance of a transaction list: debits minus credits."""
    return sum((t.signed_amount for t in transactions), ZERO)

"""
Savings Engine

Two jobs:
1. DIVERSION - on every debit (money in) a configured percentage is moved
   into the savings pot instead of the balance.
2. SWEEP - when a login lands in a different calendar month than the
   previous activity, the whole pot goes back into the balance as a
   synthetic "Monthly Savings Transfer" debit.

The pot and the cumulative diverted total live in the account-state log
so both survive a restart.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

from ledger.audit import AuditLogger
from ledger.config import LedgerRulesSettings, get_settings
from ledger.errors import ValidationError
from ledger.models.account import (
    ZERO,
    Account,
    AccountState,
    SavingsSetting,
    SavingsStatus,
    Transaction,
    TransactionKind,
    quantize_money,
)
from ledger.models.audit import AuditEventBuilder
from ledger.services.storage import (
    PersistenceError,
    RecordKind,
    RecordStoreInterface,
    RollbackError,
)
from ledger.engines.state import LedgerState
from ledger.validation import InputValidator


class SavingsEngine:
    """Savings diversion, monthly sweep and savings configuration."""

    def __init__(
        self,
        store: RecordStoreInterface,
        state: LedgerState,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        rules: Optional[LedgerRulesSettings] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._store = store
        self._state = state
        self._rules = rules or get_settings().rules
        self._validator = validator or InputValidator(self._rules)
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

    # ------------------------------------------------------------------
    # Account-state persistence (shared with the transaction ledger)
    # ------------------------------------------------------------------

    def persist_account_state(
        self,
        new_state: AccountState,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Write one user's account-state row, then update memory.

        Raises:
            PersistenceError: If the rewrite fails (memory untouched)
        """
        try:
            self._store.rewrite_account_states(self._state.account_states_with(new_state))
        except PersistenceError as e:
            self._audit.log_persistence_failed(
                kind=RecordKind.ACCOUNTS.value,
                error_message=e.detail,
                user_id=new_state.user_id,
                correlation_id=correlation_id,
            )
            raise
        self._state.account_states[new_state.user_id] = new_state

    def restore_account_state(
        self,
        previous: AccountState,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Undo persist_account_state after a later step of the same operation failed.

        Raises:
            RollbackError: If the undo could not be written. The account
                state log and LedgerState.account_states both keep the
                row of the first step.
        """
        try:
            self.persist_account_state(previous, correlation_id)
        except PersistenceError as e:
            self._audit.log(AuditEventBuilder.rollback_failed(
                user_id=previous.user_id,
                kind=RecordKind.ACCOUNTS.value,
                error_message=e.detail,
                correlation_id=correlation_id,
            ))
            raise RollbackError(
                RecordKind.ACCOUNTS.value,
                f"could not restore the row of user {previous.user_id}: {e.detail}",
            ) from e

    # ------------------------------------------------------------------
    # Diversion
    # ------------------------------------------------------------------

    def apply_savings_on_credit(self, account: Account, amount: Decimal) -> Decimal:
        """
        Amount of a debit that goes to savings instead of the balance.

        Despite the name this runs on DEBIT transactions (money in); the
        name keeps the ledger's historical vocabulary. Pure: the caller
        applies the result after persisting.
        """
        if not account.savings_active:
            return ZERO
        return quantize_money(amount * account.savings_percentage / Decimal(100))

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def sweep_if_month_boundary_crossed(
        self,
        account: Account,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Transaction]:
        """
        Move the savings pot into the balance when a new month has started.

        Always stamps last_activity_date = today. Running it again in the
        same month does nothing.

        Returns:
            The synthetic transfer transaction, or None if no sweep happened
        """
        today = today or self._clock()
        last = account.last_activity_date
        crossed = (today.year, today.month) != (last.year, last.month)

        if crossed and account.savings > 0:
            return self._sweep(account, today, correlation_id)

        if last != today:
            self.persist_account_state(
                account.state(last_activity_date=today),
                correlation_id,
            )
            account.last_activity_date = today
        return None

    def _sweep(
        self,
        account: Account,
        today: date,
        correlation_id: Optional[UUID],
    ) -> Transaction:
        amount = account.savings
        transfer = Transaction(
            transaction_id=self._state.next_transaction_id(),
            user_id=account.user_id,
            kind=TransactionKind.DEBIT,
            amount=amount,
            description=self._rules.savings_transfer_description,
            transaction_date=today,
        )

        previous = account.state()
        self.persist_account_state(
            account.state(savings=ZERO, last_activity_date=today),
            correlation_id,
        )
        try:
            self._store.append_transaction(transfer)
        except PersistenceError as e:
            self._audit.log_persistence_failed(
                kind=RecordKind.TRANSACTIONS.value,
                error_message=e.detail,
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            self.restore_account_state(previous, correlation_id)
            raise

        self._state.transactions.append(transfer)
        account.balance = account.balance + amount
        account.savings = ZERO
        account.last_activity_date = today

        self._audit.log(AuditEventBuilder.savings_swept(
            transaction_id=transfer.transaction_id,
            user_id=account.user_id,
            amount=amount,
            correlation_id=correlation_id,
        ))
        return transfer

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_savings_configuration(
        self,
        account: Account,
        percentage: Union[int, str],
        correlation_id: Optional[UUID] = None,
    ) -> SavingsSetting:
        """
        Activate savings diversion at the given percentage.

        Raises:
            ValidationError: If percentage is not an integer in [0, 100]
            PersistenceError: If the setting could not be saved
        """
        try:
            percentage = self._validator.validate_percentage(percentage)
        except ValidationError as e:
            self._audit.log_validation_failed(
                operation="set_savings",
                issues=[issue.model_dump() for issue in e.issues],
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        return self._append_setting(account, SavingsStatus.ACTIVE, percentage, correlation_id)

    def deactivate_savings(
        self,
        account: Account,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsSetting:
        """Stop diverting. The pot stays where it is until the next sweep."""
        return self._append_setting(
            account,
            SavingsStatus.INACTIVE,
            account.savings_percentage,
            correlation_id,
        )

    def _append_setting(
        self,
        account: Account,
        status: SavingsStatus,
        percentage: int,
        correlation_id: Optional[UUID],
    ) -> SavingsSetting:
        setting = SavingsSetting(
            savings_id=self._state.next_savings_id(),
            user_id=account.user_id,
            status=status,
            percentage=percentage,
        )
        try:
            self._store.append_savings_setting(setting)
        except PersistenceError as e:
            self._audit.log_persistence_failed(
                kind=RecordKind.SAVINGS.value,
                error_message=e.detail,
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        self._state.savings_settings.append(setting)
        account.savings_active = setting.is_active
        account.savings_percentage = setting.percentage

        self._audit.log(AuditEventBuilder.savings_configured(
            savings_id=setting.savings_id,
            user_id=account.user_id,
            status=status.value,
            percentage=percentage,
            correlation_id=correlation_id,
        ))
        return setting

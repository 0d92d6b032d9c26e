"""
Main Orchestrator for Personal Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Registration (validate -> unique email -> hash -> persist)
2. Login (authenticate -> build account projection -> monthly sweep
   -> loan reminders)
3. Session operations (transactions, savings, loans, history)

DESIGN DECISION: There is no ambient "current user". Login returns an
explicit LedgerSession holding the Account projection and a correlation
id; every operation on behalf of that user goes through it.

The orchestrator enforces the boundaries:
- Engines persist before they mutate the projection
- The sweep runs exactly once per login, before anything else
- Every step is audited
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, Union
from uuid import UUID

from ledger.audit import AuditLogger, configure_logging, create_correlation_id
from ledger.config import Settings, get_settings
from ledger.engines import (
    LedgerState,
    LoanEngine,
    SavingsEngine,
    TransactionLedger,
    compute_history,
    predict_monthly_interest,
    signed_total,
)
from ledger.errors import AuthenticationError, ConflictError, ValidationError
from ledger.models.account import (
    ZERO,
    Account,
    Loan,
    SavingsSetting,
    Transaction,
    TransactionKind,
    User,
)
from ledger.models.audit import AuditEventBuilder
from ledger.models.reports import (
    HistoryRow,
    LoanProgress,
    LoanQuote,
    LoanReminder,
    SavingsGrowthPoint,
    SpendingShare,
)
from ledger.queries import (
    export_history,
    loan_progress,
    monthly_spending,
    savings_growth,
    spending_distribution,
)
from ledger.services.storage import (
    CsvRecordStore,
    PersistenceError,
    RecordKind,
    RecordStoreInterface,
)
from ledger.validation import InputValidator, hash_password
from ledger.validation.validator import NumberLike


class LedgerSession:
    """
    One logged-in user.

    Wraps the engines so callers never pass the account or the
    correlation id around themselves.
    """

    def __init__(
        self,
        service: "LedgerService",
        account: Account,
        correlation_id: UUID,
        reminders: list[LoanReminder],
        sweep: Optional[Transaction] = None,
    ):
        self._service = service
        self.account = account
        self.correlation_id = correlation_id
        self.reminders = reminders
        self.sweep = sweep

    @property
    def user(self) -> User:
        return self.account.user

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def record_transaction(
        self,
        kind: Union[str, TransactionKind],
        amount: NumberLike,
        description: str = "",
    ) -> Transaction:
        return self._service.ledger.record_transaction(
            self.account,
            kind,
            amount,
            description,
            correlation_id=self.correlation_id,
        )

    def debit(self, amount: NumberLike, description: str = "") -> Transaction:
        """Money in. Part of it may be diverted to savings."""
        return self.record_transaction(TransactionKind.DEBIT, amount, description)

    def credit(self, amount: NumberLike, description: str = "") -> Transaction:
        """Money out."""
        return self.record_transaction(TransactionKind.CREDIT, amount, description)

    def transactions(self) -> list[Transaction]:
        return self._service.ledger.transactions_for(self.account.user_id)

    # ------------------------------------------------------------------
    # Savings
    # ------------------------------------------------------------------

    def configure_savings(self, percentage: Union[int, str]) -> SavingsSetting:
        return self._service.savings.set_savings_configuration(
            self.account, percentage, self.correlation_id
        )

    def deactivate_savings(self) -> SavingsSetting:
        return self._service.savings.deactivate_savings(self.account, self.correlation_id)

    # ------------------------------------------------------------------
    # Loans
    # ------------------------------------------------------------------

    def active_loan(self) -> Optional[Loan]:
        return self._service.loans.active_loan(self.account.user_id)

    def quote_loan(
        self,
        principal: NumberLike,
        annual_rate_percent: NumberLike,
        months: Union[int, str],
    ) -> LoanQuote:
        return self._service.loans.quote(principal, annual_rate_percent, months)

    def apply_for_loan(
        self,
        principal: NumberLike,
        annual_rate_percent: NumberLike,
        months: Union[int, str],
    ) -> Loan:
        return self._service.loans.apply_for_loan(
            self.account,
            principal,
            annual_rate_percent,
            months,
            correlation_id=self.correlation_id,
        )

    def repay_loan(self, amount: NumberLike) -> Loan:
        """
        Repay part of the active loan.

        Raises:
            ValidationError: If there is no active loan or the amount is invalid
        """
        loan = self.active_loan()
        if loan is None:
            raise ValidationError.single(
                "loan",
                "no_active_loan",
                "No active loan to repay",
            )
        return self._service.loans.repay(self.account, loan, amount, self.correlation_id)

    def loan_status(self, today: Optional[date] = None) -> Optional[LoanReminder]:
        loan = self.active_loan()
        if loan is None:
            return None
        return self._service.loans.check_status(loan, today)

    def loan_progress(self) -> Optional[LoanProgress]:
        loan = self.active_loan()
        if loan is None:
            return None
        return loan_progress(loan)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def history(self) -> list[HistoryRow]:
        return compute_history(self.transactions())

    def export_history(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write the history report, by default history_<user_id>.csv in the
        data directory.
        """
        path = Path(path) if path else self._service.export_dir / f"history_{self.account.user_id}.csv"
        try:
            count = export_history(self.history(), path)
        except PersistenceError as e:
            self._service.audit.log_persistence_failed(
                kind="history",
                error_message=e.detail,
                user_id=self.account.user_id,
                correlation_id=self.correlation_id,
            )
            raise
        self._service.audit.log(AuditEventBuilder.history_exported(
            user_id=self.account.user_id,
            path=str(path),
            row_count=count,
            correlation_id=self.correlation_id,
        ))
        return path

    def monthly_spending(self) -> dict[str, Decimal]:
        return monthly_spending(self.transactions())

    def spending_distribution(self) -> list[SpendingShare]:
        return spending_distribution(self.transactions())

    def savings_growth(
        self,
        monthly_debit: Decimal = Decimal(1000),
        months: int = 12,
    ) -> list[SavingsGrowthPoint]:
        """Projection of the savings pot at the current percentage (0 when inactive)."""
        percentage = self.account.savings_percentage if self.account.savings_active else 0
        return savings_growth(self.account.savings, percentage, monthly_debit, months)

    def predict_deposit_interest(self, bank_name: str) -> Decimal:
        """Monthly interest the current balance would earn at the given bank."""
        return predict_monthly_interest(
            self.account.balance,
            bank_name,
            self._service.settings.rules.bank_rates,
        )


class LedgerService:
    """
    Entry point: hydrates state from the store once, then registers
    users and opens sessions.
    """

    def __init__(
        self,
        store: Optional[RecordStoreInterface] = None,
        settings: Optional[Settings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.settings = settings or get_settings()
        self.store = store or CsvRecordStore(self.settings.storage)
        self.audit = audit_logger or AuditLogger()
        self.clock = clock

        rules = self.settings.rules
        self.validator = InputValidator(rules)
        self.state = LedgerState.load(self.store)

        self.savings = SavingsEngine(
            self.store, self.state, self.validator, self.audit, rules, clock
        )
        self.loans = LoanEngine(
            self.store, self.state, self.validator, self.audit, rules, clock
        )
        self.ledger = TransactionLedger(
            self.store,
            self.state,
            self.savings,
            self.loans,
            self.validator,
            self.audit,
            rules,
            clock,
        )

    @property
    def export_dir(self) -> Path:
        if isinstance(self.store, CsvRecordStore):
            return self.store.data_dir
        return Path(self.settings.storage.data_dir)

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create a new user.

        Raises:
            ValidationError: If name, email or password is malformed
            ConflictError: If the email is already registered
            PersistenceError: If the user could not be saved
        """
        try:
            name, email = self.validator.validate_registration(name, email, password)
        except ValidationError as e:
            self.audit.log_validation_failed(
                operation="register",
                issues=[issue.model_dump() for issue in e.issues],
            )
            raise

        if self.state.user_by_email(email) is not None:
            raise ConflictError(f"Email already registered: {email}")

        user = User(
            user_id=self.state.next_user_id(),
            name=name,
            email=email,
            password_hash=hash_password(password),
        )
        try:
            self.store.append_user(user)
        except PersistenceError as e:
            self.audit.log_persistence_failed(
                kind=RecordKind.USERS.value,
                error_message=e.detail,
            )
            raise

        self.state.users.append(user)
        self.audit.log(AuditEventBuilder.user_registered(user.user_id, user.email))
        return user

    def login(self, email: str, password: str) -> LedgerSession:
        """
        Authenticate and open a session.

        The monthly savings sweep runs here, before the session is
        handed back, followed by the loan reminder check.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
            PersistenceError: If the sweep could not be saved
        """
        email = (email or "").strip()
        user = self.state.user_by_email(email)
        if user is None or user.password_hash != hash_password(password or ""):
            self.audit.log(AuditEventBuilder.login_failed(email))
            raise AuthenticationError()

        correlation_id = create_correlation_id()
        self.audit.log(AuditEventBuilder.login_succeeded(user.user_id, correlation_id))

        today = self.clock()
        account = self.build_account(user, today)
        sweep = self.savings.sweep_if_month_boundary_crossed(account, today, correlation_id)
        reminders = self.loans.reminders_for(user.user_id, today, correlation_id)

        return LedgerSession(self, account, correlation_id, reminders, sweep)

    def build_account(self, user: User, today: Optional[date] = None) -> Account:
        """
        Project a user's logs into an Account.

        balance = signed sum of the user's transactions - diverted_total.
        A user with no account-state row yet starts with an empty pot,
        last active today.
        """
        state = self.state.account_states.get(user.user_id)
        setting = self.state.latest_savings_setting(user.user_id)
        loan = self.state.active_loan(user.user_id)

        diverted_total = state.diverted_total if state else ZERO
        return Account(
            user=user,
            balance=signed_total(self.state.transactions_for(user.user_id)) - diverted_total,
            savings=state.savings if state else ZERO,
            diverted_total=diverted_total,
            last_activity_date=state.last_activity_date if state else (today or self.clock()),
            savings_active=setting.is_active if setting else False,
            savings_percentage=setting.percentage if setting else 0,
            outstanding_loan=loan.outstanding_balance if loan else ZERO,
        )


def create_ledger_service(
    settings: Optional[Settings] = None,
    store: Optional[RecordStoreInterface] = None,
) -> LedgerService:
    """
    Factory function to create the ledger with logging configured.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        store: Record store (CSV files under settings.storage.data_dir if omitted)
    """
    settings = settings or get_settings()
    configure_logging(settings.logging.level, settings.logging.json_output)
    return LedgerService(store=store, settings=settings, audit_logger=AuditLogger())

"""
Loan Engine

Lifecycle of the single installment loan a user may hold:

    apply_for_loan  ->  ACTIVE  --repay...-->  outstanding == 0  ->  REPAID

Interest is simple and annualised:

    total_interest  = principal x rate x months / 1200
    total_repayment = principal + total_interest

A loan is OVERDUE when today is after created_at + repayment_period
months while it is still active. Overdue loans block every new
transaction (enforced by the transaction ledger, not here).
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

from ledger.audit import AuditLogger
from ledger.config import LedgerRulesSettings, get_settings
from ledger.errors import ConflictError, ValidationError
from ledger.models.account import (
    Account,
    Loan,
    LoanStatus,
    quantize_money,
)
from ledger.models.audit import AuditEventBuilder
from ledger.models.reports import LoanQuote, LoanReminder, ReminderKind
from ledger.services.storage import PersistenceError, RecordKind, RecordStoreInterface
from ledger.engines.state import LedgerState
from ledger.validation import InputValidator
from ledger.validation.validator import NumberLike


def compute_total_interest(principal: Decimal, annual_rate_percent: Decimal, months: int) -> Decimal:
    """Simple, non-compounding interest over the whole repayment period."""
    return quantize_money(principal * annual_rate_percent * months / Decimal(1200))


class LoanEngine:
    """Loan origination, repayment and status checks."""

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
    # Queries
    # ------------------------------------------------------------------

    def active_loan(self, user_id: int) -> Optional[Loan]:
        return self._state.active_loan(user_id)

    @staticmethod
    def due_date(loan: Loan) -> date:
        return loan.due_date

    def is_overdue(self, loan: Loan, today: Optional[date] = None) -> bool:
        today = today or self._clock()
        return loan.is_active and loan.due_date < today

    def overdue_loan(self, user_id: int, today: Optional[date] = None) -> Optional[Loan]:
        """The user's active loan if it is past due, else None."""
        loan = self._state.active_loan(user_id)
        if loan is not None and self.is_overdue(loan, today):
            return loan
        return None

    def quote(
        self,
        principal: NumberLike,
        annual_rate_percent: NumberLike,
        months: Union[int, str],
    ) -> LoanQuote:
        """Loan summary for confirmation before applying. Persists nothing."""
        principal, rate, months = self._validator.validate_loan_terms(
            principal, annual_rate_percent, months
        )
        total_interest = compute_total_interest(principal, rate, months)
        total_repayment = principal + total_interest
        return LoanQuote(
            principal_amount=principal,
            interest_rate=rate,
            repayment_period=months,
            total_interest=total_interest,
            total_repayment=total_repayment,
            monthly_payment=quantize_money(total_repayment / months),
        )

    def check_status(self, loan: Loan, today: Optional[date] = None) -> Optional[LoanReminder]:
        """
        Reminder signal for a loan.

        OVERDUE when past the due date, DUE_SOON within the reminder
        window (inclusive), otherwise None. Repaid loans never remind.
        """
        if not loan.is_active:
            return None

        today = today or self._clock()
        due_date = loan.due_date
        if today > due_date:
            return LoanReminder(
                kind=ReminderKind.OVERDUE,
                loan_id=loan.loan_id,
                due_date=due_date,
                outstanding_balance=loan.outstanding_balance,
            )

        days_remaining = (due_date - today).days
        if days_remaining <= self._rules.reminder_window_days:
            return LoanReminder(
                kind=ReminderKind.DUE_SOON,
                loan_id=loan.loan_id,
                due_date=due_date,
                outstanding_balance=loan.outstanding_balance,
                days_remaining=days_remaining,
                suggested_monthly_payment=quantize_money(
                    loan.outstanding_balance / loan.repayment_period
                ),
            )
        return None

    def reminders_for(
        self,
        user_id: int,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[LoanReminder]:
        """Reminders for every active loan of a user (at most one in practice)."""
        reminders = []
        for loan in self._state.loans_for(user_id):
            reminder = self.check_status(loan, today)
            if reminder is not None:
                self._audit.log(AuditEventBuilder.loan_reminder(
                    loan_id=loan.loan_id,
                    user_id=user_id,
                    kind=reminder.kind.value,
                    correlation_id=correlation_id,
                ))
                reminders.append(reminder)
        return reminders

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def apply_for_loan(
        self,
        account: Account,
        principal: NumberLike,
        annual_rate_percent: NumberLike,
        months: Union[int, str],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Loan:
        """
        Originate a new loan for the account, created today.

        Raises:
            ConflictError: If the user already has an active loan
            ValidationError: If principal, rate or months is not positive
            PersistenceError: If the loan could not be saved
        """
        existing = self._state.active_loan(account.user_id)
        if existing is not None:
            raise ConflictError(
                f"User {account.user_id} already has an active loan ({existing.loan_id})"
            )

        try:
            quote = self.quote(principal, annual_rate_percent, months)
        except ValidationError as e:
            self._audit.log_validation_failed(
                operation="apply_for_loan",
                issues=[issue.model_dump() for issue in e.issues],
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        loan = Loan(
            loan_id=self._state.next_loan_id(),
            user_id=account.user_id,
            principal_amount=quote.principal_amount,
            interest_rate=quote.interest_rate,
            repayment_period=quote.repayment_period,
            outstanding_balance=quote.total_repayment,
            status=LoanStatus.ACTIVE,
            created_at=today or self._clock(),
        )

        try:
            self._store.append_loan(loan)
        except PersistenceError as e:
            self._audit.log_persistence_failed(
                kind=RecordKind.LOANS.value,
                error_message=e.detail,
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        self._state.loans.append(loan)
        account.outstanding_loan = loan.outstanding_balance

        self._audit.log(AuditEventBuilder.loan_originated(
            loan_id=loan.loan_id,
            user_id=account.user_id,
            principal=loan.principal_amount,
            total_repayment=loan.outstanding_balance,
            correlation_id=correlation_id,
        ))
        return loan

    def repay(
        self,
        account: Account,
        loan: Loan,
        amount: NumberLike,
        correlation_id: Optional[UUID] = None,
    ) -> Loan:
        """
        Apply a repayment to a loan.

        Reaching exactly zero marks the loan REPAID. The whole loan log is
        rewritten with the updated row before memory changes.

        Returns:
            The updated loan

        Raises:
            ValidationError: If the loan belongs to another user, is not
                active, amount <= 0 or amount exceeds the outstanding balance
            PersistenceError: If the loan log could not be rewritten
        """
        current = self._state.loan_by_id(loan.loan_id) or loan

        try:
            if current.user_id != account.user_id:
                raise ValidationError.single(
                    "loan",
                    "not_owner",
                    f"Loan {current.loan_id} does not belong to user {account.user_id}",
                )
            if not current.is_active:
                raise ValidationError.single(
                    "loan",
                    "no_active_loan",
                    f"Loan {current.loan_id} is already repaid",
                )
            amount = self._validator.validate_repayment_amount(amount)
            if amount > current.outstanding_balance:
                raise ValidationError.single(
                    "amount",
                    "out_of_range",
                    f"Amount {amount} exceeds outstanding balance {current.outstanding_balance}",
                )
        except ValidationError as e:
            self._audit.log_validation_failed(
                operation="repay_loan",
                issues=[issue.model_dump() for issue in e.issues],
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        new_balance = current.outstanding_balance - amount
        updated = current.model_copy(update={
            "outstanding_balance": new_balance,
            "status": LoanStatus.REPAID if new_balance == 0 else LoanStatus.ACTIVE,
        })

        new_loans = self._state.loans_with(updated)
        try:
            self._store.rewrite_loans(new_loans)
        except PersistenceError as e:
            self._audit.log_persistence_failed(
                kind=RecordKind.LOANS.value,
                error_message=e.detail,
                user_id=account.user_id,
                correlation_id=correlation_id,
            )
            raise

        self._state.loans = new_loans
        account.outstanding_loan = new_balance

        self._audit.log(AuditEventBuilder.loan_repayment(
            loan_id=updated.loan_id,
            user_id=account.user_id,
            amount=amount,
            outstanding=new_balance,
            correlation_id=correlation_id,
        ))
        return updated

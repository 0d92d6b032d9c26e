"""
Input Validation

DESIGN DECISION: Everything that comes from a user is parsed and checked
here, before any engine touches state. Each check collects ALL issues
for the operation and raises one ValidationError carrying the list.

Engines receive clean, typed values (Decimal money at 2dp, ints, enums)
and only enforce the rules that depend on state (overdue loans, one
active loan per user, repayment bounds).

IMPORTANT: Validation NEVER silently fixes input.
Amounts are rounded half-up to 2dp, which is the ledger's storage rule,
but an amount that rounds to zero is rejected rather than stored.
"""

import hashlib
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ledger.config import LedgerRulesSettings, get_settings
from ledger.errors import ValidationError
from ledger.models.account import TransactionKind, ValidationIssue, quantize_money


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")

NumberLike = Union[str, int, float, Decimal]


def hash_password(password: str) -> str:
    """SHA-256 hex digest of the password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class InputValidator:
    """
    Parses and validates raw user input for every ledger operation.

    Each public method either returns clean values or raises a single
    ValidationError listing every problem found.
    """

    def __init__(self, rules: Optional[LedgerRulesSettings] = None):
        self._rules = rules or get_settings().rules

    # ------------------------------------------------------------------
    # Field-level checks (append to an issue list, never raise)
    # ------------------------------------------------------------------

    def _decimal(
        self,
        raw: NumberLike,
        field: str,
        issues: list[ValidationIssue],
        label: str,
    ) -> Optional[Decimal]:
        """Parse a positive decimal, recording an issue on failure."""
        if isinstance(raw, bool):
            raw = str(raw)
        try:
            value = Decimal(str(raw).strip()) if not isinstance(raw, Decimal) else raw
        except (InvalidOperation, ValueError):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"Invalid {label}: {raw!r}",
            ))
            return None

        if not value.is_finite():
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"Invalid {label}: {raw!r}",
            ))
            return None

        if value <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{label.capitalize()} must be positive",
            ))
            return None
        if value > self._rules.max_amount:
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{label.capitalize()} must not exceed {self._rules.max_amount}",
            ))
            return None
        return value

    def _money(
        self,
        raw: NumberLike,
        field: str,
        issues: list[ValidationIssue],
        label: str = "amount",
    ) -> Optional[Decimal]:
        value = self._decimal(raw, field, issues, label)
        if value is None:
            return None

        try:
            money = quantize_money(value)
        except InvalidOperation:
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{label.capitalize()} is too large",
            ))
            return None
        if money <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{label.capitalize()} rounds to zero",
            ))
            return None
        return money

    def _integer(
        self,
        raw: Union[str, int],
        field: str,
        issues: list[ValidationIssue],
        label: str,
    ) -> Optional[int]:
        if isinstance(raw, bool):
            raw = str(raw)
        if isinstance(raw, int):
            return raw
        try:
            return int(str(raw).strip())
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"Invalid {label}: {raw!r}",
            ))
            return None

    # ------------------------------------------------------------------
    # Operation-level checks
    # ------------------------------------------------------------------

    def validate_transaction(
        self,
        kind: Union[str, TransactionKind],
        amount: NumberLike,
        description: str,
    ) -> tuple[TransactionKind, Decimal, str]:
        """
        Validate a debit/credit request.

        Returns: (kind, amount rounded to 2dp, description)
        """
        issues: list[ValidationIssue] = []

        parsed_kind = None
        try:
            parsed_kind = TransactionKind(kind)
        except ValueError:
            issues.append(ValidationIssue(
                field="kind",
                issue_type="invalid_value",
                message=f"Unknown transaction type: {kind!r}",
            ))

        parsed_amount = self._money(amount, "amount", issues)

        description = description or ""
        max_length = self._rules.description_max_length
        if len(description) > max_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description too long ({len(description)} > {max_length} characters)",
            ))

        if issues:
            raise ValidationError(issues)
        return parsed_kind, parsed_amount, description

    def validate_percentage(self, percentage: Union[str, int]) -> int:
        """Savings percentage must be an integer in [0, 100]."""
        issues: list[ValidationIssue] = []
        value = self._integer(percentage, "percentage", issues, "percentage")
        if value is not None and not 0 <= value <= 100:
            issues.append(ValidationIssue(
                field="percentage",
                issue_type="out_of_range",
                message=f"Percentage must be between 0 and 100, got {value}",
            ))
        if issues:
            raise ValidationError(issues)
        return value

    def validate_loan_terms(
        self,
        principal: NumberLike,
        annual_rate_percent: NumberLike,
        months: Union[str, int],
    ) -> tuple[Decimal, Decimal, int]:
        """
        Validate a loan application.

        Returns: (principal at 2dp, annual rate, months)
        """
        issues: list[ValidationIssue] = []

        parsed_principal = self._money(principal, "principal", issues, "principal amount")
        parsed_rate = self._decimal(annual_rate_percent, "interest_rate", issues, "interest rate")
        parsed_months = self._integer(months, "repayment_period", issues, "repayment period")
        max_months = self._rules.max_repayment_period
        if parsed_months is not None and not 0 < parsed_months <= max_months:
            issues.append(ValidationIssue(
                field="repayment_period",
                issue_type="out_of_range",
                message=f"Repayment period must be between 1 and {max_months} months",
            ))

        if issues:
            raise ValidationError(issues)
        return parsed_principal, parsed_rate, parsed_months

    def validate_repayment_amount(self, amount: NumberLike) -> Decimal:
        """Parse a repayment amount (bounds against the loan are checked by the engine)."""
        issues: list[ValidationIssue] = []
        parsed = self._money(amount, "amount", issues, "repayment amount")
        if issues:
            raise ValidationError(issues)
        return parsed

    def validate_registration(self, name: str, email: str, password: str) -> tuple[str, str]:
        """
        Validate a registration form.

        Returns: (name, email) stripped of surrounding whitespace
        """
        issues: list[ValidationIssue] = []

        name = (name or "").strip()
        email = (email or "").strip()

        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
            ))

        if not EMAIL_PATTERN.match(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message="Invalid email format",
            ))

        password = password or ""
        if (
            len(password) < self._rules.password_min_length
            or not re.search(r"[a-zA-Z]", password)
            or not re.search(r"\d", password)
        ):
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_weak",
                message=(
                    f"Password must be at least {self._rules.password_min_length} "
                    "characters and contain both letters and numbers"
                ),
            ))

        if issues:
            raise ValidationError(issues)
        return name, email

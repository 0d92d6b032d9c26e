"""
Tests for input validation.
"""

import pytest
from decimal import Decimal

from ledger.config import LedgerRulesSettings, Settings
from ledger.errors import ValidationError
from ledger.models.account import TransactionKind
from ledger.validation import InputValidator, hash_password


@pytest.fixture
def validator():
    return InputValidator(LedgerRulesSettings())


class TestTransactionValidation:
    """Tests for debit/credit input."""

    def test_valid_input(self, validator):
        """Test clean values come back typed and rounded."""
        kind, amount, description = validator.validate_transaction("debit", "10.005", "Salary")
        assert kind == TransactionKind.DEBIT
        assert amount == Decimal("10.01")
        assert description == "Salary"

    def test_all_issues_reported_together(self, validator):
        """Test every bad field is reported, not just the first."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction("transfer", "abc", "x" * 101)
        assert exc_info.value.fields == ["kind", "amount", "description"]

    def test_zero_and_negative_amounts(self, validator):
        """Test amounts must be positive."""
        for amount in ("0", "-5", Decimal("-0.01")):
            with pytest.raises(ValidationError) as exc_info:
                validator.validate_transaction("credit", amount, "")
            assert exc_info.value.issues[0].issue_type == "out_of_range"

    def test_amount_rounding_to_zero(self, validator):
        """Test 0.004 is rejected rather than stored as 0.00."""
        with pytest.raises(ValidationError):
            validator.validate_transaction("debit", "0.004", "")

    def test_non_finite_amount(self, validator):
        """Test NaN and Infinity are not amounts."""
        for amount in ("NaN", "Infinity"):
            with pytest.raises(ValidationError):
                validator.validate_transaction("debit", amount, "")

    def test_huge_amount_rejected(self, validator):
        """Test amounts above the configured maximum are out of range."""
        for amount in ("1e30", "1000000000000.01", Decimal("1E+26")):
            with pytest.raises(ValidationError) as exc_info:
                validator.validate_transaction("debit", amount, "")
            assert exc_info.value.issues[0].issue_type == "out_of_range"

    def test_maximum_amount_is_inclusive(self, validator):
        """Test the maximum itself is accepted."""
        _, amount, _ = validator.validate_transaction("debit", "1000000000000", "")
        assert amount == Decimal("1000000000000.00")

    def test_amount_beyond_decimal_precision(self):
        """Test an amount too wide to round to cents is rejected, not raised raw."""
        validator = InputValidator(LedgerRulesSettings(max_amount=Decimal("1e40")))
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction("debit", "1e30", "")
        assert exc_info.value.issues[0].issue_type == "out_of_range"

    def test_description_limit_is_inclusive(self, validator):
        """Test exactly 100 characters is allowed."""
        _, _, description = validator.validate_transaction("debit", "1", "x" * 100)
        assert len(description) == 100

    def test_description_limit_is_configurable(self):
        """Test the limit comes from settings."""
        validator = InputValidator(LedgerRulesSettings(description_max_length=5))
        with pytest.raises(ValidationError):
            validator.validate_transaction("debit", "1", "toolong")


class TestPercentageValidation:
    """Tests for savings percentage input."""

    def test_bounds_inclusive(self, validator):
        """Test 0 and 100 are accepted."""
        assert validator.validate_percentage(0) == 0
        assert validator.validate_percentage("100") == 100

    def test_out_of_range(self, validator):
        """Test values outside 0-100 are rejected."""
        for value in (-1, 101, "150"):
            with pytest.raises(ValidationError):
                validator.validate_percentage(value)

    def test_not_a_number(self, validator):
        """Test non-integer input is rejected."""
        for value in ("abc", "12.5"):
            with pytest.raises(ValidationError) as exc_info:
                validator.validate_percentage(value)
            assert exc_info.value.issues[0].issue_type == "invalid_format"


class TestLoanTermValidation:
    """Tests for loan application input."""

    def test_valid_terms(self, validator):
        """Test parsing principal, rate and months."""
        assert validator.validate_loan_terms("1000", "12", "12") == (
            Decimal("1000.00"),
            Decimal("12"),
            12,
        )

    def test_every_term_checked(self, validator):
        """Test all three terms are reported when all are bad."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_loan_terms("0", "-1", "0")
        assert exc_info.value.fields == ["principal", "interest_rate", "repayment_period"]

    def test_term_limits(self, validator):
        """Test oversized principal, rate and period are all out of range."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_loan_terms("1e30", "1e30", "601")
        assert exc_info.value.fields == ["principal", "interest_rate", "repayment_period"]
        assert {issue.issue_type for issue in exc_info.value.issues} == {"out_of_range"}
        assert validator.validate_loan_terms("1000", "12", "600")[2] == 600

    def test_repayment_amount(self, validator):
        """Test repayment amounts must be positive."""
        assert validator.validate_repayment_amount("99.999") == Decimal("100.00")
        with pytest.raises(ValidationError):
            validator.validate_repayment_amount("0")


class TestRegistrationValidation:
    """Tests for registration input."""

    def test_valid_registration(self, validator):
        """Test whitespace is stripped from name and email."""
        assert validator.validate_registration(
            "  Alice  ", " alice@example.com ", "secret1"
        ) == ("Alice", "alice@example.com")

    def test_bad_email(self, validator):
        """Test emails must look like user@domain."""
        for email in ("alice", "@example.com", "al ice@example.com"):
            with pytest.raises(ValidationError) as exc_info:
                validator.validate_registration("Alice", email, "secret1")
            assert exc_info.value.fields == ["email"]

    def test_weak_passwords(self, validator):
        """Test passwords need 6 characters with letters and digits."""
        for password in ("ab1", "abcdefg", "1234567"):
            with pytest.raises(ValidationError) as exc_info:
                validator.validate_registration("Alice", "alice@example.com", password)
            assert exc_info.value.fields == ["password"]

    def test_missing_name(self, validator):
        """Test a blank name is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_registration("   ", "alice@example.com", "secret1")
        assert exc_info.value.fields == ["name"]


class TestPasswordHashing:
    """Tests for credential hashing."""

    def test_hash_is_sha256_hex(self):
        """Test the hash is a stable 64-character hex digest."""
        digest = hash_password("secret1")
        assert len(digest) == 64
        assert digest == hash_password("secret1")
        assert digest != hash_password("secret2")


class TestSettings:
    """Tests for the settings groups."""

    def test_root_settings_only_hold_groups(self):
        """Test the root container carries the three nested groups and nothing else."""
        assert set(Settings.model_fields) == {"storage", "rules", "logging"}

    def test_input_bounds_defaults(self):
        """Test the default limits on amounts and loan terms."""
        rules = LedgerRulesSettings()
        assert rules.max_amount == Decimal("1000000000000")
        assert rules.max_repayment_period == 600


class TestOversizedInputThroughSession:
    """Tests that oversized input surfaces as ValidationError from every entry point."""

    def test_huge_debit(self, session, store):
        """Test a huge debit is rejected and nothing is stored."""
        with pytest.raises(ValidationError):
            session.debit("1e30", "big")
        assert store.load_transactions() == []

    def test_huge_loan(self, session, store):
        """Test a huge principal is rejected and no loan is created."""
        with pytest.raises(ValidationError):
            session.apply_for_loan("1e30", "12", "12")
        assert store.load_loans() == []

    def test_huge_repayment(self, session):
        """Test a huge repayment is rejected and the loan is unchanged."""
        session.apply_for_loan("1000", "12", "12")
        with pytest.raises(ValidationError):
            session.repay_loan("1e30")
        assert session.active_loan().outstanding_balance == Decimal("1120.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Tests for LedgerService: registration, login and account projection.
"""

import pytest
from datetime import date
from decimal import Decimal

from ledger.errors import AuthenticationError, ConflictError, ValidationError
from ledger.models.audit import AuditEventType
from ledger.orchestrator import LedgerService, create_ledger_service
from ledger.services.storage import (
    CsvRecordStore,
    InMemoryRecordStore,
    PersistenceError,
    RecordKind,
)
from ledger.validation import hash_password


class TestRegistration:
    """Tests for user registration."""

    def test_register(self, service, store, audit):
        """Test a registered user is persisted with a hashed password."""
        user = service.register("Alice Tan", "alice@example.com", "secret1")

        assert user.user_id == 1
        assert user.password_hash == hash_password("secret1")
        assert store.load_users() == [user]
        assert len(audit.of_type(AuditEventType.USER_REGISTERED)) == 1

    def test_ids_count_up(self, service):
        """Test each user gets the next id."""
        first = service.register("Alice", "alice@example.com", "secret1")
        second = service.register("Bob", "bob@example.com", "secret2")
        assert (first.user_id, second.user_id) == (1, 2)

    def test_ids_skip_past_gaps(self, settings, audit, clock):
        """Test the next id is one past the highest, not the row count."""
        store = InMemoryRecordStore({
            RecordKind.USERS: [
                {"user_id": "1", "name": "A", "email": "a@example.com", "password_hash": "x"},
                {"user_id": "5", "name": "E", "email": "e@example.com", "password_hash": "x"},
            ],
        })
        service = LedgerService(store=store, settings=settings, audit_logger=audit, clock=clock)
        assert service.register("New", "new@example.com", "secret1").user_id == 6

    def test_duplicate_email(self, service, user):
        """Test an email can only be registered once."""
        with pytest.raises(ConflictError):
            service.register("Other", "alice@example.com", "secret9")

    def test_invalid_registration(self, service, store):
        """Test bad input stores nothing."""
        with pytest.raises(ValidationError):
            service.register("Alice", "not-an-email", "secret1")
        assert store.load_users() == []

    def test_comma_in_name(self, service, restart):
        """Test names with commas survive a restart."""
        service.register("Tan, Alice", "alice@example.com", "secret1")
        assert restart().state.users[0].name == "Tan, Alice"

    def test_register_persistence_failure(self, service, store):
        """Test a failed write does not register the user in memory."""
        store.failing.add(RecordKind.USERS)
        with pytest.raises(PersistenceError):
            service.register("Alice", "alice@example.com", "secret1")
        assert service.state.users == []


class TestLogin:
    """Tests for authentication."""

    def test_login(self, service, user, audit):
        """Test a correct login opens a session for the user."""
        session = service.login("alice@example.com", "secret1")
        assert session.user == user
        assert session.correlation_id is not None
        event = audit.of_type(AuditEventType.LOGIN_SUCCEEDED)[-1]
        assert event.correlation_id == session.correlation_id

    def test_wrong_password(self, service, user, audit):
        """Test a wrong password is rejected and audited."""
        with pytest.raises(AuthenticationError):
            service.login("alice@example.com", "wrong1")
        assert len(audit.of_type(AuditEventType.LOGIN_FAILED)) == 1

    def test_unknown_email(self, service, user):
        """Test an unknown email gives the same error."""
        with pytest.raises(AuthenticationError) as exc_info:
            service.login("bob@example.com", "secret1")
        assert exc_info.value.detail == "Invalid email or password"

    def test_first_login_projection(self, session, clock):
        """Test a fresh account starts empty and active today."""
        account = session.account
        assert account.balance == Decimal("0.00")
        assert account.savings == Decimal("0.00")
        assert account.outstanding_loan == Decimal("0.00")
        assert account.savings_active is False
        assert account.last_activity_date == clock.today
        assert session.sweep is None
        assert session.reminders == []


class TestAccountProjection:
    """Tests for rebuilding the account from the logs."""

    def test_balance_rebuilt_after_restart(self, session, restart):
        """Test balance = signed transaction sum - diverted total."""
        session.debit("500", "Salary")
        session.configure_savings(10)
        session.debit("200", "Bonus")      # 20.00 diverted
        session.credit("70.50", "Groceries")
        live = session.account.snapshot()

        again = restart().login("alice@example.com", "secret1")

        assert again.account.balance == Decimal("609.50")
        assert again.account.snapshot() == live

    def test_users_do_not_share_state(self, service, session):
        """Test one user's transactions never touch another's account."""
        service.register("Bob", "bob@example.com", "secret2")
        bob = service.login("bob@example.com", "secret2")

        session.debit("100")
        bob.credit("5")

        assert session.account.balance == Decimal("100.00")
        assert bob.account.balance == Decimal("-5.00")
        assert [t.user_id for t in bob.transactions()] == [2]
        # Transaction ids are global across users
        assert bob.transactions()[0].transaction_id == 2

    def test_corrupt_log_fails_startup(self, service, store, settings, audit, clock):
        """Test a malformed log stops hydration instead of being skipped."""
        with store.path_for(RecordKind.LOANS).open("a", encoding="utf-8") as handle:
            handle.write("1,1,abc,12,12,1120.00,active,2024-01-15\n")
        with pytest.raises(PersistenceError) as exc_info:
            LedgerService(store=store, settings=settings, audit_logger=audit, clock=clock)
        assert exc_info.value.line == 2


class TestFactory:
    """Tests for create_ledger_service."""

    def test_factory_builds_csv_service(self, settings):
        """Test the factory wires a CSV store from settings."""
        service = create_ledger_service(settings)
        assert isinstance(service.store, CsvRecordStore)
        assert service.store.data_dir == settings.storage.data_dir
        assert service.store.path_for(RecordKind.USERS).exists()

    def test_default_clock_is_today(self, settings):
        """Test the service uses the real date when no clock is given."""
        service = create_ledger_service(settings)
        assert service.clock() == date.today()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Tests for the Savings Engine: configuration, diversion and the monthly sweep.
"""

import pytest
from datetime import date
from decimal import Decimal

from ledger.config import LedgerRulesSettings
from ledger.engines import LedgerState, SavingsEngine
from ledger.errors import ValidationError
from ledger.models.account import Account, SavingsStatus, TransactionKind, User
from ledger.models.audit import AuditEventType
from ledger.services.storage import InMemoryRecordStore, PersistenceError, RecordKind

from conftest import RecordingAuditLogger


@pytest.fixture
def engine_setup():
    store = InMemoryRecordStore()
    state = LedgerState.load(store)
    engine = SavingsEngine(
        store,
        state,
        audit_logger=RecordingAuditLogger(),
        rules=LedgerRulesSettings(),
        clock=lambda: date(2024, 2, 1),
    )
    account = Account(
        user=User(user_id=1, name="Alice", email="a@example.com", password_hash="x"),
        savings=Decimal("100.00"),
        diverted_total=Decimal("100.00"),
        last_activity_date=date(2024, 1, 15),
    )
    return store, state, engine, account


def fund_savings(session, percentage=50, amount="200"):
    """Put money in the pot: 50% of 200 gives a pot of 100."""
    session.configure_savings(percentage)
    session.debit(amount, "Salary")


class TestSavingsConfiguration:
    """Tests for turning savings on and off."""

    def test_configure_activates(self, session, store):
        """Test a valid percentage activates diversion and is persisted."""
        setting = session.configure_savings("25")
        assert setting.status == SavingsStatus.ACTIVE
        assert session.account.savings_active is True
        assert session.account.savings_percentage == 25
        assert store.load_savings_settings()[0].percentage == 25

    def test_out_of_range_rejected(self, session, store):
        """Test percentages outside 0-100 fail and append nothing."""
        for value in (101, -1):
            with pytest.raises(ValidationError):
                session.configure_savings(value)
        assert store.load_savings_settings() == []
        assert session.account.savings_active is False

    def test_latest_setting_is_used_after_restart(self, session, service, restart):
        """Test the last appended setting wins on the next login."""
        session.configure_savings(10)
        session.configure_savings(30)

        again = restart().login("alice@example.com", "secret1")
        assert again.account.savings_percentage == 30
        assert again.account.savings_active is True

    def test_setting_ids_count_up(self, session):
        """Test each setting row gets the next id."""
        first = session.configure_savings(10)
        second = session.deactivate_savings()
        assert (first.savings_id, second.savings_id) == (1, 2)

    def test_deactivate_stops_diversion_and_keeps_pot(self, session):
        """Test deactivation keeps the pot but stops diverting."""
        fund_savings(session)
        setting = session.deactivate_savings()
        session.debit("100")

        assert setting.status == SavingsStatus.INACTIVE
        assert setting.percentage == 50
        assert session.account.savings == Decimal("100.00")
        assert session.account.balance == Decimal("200.00")

    def test_zero_percent_diverts_nothing(self, session):
        """Test an active 0% setting leaves debits whole."""
        session.configure_savings(0)
        session.debit("100")
        assert session.account.balance == Decimal("100.00")
        assert session.account.savings == Decimal("0.00")


class TestApplySavings:
    """Tests for the diversion computation."""

    def test_inactive_diverts_nothing(self, engine_setup):
        """Test no diversion without active savings."""
        _, _, engine, account = engine_setup
        assert engine.apply_savings_on_credit(account, Decimal("55.55")) == Decimal("0.00")

    def test_active_rounds_half_up(self, engine_setup):
        """Test 10% of 55.55 is 5.56."""
        _, _, engine, account = engine_setup
        account.savings_active = True
        account.savings_percentage = 10
        assert engine.apply_savings_on_credit(account, Decimal("55.55")) == Decimal("5.56")

    def test_computation_is_pure(self, engine_setup):
        """Test computing the diversion changes nothing on the account."""
        _, _, engine, account = engine_setup
        account.savings_active = True
        account.savings_percentage = 10
        engine.apply_savings_on_credit(account, Decimal("100"))
        assert account.savings == Decimal("100.00")


class TestMonthlySweep:
    """Tests for the month-boundary sweep."""

    def test_sweep_on_new_month(self, engine_setup):
        """Test Jan 15 with 100 saved, Feb 1 moves it all into the balance."""
        store, state, engine, account = engine_setup

        transfer = engine.sweep_if_month_boundary_crossed(account, date(2024, 2, 1))

        assert transfer.kind == TransactionKind.DEBIT
        assert transfer.amount == Decimal("100.00")
        assert transfer.transaction_date == date(2024, 2, 1)
        assert transfer.description == "Monthly Savings Transfer"
        assert account.balance == Decimal("100.00")
        assert account.savings == Decimal("0.00")
        assert account.last_activity_date == date(2024, 2, 1)
        assert store.load_transactions() == [transfer]
        assert state.account_states[1].savings == Decimal("0.00")

    def test_second_run_same_month_is_noop(self, engine_setup):
        """Test the sweep is idempotent within the month."""
        store, _, engine, account = engine_setup
        engine.sweep_if_month_boundary_crossed(account, date(2024, 2, 1))
        assert engine.sweep_if_month_boundary_crossed(account, date(2024, 2, 1)) is None
        assert engine.sweep_if_month_boundary_crossed(account, date(2024, 2, 20)) is None
        assert len(store.load_transactions()) == 1
        assert account.balance == Decimal("100.00")

    def test_same_month_only_stamps_date(self, engine_setup):
        """Test no sweep within the month, but last activity moves."""
        store, _, engine, account = engine_setup
        assert engine.sweep_if_month_boundary_crossed(account, date(2024, 1, 31)) is None
        assert account.savings == Decimal("100.00")
        assert account.last_activity_date == date(2024, 1, 31)
        assert store.load_account_states()[0].last_activity_date == date(2024, 1, 31)

    def test_same_month_next_year_sweeps(self, engine_setup):
        """Test a January to January gap still counts as a new month."""
        _, _, engine, account = engine_setup
        assert engine.sweep_if_month_boundary_crossed(account, date(2025, 1, 10)) is not None

    def test_empty_pot_never_sweeps(self, engine_setup):
        """Test crossing a month with nothing saved creates no transaction."""
        store, _, engine, account = engine_setup
        account.savings = Decimal("0")
        assert engine.sweep_if_month_boundary_crossed(account, date(2024, 3, 1)) is None
        assert store.load_transactions() == []
        assert account.last_activity_date == date(2024, 3, 1)

    def test_defaults_to_engine_clock(self, engine_setup):
        """Test today comes from the clock when not given."""
        _, _, engine, account = engine_setup
        transfer = engine.sweep_if_month_boundary_crossed(account)
        assert transfer.transaction_date == date(2024, 2, 1)


class TestSweepOnLogin:
    """Tests for the sweep as part of the login flow."""

    def test_login_in_new_month_sweeps(self, service, session, clock, audit):
        """Test the full flow: save in January, log in on Feb 1."""
        fund_savings(session)
        assert session.account.balance == Decimal("100.00")
        assert session.account.savings == Decimal("100.00")

        clock.today = date(2024, 2, 1)
        february = service.login("alice@example.com", "secret1")

        assert february.sweep is not None
        assert february.sweep.transaction_date == date(2024, 2, 1)
        assert february.account.balance == Decimal("200.00")
        assert february.account.savings == Decimal("0.00")
        assert len(february.transactions()) == 2
        assert len(audit.of_type(AuditEventType.SAVINGS_SWEPT)) == 1

        again = service.login("alice@example.com", "secret1")
        assert again.sweep is None
        assert again.account.balance == Decimal("200.00")
        assert len(again.transactions()) == 2

    def test_sweep_survives_restart(self, session, clock, restart):
        """Test the pot is remembered across a restart and swept later."""
        fund_savings(session)

        clock.today = date(2024, 2, 1)
        after_restart = restart().login("alice@example.com", "secret1")

        assert after_restart.sweep is not None
        assert after_restart.account.balance == Decimal("200.00")
        assert after_restart.account.savings == Decimal("0.00")

        # And the swept state is itself durable
        later = restart().login("alice@example.com", "secret1")
        assert later.sweep is None
        assert later.account.balance == Decimal("200.00")

    def test_sweep_not_blocked_by_overdue_loan(self, service, session, clock):
        """Test the system transfer runs even with an overdue loan."""
        fund_savings(session)
        session.apply_for_loan("100", "10", "1")

        clock.today = date(2024, 3, 1)
        march = service.login("alice@example.com", "secret1")

        assert march.sweep is not None
        assert march.account.savings == Decimal("0.00")
        assert march.reminders[0].is_overdue

    def test_failed_sweep_keeps_pot(self, service, session, store, clock):
        """Test a failed transfer append restores the account row."""
        fund_savings(session)
        store.failing.add(RecordKind.TRANSACTIONS)

        clock.today = date(2024, 2, 1)
        with pytest.raises(PersistenceError):
            service.login("alice@example.com", "secret1")

        state = store.load_account_states()[0]
        assert state.savings == Decimal("100.00")
        assert state.last_activity_date == date(2024, 1, 15)
        assert len(service.state.transactions) == 1

        store.failing.clear()
        recovered = service.login("alice@example.com", "secret1")
        assert recovered.account.balance == Decimal("200.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

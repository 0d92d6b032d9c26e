"""
Shared fixtures for the ledger tests.

Every test gets its own CSV data directory under tmp_path, a clock it
can move, and an audit logger that keeps the events it was given.
"""

from datetime import date

import pytest

from ledger.audit import AuditLogger
from ledger.config import Settings, StorageSettings
from ledger.models.audit import AuditEvent, AuditEventType
from ledger.orchestrator import LedgerService
from ledger.services.storage import CsvRecordStore, RecordKind


class FixedClock:
    """Callable clock whose date tests can move forward."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


class RecordingAuditLogger(AuditLogger):
    """Audit logger that remembers every event it logs."""

    def __init__(self):
        super().__init__("ledger.audit.test")
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> AuditEvent:
        self.events.append(event)
        return super().log(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [event for event in self.events if event.event_type == event_type]


class FlakyCsvRecordStore(CsvRecordStore):
    """
    CSV store whose writes can be made to fail per log.

    failing: logs whose writes raise OSError every time
    fail_times: logs whose next N writes raise OSError, then succeed
    fail_after: logs whose next N writes succeed, then every write fails
    """

    def __init__(self, *args, **kwargs):
        self.failing: set[RecordKind] = set()
        self.fail_times: dict[RecordKind, int] = {}
        self.fail_after: dict[RecordKind, int] = {}
        super().__init__(*args, **kwargs)

    def _maybe_fail(self, kind: RecordKind) -> None:
        if kind in self.failing:
            raise OSError(f"disk full writing {kind.value}")
        remaining = self.fail_times.get(kind, 0)
        if remaining:
            self.fail_times[kind] = remaining - 1
            raise OSError(f"transient failure writing {kind.value}")
        if kind in self.fail_after:
            if self.fail_after[kind] == 0:
                raise OSError(f"disk full writing {kind.value}")
            self.fail_after[kind] -= 1

    def _append(self, kind, row):
        self._maybe_fail(kind)
        super()._append(kind, row)

    def _replace(self, kind, rows):
        self._maybe_fail(kind)
        super()._replace(kind, rows)


@pytest.fixture
def clock():
    return FixedClock(date(2024, 1, 15))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        storage=StorageSettings(
            data_dir=tmp_path / "data",
            retry_attempts=1,
            retry_min_wait=0,
            retry_max_wait=0,
        )
    )


@pytest.fixture
def audit():
    return RecordingAuditLogger()


@pytest.fixture
def store(settings):
    return FlakyCsvRecordStore(settings.storage)


@pytest.fixture
def service(store, settings, audit, clock):
    return LedgerService(store=store, settings=settings, audit_logger=audit, clock=clock)


@pytest.fixture
def user(service):
    return service.register("Alice Tan", "alice@example.com", "secret1")


@pytest.fixture
def session(service, user):
    return service.login("alice@example.com", "secret1")


@pytest.fixture
def restart(service):
    """Build a fresh service over the same store, as after a process restart."""
    def _restart() -> LedgerService:
        return LedgerService(
            store=service.store,
            settings=service.settings,
            audit_logger=service.audit,
            clock=service.clock,
        )
    return _restart

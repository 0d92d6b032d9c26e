"""
CSV Record Store Implementation

DESIGN DECISION: Flat CSV files are the storage backend because:
1. Users can open their ledger in any spreadsheet
2. No database setup required
3. Easy to back up (copy a folder) and to migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No multi-file transactions (we handle this with careful ordering)
- Whole-file rewrites for updates (made safe with write-then-swap)

Writes are retried with exponential back-off before giving up with a
PersistenceError, like any other flaky I/O boundary.
"""

import csv
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledger.config import StorageSettings, get_settings
from ledger.services.storage.interface import (
    HEADERS,
    PersistenceError,
    RecordKind,
    RecordStoreInterface,
    Row,
)


logger = structlog.get_logger(__name__)


class CsvRecordStore(RecordStoreInterface):
    """
    One CSV file per record kind, header row first.

    Appends go straight to the end of the file. Rewrites go to a
    temporary sibling file which is then swapped in with os.replace,
    so a failed rewrite leaves the previous log untouched.
    """

    def __init__(
        self,
        settings: Optional[StorageSettings] = None,
        data_dir: Optional[Path] = None,
    ):
        self._settings = settings or get_settings().storage
        self._data_dir = Path(data_dir or self._settings.data_dir)
        self._paths = {
            RecordKind.USERS: self._data_dir / self._settings.users_file,
            RecordKind.TRANSACTIONS: self._data_dir / self._settings.transactions_file,
            RecordKind.SAVINGS: self._data_dir / self._settings.savings_file,
            RecordKind.LOANS: self._data_dir / self._settings.loans_file,
            RecordKind.ACCOUNTS: self._data_dir / self._settings.accounts_file,
        }
        self.ensure_logs()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, kind: RecordKind) -> Path:
        return self._paths[kind]

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._settings.retry_min_wait,
                max=self._settings.retry_max_wait,
            ),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    def _run(self, kind: RecordKind, action: str, operation, *args) -> None:
        """Run a write with retries, mapping the final failure to PersistenceError."""
        try:
            for attempt in self._retrying():
                with attempt:
                    operation(kind, *args)
        except OSError as e:
            logger.error(
                "store_write_failed",
                kind=kind.value,
                action=action,
                error=str(e),
            )
            raise PersistenceError(kind.value, f"failed to {action}: {e}")

    # ------------------------------------------------------------------
    # Raw operations
    # ------------------------------------------------------------------

    def ensure_logs(self) -> None:
        """Create the data directory and any missing log with its header."""
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            for kind, path in self._paths.items():
                if not path.exists():
                    with path.open("w", newline="", encoding="utf-8") as handle:
                        csv.writer(handle, lineterminator="\n").writerow(HEADERS[kind])
                    logger.info("log_created", kind=kind.value, path=str(path))
        except OSError as e:
            raise PersistenceError("store", f"cannot initialise {self._data_dir}: {e}")

    def append_row(self, kind: RecordKind, row: Row) -> None:
        self._run(kind, "append row", self._append, row)

    def rewrite_all(self, kind: RecordKind, rows: list[Row]) -> None:
        self._run(kind, "rewrite log", self._replace, rows)

    def load_all(self, kind: RecordKind) -> list[Row]:
        path = self._paths[kind]
        try:
            with path.open("r", newline="", encoding="utf-8") as handle:
                reader = csv.DictReader(handle)
                if reader.fieldnames != HEADERS[kind]:
                    raise PersistenceError(
                        kind.value,
                        f"unexpected header {reader.fieldnames}",
                        line=1,
                    )
                return [dict(row) for row in reader]
        except OSError as e:
            raise PersistenceError(kind.value, f"failed to read: {e}")

    # ------------------------------------------------------------------
    # File primitives (overridable in tests to simulate disk failures)
    # ------------------------------------------------------------------

    def _append(self, kind: RecordKind, row: Row) -> None:
        with self._paths[kind].open("a", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=HEADERS[kind], lineterminator="\n")
            writer.writerow(row)

    def _replace(self, kind: RecordKind, rows: list[Row]) -> None:
        path = self._paths[kind]
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=self._data_dir
        )
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as handle:
                writer = csv.DictWriter(handle, fieldnames=HEADERS[kind], lineterminator="\n")
                writer.writeheader()
                writer.writerows(rows)
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

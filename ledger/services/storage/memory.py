"""
In-Memory Record Store

Keeps every log as a list of row dicts. Used by tests and by anyone who
wants to run the engines without touching the disk.
"""

from typing import Optional

from ledger.services.storage.interface import (
    HEADERS,
    RecordKind,
    RecordStoreInterface,
    Row,
)


class InMemoryRecordStore(RecordStoreInterface):
    """Record store backed by plain Python lists."""

    def __init__(self, initial: Optional[dict[RecordKind, list[Row]]] = None):
        self._logs: dict[RecordKind, list[Row]] = {}
        self.ensure_logs()
        for kind, rows in (initial or {}).items():
            self._logs[kind] = [dict(row) for row in rows]

    def ensure_logs(self) -> None:
        for kind in HEADERS:
            self._logs.setdefault(kind, [])

    def append_row(self, kind: RecordKind, row: Row) -> None:
        self._logs[kind].append(dict(row))

    def rewrite_all(self, kind: RecordKind, rows: list[Row]) -> None:
        self._logs[kind] = [dict(row) for row in rows]

    def load_all(self, kind: RecordKind) -> list[Row]:
        return [dict(row) for row in self._logs[kind]]

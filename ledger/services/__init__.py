"""Services package."""

from ledger.services.storage import (
    CsvRecordStore,
    InMemoryRecordStore,
    PersistenceError,
    RecordKind,
    RecordStoreInterface,
)

__all__ = [
    "CsvRecordStore",
    "InMemoryRecordStore",
    "PersistenceError",
    "RecordKind",
    "RecordStoreInterface",
]

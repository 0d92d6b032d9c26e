"""
Storage Services Package

Provides the abstract record store interface and concrete implementations.
Currently implements flat CSV files as the backend, but designed to be swappable.
"""

from ledger.services.storage.interface import (
    HEADERS,
    PersistenceError,
    RecordKind,
    RecordStoreInterface,
    RollbackError,
)
from ledger.services.storage.csv_store import CsvRecordStore
from ledger.services.storage.memory import InMemoryRecordStore

__all__ = [
    # Interfaces
    "HEADERS",
    "RecordKind",
    "RecordStoreInterface",
    # Exceptions
    "PersistenceError",
    "RollbackError",
    # Implementations
    "CsvRecordStore",
    "InMemoryRecordStore",
]

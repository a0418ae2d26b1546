"""
Storage Services Package

Provides the abstract snapshot interface and its implementations.
The ledger is saved as one JSON document; the backend is swappable.
"""

from finvue.services.storage.interface import (
    BOOTSTRAP_ADMIN_ID,
    SnapshotCorruptedError,
    StateStorageInterface,
    StorageError,
    initial_state,
)
from finvue.services.storage.json_file import JsonFileStateStorage
from finvue.services.storage.memory import InMemoryStateStorage

__all__ = [
    # Interface
    "BOOTSTRAP_ADMIN_ID",
    "StateStorageInterface",
    "initial_state",
    # Exceptions
    "SnapshotCorruptedError",
    "StorageError",
    # Implementations
    "InMemoryStateStorage",
    "JsonFileStateStorage",
]

"""
Abstract Snapshot Storage Interface

DESIGN DECISION: We define an abstract interface for persisting the ledger.
This allows us to:
1. Keep a JSON file today and swap to a database later
2. Use in-memory storage for testing
3. Keep the record store decoupled from where bytes end up

The whole AppState is written as one snapshot under one fixed key.
There are no partial writes to reason about.
"""

from abc import ABC, abstractmethod
from typing import Optional

from finvue.config import AppSettings, get_settings
from finvue.models.ledger import AppState, User, UserRole


BOOTSTRAP_ADMIN_ID = "admin_1"


class StateStorageInterface(ABC):
    """
    Abstract interface for snapshot storage.

    Any storage implementation (JSON file, in-memory, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load_state(self) -> Optional[AppState]:
        """
        Load the saved snapshot.

        Returns:
            The saved state, or None if nothing was ever saved

        Raises:
            SnapshotCorruptedError: If a snapshot exists but cannot be read
        """
        pass

    @abstractmethod
    def save_state(self, state: AppState) -> bool:
        """
        Persist a snapshot, replacing the previous one.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the saved snapshot."""
        pass

    def load_or_init(self, settings: Optional[AppSettings] = None) -> AppState:
        """
        Load the saved snapshot, or bootstrap a fresh ledger.

        A fresh ledger has exactly one ADMIN user with the configured
        default credentials, no transactions and no activity.
        """
        state = self.load_state()
        if state is not None:
            return state
        return initial_state(settings or get_settings().app)


def initial_state(settings: AppSettings) -> AppState:
    """The state of a ledger that has never been saved."""
    admin = User(
        id=BOOTSTRAP_ADMIN_ID,
        username=settings.default_admin_username,
        password=settings.default_admin_password,
        role=UserRole.ADMIN,
    )
    return AppState(
        users=[admin],
        company_name=settings.default_company_name,
        dark_mode=False,
    )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class SnapshotCorruptedError(StorageError):
    """A snapshot exists but could not be parsed."""
    pass

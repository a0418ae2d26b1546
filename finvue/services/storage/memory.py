"""In-memory snapshot storage, used by tests and throwaway sessions."""

from typing import Any, Optional

from finvue.models.ledger import AppState
from finvue.services.storage.interface import StateStorageInterface


class InMemoryStateStorage(StateStorageInterface):
    """Keeps the last snapshot as a JSON-ready dict."""

    def __init__(self, snapshot: Optional[dict[str, Any]] = None):
        self._snapshot = snapshot
        self.save_count = 0

    @property
    def snapshot(self) -> Optional[dict[str, Any]]:
        return self._snapshot

    def load_state(self) -> Optional[AppState]:
        if self._snapshot is None:
            return None
        return AppState.model_validate(self._snapshot)

    def save_state(self, state: AppState) -> bool:
        self._snapshot = state.to_snapshot()
        self.save_count += 1
        return True

    def clear(self) -> None:
        self._snapshot = None

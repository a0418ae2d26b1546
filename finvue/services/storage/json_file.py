"""
JSON File Snapshot Storage

DESIGN DECISION: The ledger lives in one JSON file, like browser local
storage: a single document with the snapshot under a fixed key.

TRADEOFFS:
- The whole file is rewritten on every change (fine for a small office)
- Writes go to a temp file first and are moved into place, so a crash
  never leaves half a snapshot behind
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from finvue.models.ledger import AppState
from finvue.services.storage.interface import (
    SnapshotCorruptedError,
    StateStorageInterface,
    StorageError,
)


class JsonFileStateStorage(StateStorageInterface):
    """Snapshot storage backed by a JSON file on disk."""

    def __init__(self, path: str | Path, storage_key: str = "finvue_data_v2"):
        self._path = Path(path)
        self._storage_key = storage_key
        self._logger = structlog.get_logger()

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                document = json.load(fh)
        except json.JSONDecodeError as e:
            raise SnapshotCorruptedError(f"Snapshot file is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot: {e}")
        if not isinstance(document, dict):
            raise SnapshotCorruptedError("Snapshot file does not contain an object")
        return document

    def load_state(self) -> Optional[AppState]:
        """Load the snapshot stored under the configured key."""
        raw = self._read_document().get(self._storage_key)
        if raw is None:
            return None
        # Older versions stored the snapshot as a JSON string
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise SnapshotCorruptedError(f"Snapshot is not valid JSON: {e}")
        try:
            return AppState.model_validate(raw)
        except ValidationError as e:
            raise SnapshotCorruptedError(f"Snapshot does not match the schema: {e}")

    def save_state(self, state: AppState) -> bool:
        """
        Write the snapshot atomically.

        Raises:
            SnapshotCorruptedError: The file on disk is not a readable
                document. It is left as it is for someone to inspect.
        """
        document = self._read_document()

        document[self._storage_key] = state.to_snapshot()

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to save snapshot: {e}")

        self._logger.debug(
            "snapshot_saved",
            path=str(self._path),
            transactions=len(state.transactions),
        )
        return True

    def clear(self) -> None:
        """Remove the snapshot key, keeping any other keys in the file."""
        document = self._read_document()
        if self._storage_key not in document:
            return
        del document[self._storage_key]
        try:
            if document:
                with self._path.open("w", encoding="utf-8") as fh:
                    json.dump(document, fh, ensure_ascii=False, indent=2)
            else:
                self._path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to clear snapshot: {e}")

"""
Abstract Cloud Sync Interface

DESIGN DECISION: Cloud sync is a one-way mirror. The local snapshot is
the source of truth; a sync pushes a copy of it somewhere people can read
it (a Google Sheet, directly or through an Apps Script webhook).

A sync is ONE attempt with a boolean outcome:
- No retries (the user presses the button again)
- No conflict resolution (nothing is ever pulled back)
- Never raises: failures are logged and reported as False
"""

from abc import ABC, abstractmethod
from typing import Any

from finvue.models.ledger import AppState


class SyncServiceInterface(ABC):
    """Pushes a snapshot of the ledger to a remote target."""

    @abstractmethod
    async def push_snapshot(self, target: str, state: AppState) -> bool:
        """
        Push the whole state to the target.

        Args:
            target: Where to push (webhook URL, spreadsheet URL or key)
            state: The state to mirror

        Returns:
            True if the remote side reported success
        """
        pass


def public_snapshot(state: AppState) -> dict[str, Any]:
    """The snapshot with every password removed."""
    snapshot = state.to_snapshot()
    snapshot["users"] = [
        {k: v for k, v in user.items() if k != "password"}
        for user in snapshot.get("users", [])
    ]
    return snapshot

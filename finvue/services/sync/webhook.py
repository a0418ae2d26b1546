"""
Apps Script Webhook Sync

Posts the snapshot as JSON to a user-supplied URL, typically a Google
Apps Script web app that writes it into a spreadsheet. Any 2xx answer
counts as success.
"""

from datetime import datetime, timezone
from typing import Optional

import requests
import structlog

from finvue.config import get_settings
from finvue.models.ledger import AppState
from finvue.services.sync.interface import SyncServiceInterface, public_snapshot


class WebhookSyncService(SyncServiceInterface):
    """Cloud sync through an HTTP POST."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self._timeout = timeout or get_settings().app.sync_timeout_seconds
        self._http = session or requests.Session()
        self._logger = structlog.get_logger()

    def build_payload(self, state: AppState) -> dict:
        payload = public_snapshot(state)
        payload["syncedAt"] = datetime.now(timezone.utc).isoformat()
        return payload

    async def push_snapshot(self, target: str, state: AppState) -> bool:
        if not target:
            self._logger.warning("sync_skipped", reason="no target configured")
            return False

        try:
            response = self._http.post(
                target,
                json=self.build_payload(state),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            self._logger.error("webhook_sync_failed", target=target, error=str(e))
            return False

        if not response.ok:
            self._logger.error(
                "webhook_sync_rejected",
                target=target,
                status_code=response.status_code,
            )
            return False

        self._logger.info(
            "webhook_sync_completed",
            target=target,
            transactions=len(state.transactions),
        )
        return True

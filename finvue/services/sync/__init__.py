"""
Cloud Sync Package

One-way mirrors of the ledger: an Apps Script webhook or the Google
Sheets API.
"""

from finvue.services.sync.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSyncService,
    SheetsConnectionError,
)
from finvue.services.sync.interface import SyncServiceInterface, public_snapshot
from finvue.services.sync.webhook import WebhookSyncService

__all__ = [
    "GoogleSheetsClient",
    "GoogleSheetsSyncService",
    "SheetsConnectionError",
    "SyncServiceInterface",
    "WebhookSyncService",
    "public_snapshot",
]

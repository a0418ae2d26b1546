"""Services package."""

from finvue.services.branding import InvalidImageError, encode_image_data_url
from finvue.services.export import SpreadsheetExporter
from finvue.services.storage import (
    InMemoryStateStorage,
    JsonFileStateStorage,
    SnapshotCorruptedError,
    StateStorageInterface,
    StorageError,
)
from finvue.services.sync import (
    GoogleSheetsClient,
    GoogleSheetsSyncService,
    SheetsConnectionError,
    SyncServiceInterface,
    WebhookSyncService,
)

__all__ = [
    # Branding
    "InvalidImageError",
    "encode_image_data_url",
    # Export
    "SpreadsheetExporter",
    # Storage services
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "SnapshotCorruptedError",
    "StateStorageInterface",
    "StorageError",
    # Cloud sync
    "GoogleSheetsClient",
    "GoogleSheetsSyncService",
    "SheetsConnectionError",
    "SyncServiceInterface",
    "WebhookSyncService",
]

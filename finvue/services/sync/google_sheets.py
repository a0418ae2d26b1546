"""
Google Sheets Sync

DESIGN DECISION: Google Sheets is the cloud mirror because:
1. Non-technical users can read the ledger directly in Sheets
2. No database setup required
3. Built-in sharing and backup

TRADEOFFS:
- Every sync rewrites the worksheets from scratch (fine for a small office)
- Nothing is read back; the local snapshot stays the source of truth

The spreadsheet gets three worksheets: Transactions, Users (no passwords)
and ActivityLog, each with a header row.
"""

from typing import Optional

import gspread
import requests
import structlog
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finvue.config import GoogleSheetsSettings, get_settings
from finvue.models.ledger import AppState, Transaction, User
from finvue.services.sync.interface import SyncServiceInterface


# Column mappings for the Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "date",
    "type",
    "category",
    "sub_category",
    "amount",
    "source",
    "status",
    "note",
    "user_id",
    "created_by",
]

USER_COLUMNS = [
    "id",
    "username",
    "role",
]

ACTIVITY_COLUMNS = [
    "id",
    "timestamp",
    "username",
    "action",
    "details",
    "type",
]


class SheetsConnectionError(Exception):
    """Could not reach the spreadsheet."""
    pass


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise SheetsConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise SheetsConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def open(self, target: Optional[str] = None) -> gspread.Spreadsheet:
        """Open a spreadsheet by URL or key, defaulting to the configured one."""
        client = self.connect()
        target = target or self._settings.spreadsheet_id
        try:
            if target.startswith("http"):
                return client.open_by_url(target)
            return client.open_by_key(target)
        except gspread.SpreadsheetNotFound:
            raise SheetsConnectionError(f"Spreadsheet not found: {target}")

    @staticmethod
    def worksheet(
        spreadsheet: gspread.Spreadsheet,
        title: str,
        columns: int,
    ) -> gspread.Worksheet:
        """Get or create a worksheet."""
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            return spreadsheet.add_worksheet(title=title, rows=1000, cols=columns)


def transaction_to_row(transaction: Transaction) -> list:
    return [
        transaction.id,
        transaction.date.isoformat(),
        transaction.type.value,
        transaction.category,
        transaction.sub_category or "",
        str(transaction.amount),
        transaction.source.value,
        transaction.status.value,
        transaction.note,
        transaction.user_id,
        transaction.created_by,
    ]


def user_to_row(user: User) -> list:
    return [user.id, user.username, user.role.value]


class GoogleSheetsSyncService(SyncServiceInterface):
    """Mirrors the ledger into a spreadsheet through the Sheets API."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._logger = structlog.get_logger()

    def _rewrite(self, sheet: gspread.Worksheet, header: list, rows: list[list]) -> None:
        sheet.clear()
        sheet.update(values=[header, *rows], range_name="A1")

    async def push_snapshot(self, target: str, state: AppState) -> bool:
        settings = self._client.settings
        try:
            spreadsheet = self._client.open(target)

            tables = [
                (
                    settings.transactions_sheet_name,
                    TRANSACTION_COLUMNS,
                    [transaction_to_row(t) for t in state.transactions],
                ),
                (
                    settings.users_sheet_name,
                    USER_COLUMNS,
                    [user_to_row(u) for u in state.users],
                ),
                (
                    settings.activity_sheet_name,
                    ACTIVITY_COLUMNS,
                    [entry.to_sheets_row() for entry in state.activity_logs],
                ),
            ]
            for title, header, rows in tables:
                sheet = self._client.worksheet(spreadsheet, title, len(header))
                self._rewrite(sheet, header, rows)

        except (
            SheetsConnectionError,
            gspread.exceptions.GSpreadException,
            requests.RequestException,
            GoogleAuthError,
        ) as e:
            self._logger.error("sheets_sync_failed", target=target, error=str(e))
            return False

        self._logger.info(
            "sheets_sync_completed",
            target=target,
            transactions=len(state.transactions),
            users=len(state.users),
        )
        return True

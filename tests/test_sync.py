"""Tests for cloud sync backends (no network)."""

import asyncio
from decimal import Decimal
from types import SimpleNamespace

import pytest
import requests
from google.auth.exceptions import TransportError

from finvue.models import AppState, TransactionDraft, User, UserRole
from finvue.services.sync import (
    GoogleSheetsSyncService,
    SheetsConnectionError,
    WebhookSyncService,
    public_snapshot,
)
from finvue.services.sync.google_sheets import (
    ACTIVITY_COLUMNS,
    TRANSACTION_COLUMNS,
    USER_COLUMNS,
)


URL = "https://script.google.com/macros/s/abc/exec"


class FakeResponse:

    def __init__(self, status_code):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300


class FakeHttp:

    def __init__(self, status_code=200, error=None):
        self.status_code = status_code
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error:
            raise self.error
        return FakeResponse(self.status_code)


def populated_state(store, admin) -> AppState:
    store.add_transaction(TransactionDraft(amount=Decimal("80"), category="Rent"), admin)
    return store.state


class TestPublicSnapshot:

    def test_passwords_are_removed(self):
        state = AppState(users=[User(id="a", username="admin", password="secret", role=UserRole.ADMIN)])
        snapshot = public_snapshot(state)
        assert snapshot["users"] == [{"id": "a", "username": "admin", "role": "ADMIN"}]
        # The state itself is untouched
        assert state.users[0].password == "secret"


class TestWebhookSync:

    def test_success(self, store, admin):
        http = FakeHttp(200)
        service = WebhookSyncService(timeout=5, session=http)
        state = populated_state(store, admin)

        assert asyncio.run(service.push_snapshot(URL, state)) is True
        call = http.calls[0]
        assert call["url"] == URL
        assert call["timeout"] == 5
        assert len(call["json"]["transactions"]) == 1
        assert "syncedAt" in call["json"]
        assert all("password" not in u for u in call["json"]["users"])

    def test_http_error_status(self, store, admin):
        service = WebhookSyncService(timeout=5, session=FakeHttp(500))
        assert asyncio.run(service.push_snapshot(URL, populated_state(store, admin))) is False

    def test_network_error(self, store, admin):
        http = FakeHttp(error=requests.ConnectionError("offline"))
        service = WebhookSyncService(timeout=5, session=http)
        assert asyncio.run(service.push_snapshot(URL, store.state)) is False

    def test_no_target(self, store):
        http = FakeHttp()
        service = WebhookSyncService(timeout=5, session=http)
        assert asyncio.run(service.push_snapshot("", store.state)) is False
        assert http.calls == []


class FakeWorksheet:

    def __init__(self, title, error=None):
        self.title = title
        self.error = error
        self.cleared = False
        self.values = None

    def clear(self):
        if self.error:
            raise self.error
        self.cleared = True

    def update(self, values=None, range_name=None):
        assert range_name == "A1"
        self.values = values


class FakeSheetsClient:

    def __init__(self, fail=False, sheet_error=None):
        self.fail = fail
        self.sheet_error = sheet_error
        self.opened = None
        self.sheets = {}
        self.settings = SimpleNamespace(
            transactions_sheet_name="Transactions",
            users_sheet_name="Users",
            activity_sheet_name="ActivityLog",
        )

    def open(self, target=None):
        if self.fail:
            raise SheetsConnectionError("Spreadsheet not found")
        self.opened = target
        return object()

    def worksheet(self, spreadsheet, title, columns):
        return self.sheets.setdefault(title, FakeWorksheet(title, self.sheet_error))


class TestGoogleSheetsSync:

    def test_rewrites_all_sheets(self, store, admin):
        client = FakeSheetsClient()
        state = populated_state(store, admin)

        assert asyncio.run(GoogleSheetsSyncService(client).push_snapshot("sheet-key", state)) is True
        assert client.opened == "sheet-key"

        transactions = client.sheets["Transactions"]
        assert transactions.cleared
        assert transactions.values[0] == TRANSACTION_COLUMNS
        assert transactions.values[1][0] == state.transactions[0].id
        assert transactions.values[1][5] == "80.00"

        users = client.sheets["Users"]
        assert users.values[0] == USER_COLUMNS
        assert ["admin_1", "admin", "ADMIN"] in users.values

        activity = client.sheets["ActivityLog"]
        assert activity.values[0] == ACTIVITY_COLUMNS
        assert len(activity.values) == len(state.activity_logs) + 1

    def test_connection_failure(self, store):
        client = FakeSheetsClient(fail=True)
        assert asyncio.run(GoogleSheetsSyncService(client).push_snapshot("x", store.state)) is False

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectionError("network down"),
        TransportError("token refresh failed"),
    ])
    def test_transport_failure_is_reported_as_false(self, store, error):
        client = FakeSheetsClient(sheet_error=error)
        assert asyncio.run(GoogleSheetsSyncService(client).push_snapshot("x", store.state)) is False

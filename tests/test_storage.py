"""Tests for snapshot storage."""

import json
from decimal import Decimal

import pytest

from finvue.models import AppState, TransactionDraft
from finvue.ledger import RecordStore
from finvue.services.storage import (
    BOOTSTRAP_ADMIN_ID,
    InMemoryStateStorage,
    JsonFileStateStorage,
    SnapshotCorruptedError,
)


class TestJsonFileStorage:

    def test_missing_file_bootstraps(self, tmp_path, settings):
        storage = JsonFileStateStorage(tmp_path / "ledger.json")
        assert storage.load_state() is None
        state = storage.load_or_init(settings)
        assert [u.id for u in state.users] == [BOOTSTRAP_ADMIN_ID]
        assert state.transactions == []
        assert state.activity_logs == []

    def test_save_and_load(self, tmp_path, settings, admin):
        path = tmp_path / "ledger.json"
        storage = JsonFileStateStorage(path)
        store = RecordStore(storage=storage, settings=settings)
        tx = store.add_transaction(TransactionDraft(amount=Decimal("80"), category="Rent"), admin)

        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["finvue_data_v2"]["transactions"][0]["id"] == tx.id

        loaded = JsonFileStateStorage(path).load_state()
        assert loaded.find_transaction(tx.id) == tx
        assert loaded.activity_logs[0].action == "Transaction Add"

    def test_no_temp_files_left(self, tmp_path):
        storage = JsonFileStateStorage(tmp_path / "ledger.json")
        storage.save_state(AppState())
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    def test_other_keys_survive(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"theme": "x"}), encoding="utf-8")
        storage = JsonFileStateStorage(path)
        storage.save_state(AppState(company_name="Acme"))
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["theme"] == "x"
        storage.clear()
        assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "x"}

    def test_clear_removes_file_when_empty(self, tmp_path):
        path = tmp_path / "ledger.json"
        storage = JsonFileStateStorage(path)
        storage.save_state(AppState())
        storage.clear()
        assert not path.exists()

    def test_legacy_string_snapshot(self, tmp_path):
        path = tmp_path / "ledger.json"
        legacy = {
            "transactions": [],
            "users": [{"id": "admin_1", "username": "admin", "password": "admin", "role": "ADMIN"}],
            "currentUser": {"id": "admin_1", "username": "admin", "role": "ADMIN"},
            "companyName": "Old Co",
        }
        path.write_text(json.dumps({"finvue_data_v2": json.dumps(legacy)}), encoding="utf-8")
        state = JsonFileStateStorage(path).load_state()
        assert state.current_user_id == "admin_1"
        assert state.activity_logs == []
        assert state.dark_mode is False
        assert state.company_name == "Old Co"

    def test_corrupted_file(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotCorruptedError):
            JsonFileStateStorage(path).load_state()

    def test_corrupted_file_is_never_overwritten(self, tmp_path, settings, admin):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        storage = JsonFileStateStorage(path)
        with pytest.raises(SnapshotCorruptedError):
            storage.save_state(AppState())

        # The store keeps the change in memory and leaves the file alone
        store = RecordStore(storage=storage, settings=settings)
        store.update_company_name("Acme", admin)
        assert store.state.company_name == "Acme"
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_schema_mismatch(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"finvue_data_v2": {"users": [{"role": "KING"}]}}), encoding="utf-8")
        with pytest.raises(SnapshotCorruptedError):
            JsonFileStateStorage(path).load_state()

    def test_custom_key(self, tmp_path):
        path = tmp_path / "ledger.json"
        JsonFileStateStorage(path, storage_key="other").save_state(AppState(company_name="B"))
        assert JsonFileStateStorage(path).load_state() is None
        assert JsonFileStateStorage(path, storage_key="other").load_state().company_name == "B"


class TestInMemoryStorage:

    def test_round_trip(self):
        storage = InMemoryStateStorage()
        assert storage.load_state() is None
        storage.save_state(AppState(company_name="Acme", dark_mode=True))
        loaded = storage.load_state()
        assert loaded.company_name == "Acme"
        assert loaded.dark_mode is True
        storage.clear()
        assert storage.load_state() is None

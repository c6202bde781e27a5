"""
Release Planner
Tests — Record Store (whole-file JSON collections).
"""

import json
import os

import pytest

from release_planner.core.exceptions import StorageError
from release_planner.store import ACCOUNTS, COLLECTIONS, RELEASES, RecordStore


class TestInitialize:
    def test_creates_every_collection(self, tmp_path):
        store = RecordStore(tmp_path / "fresh")
        store.initialize()
        for name in COLLECTIONS:
            with open(store.path_for(name), encoding="utf-8") as fh:
                assert json.load(fh) == []

    def test_keeps_existing_files(self, tmp_path):
        store = RecordStore(tmp_path)
        store.save(ACCOUNTS, [{"id": 1, "name": "ACME"}])
        store.initialize()
        assert store.load(ACCOUNTS) == [{"id": 1, "name": "ACME"}]


class TestLoad:
    def test_missing_file_is_empty(self, tmp_path):
        assert RecordStore(tmp_path).load(RELEASES) == []

    def test_invalid_json_is_empty(self, tmp_path, caplog):
        store = RecordStore(tmp_path)
        with open(store.path_for(RELEASES), "w", encoding="utf-8") as fh:
            fh.write("{not json")
        assert store.load(RELEASES) == []
        assert "invalid JSON" in caplog.text

    def test_non_array_is_empty(self, tmp_path):
        store = RecordStore(tmp_path)
        with open(store.path_for(RELEASES), "w", encoding="utf-8") as fh:
            json.dump({"id": 1}, fh)
        assert store.load(RELEASES) == []


class TestSave:
    def test_round_trip_preserves_order_and_unicode(self, tmp_path):
        store = RecordStore(tmp_path)
        records = [{"id": 2, "name": "ZÜRICH"}, {"id": 1, "name": "ACME"}]
        store.save(ACCOUNTS, records)
        assert store.load(ACCOUNTS) == records
        with open(store.path_for(ACCOUNTS), encoding="utf-8") as fh:
            text = fh.read()
        assert "ZÜRICH" in text
        assert text.startswith("[\n  {")

    def test_no_temp_files_left_behind(self, tmp_path):
        data_dir = tmp_path / "solo"
        data_dir.mkdir()
        store = RecordStore(data_dir)
        store.save(ACCOUNTS, [{"id": 1}])
        assert sorted(os.listdir(data_dir)) == ["accounts.json"]

    def test_unserializable_raises_storage_error(self, tmp_path):
        store = RecordStore(tmp_path)
        with pytest.raises(StorageError):
            store.save(ACCOUNTS, [{"id": object()}])

    def test_missing_directory_raises_storage_error(self, tmp_path):
        store = RecordStore(tmp_path / "does-not-exist")
        with pytest.raises(StorageError):
            store.save(ACCOUNTS, [])

"""
Release Planner
Tests — data migrations (legacy backfills + ledger idempotence).
"""

import json
import os

from release_planner import create_app
from release_planner.services.data_migrations import MIGRATIONS as ALL_MIGRATIONS
from release_planner.services.data_migrations import pending_migrations, run_migrations
from release_planner.store import (
    ACCOUNTS,
    COLLECTIONS,
    MIGRATIONS,
    RELEASE_VERSIONS,
    RELEASES,
    RecordStore,
)

LEGACY_RELEASE = {
    "id": 1,
    "account_name": "ACME",
    "release_version": "R1",
    "release_date": "2024-03-01",
    "executor": "ops",
    "status": "Completed",
    "defect_details": "Login page broken",
}


def _legacy_store(tmp_path):
    store = RecordStore(tmp_path / "legacy")
    store.initialize()
    store.save(RELEASES, [dict(LEGACY_RELEASE)])
    store.save(ACCOUNTS, [{"id": 1, "name": "ACME", "region": "EMEA"}])
    store.save(RELEASE_VERSIONS, [{"id": 1, "name": "R1"}])
    return store


class TestBackfill:
    def test_release_fields(self, tmp_path):
        store = _legacy_store(tmp_path)
        run_migrations(store)
        release = store.load(RELEASES)[0]
        assert release["completion_date"] is None
        assert release["time_taken_hours"] is None
        assert release["completion_notes"] == ""
        assert release["product"] == ""
        assert release["environment"] == ""

    def test_legacy_defect_details_become_one_defect(self, tmp_path):
        store = _legacy_store(tmp_path)
        run_migrations(store)
        release = store.load(RELEASES)[0]
        assert len(release["defects"]) == 1
        assert release["defects"][0]["defect_id"] == "LEGACY"
        assert release["defects"][0]["description"] == "Login page broken"
        assert release["defects_raised"] == "1"
        assert release["defect_details"] == "LEGACY: Login page broken"

    def test_accounts_and_versions(self, tmp_path):
        store = _legacy_store(tmp_path)
        run_migrations(store)
        assert store.load(ACCOUNTS)[0]["products"] == []
        version = store.load(RELEASE_VERSIONS)[0]
        assert version["features"] == []
        assert version["description"] == ""

    def test_existing_values_kept(self, tmp_path):
        store = RecordStore(tmp_path)
        store.initialize()
        store.save(ACCOUNTS, [{"id": 1, "name": "ACME", "products": ["SRE"]}])
        run_migrations(store)
        assert store.load(ACCOUNTS)[0]["products"] == ["SRE"]


class TestLedger:
    def test_all_applied_once(self, tmp_path):
        store = _legacy_store(tmp_path)
        applied = run_migrations(store)
        assert applied == [m.id for m in ALL_MIGRATIONS]
        ledger = store.load(MIGRATIONS)
        assert [entry["id"] for entry in ledger] == applied
        assert ledger[0]["changed"] == 1
        assert pending_migrations(store) == []

    def test_ledger_written_to_migrations_collection(self, tmp_path):
        store = _legacy_store(tmp_path)
        run_migrations(store)
        with open(store.path_for(MIGRATIONS), encoding="utf-8") as fh:
            ids = [entry["id"] for entry in json.load(fh)]
        assert ids == [m.id for m in ALL_MIGRATIONS]
        assert sorted(os.listdir(store.data_dir)) == sorted(f"{name}.json" for name in COLLECTIONS)

    def test_second_run_is_noop(self, tmp_path):
        store = _legacy_store(tmp_path)
        run_migrations(store)
        snapshot = {name: store.load(name) for name in (ACCOUNTS, RELEASE_VERSIONS, RELEASES, MIGRATIONS)}
        assert run_migrations(store) == []
        assert {name: store.load(name) for name in snapshot} == snapshot

    def test_transforms_idempotent_without_ledger(self, tmp_path):
        store = _legacy_store(tmp_path)
        run_migrations(store)
        migrated = store.load(RELEASES)
        store.save(MIGRATIONS, [])
        run_migrations(store)
        assert store.load(RELEASES) == migrated
        assert all(entry["changed"] == 0 for entry in store.load(MIGRATIONS))


class TestStartup:
    def test_create_app_migrates(self, tmp_path):
        store = _legacy_store(tmp_path)
        create_app("testing", DATA_DIR=store.data_dir)
        assert store.load(RELEASES)[0]["defects"][0]["defect_id"] == "LEGACY"

    def test_cli_command(self, app, store):
        store.save(RELEASES, [dict(LEGACY_RELEASE)])
        result = app.test_cli_runner().invoke(args=["migrate-data"])
        assert result.exit_code == 0
        assert "Applied 4 migration(s)" in result.output
        assert store.load(RELEASES)[0]["completion_notes"] == ""

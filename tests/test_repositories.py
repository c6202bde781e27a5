"""
Release Planner
Tests — entity repositories (ids, timestamps, uniqueness, in-use checks).
"""

import pytest

from release_planner.core.exceptions import DuplicateNameError, InUseError, NotFoundError
from release_planner.services.repositories import (
    AccountRepository,
    ReleaseRepository,
    ReleaseVersionRepository,
)
from release_planner.store import ACCOUNTS, RELEASES


@pytest.fixture
def accounts(store):
    return AccountRepository(store)


class TestIds:
    def test_first_id_is_one(self, accounts):
        assert accounts.create({"name": "a"})["id"] == 1

    def test_id_is_max_plus_one(self, store, accounts):
        store.save(ACCOUNTS, [{"id": 3, "name": "A"}, {"id": 7, "name": "B"}])
        assert accounts.create({"name": "c"})["id"] == 8

    def test_ids_not_reused_below_max(self, accounts):
        first = accounts.create({"name": "a"})
        second = accounts.create({"name": "b"})
        accounts.delete(first["id"])
        assert accounts.create({"name": "c"})["id"] == second["id"] + 1


class TestCreateUpdate:
    def test_timestamps(self, accounts):
        record = accounts.create({"name": "a"})
        assert record["created_at"].endswith("Z")
        assert record["created_at"] == record["updated_at"]

    def test_update_merges_and_keeps_id(self, accounts):
        record = accounts.create({"name": "a", "region": "EMEA", "products": []})
        updated = accounts.update(record["id"], {"region": "APAC", "id": 99})
        assert updated["id"] == record["id"]
        assert updated["region"] == "APAC"
        assert updated["name"] == "A"
        assert updated["created_at"] == record["created_at"]

    def test_update_missing(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.update(42, {"region": "APAC"})

    def test_get_missing(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.get(42)


class TestNameUniqueness:
    def test_duplicate_case_insensitive(self, accounts):
        accounts.create({"name": "Acme"})
        with pytest.raises(DuplicateNameError):
            accounts.create({"name": " acme "})

    def test_rename_to_taken_name(self, accounts):
        accounts.create({"name": "acme"})
        other = accounts.create({"name": "globex"})
        with pytest.raises(DuplicateNameError):
            accounts.update(other["id"], {"name": "ACME"})

    def test_rename_to_own_name(self, accounts):
        record = accounts.create({"name": "acme"})
        assert accounts.update(record["id"], {"name": "Acme"})["name"] == "ACME"

    def test_get_by_name(self, accounts):
        accounts.create({"name": "acme"})
        assert accounts.get_by_name("aCmE")["name"] == "ACME"
        assert accounts.get_by_name("globex") is None

    def test_list_sorted(self, accounts):
        for name in ("zeta", "alpha", "Mid"):
            accounts.create({"name": name})
        assert [a["name"] for a in accounts.list_sorted()] == ["ALPHA", "MID", "ZETA"]


class TestDelete:
    def test_delete_missing(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.delete(1)

    def test_account_in_use(self, store, accounts):
        record = accounts.create({"name": "acme"})
        store.save(RELEASES, [{"id": 1, "account_name": "Acme"}])
        with pytest.raises(InUseError) as exc:
            accounts.delete(record["id"])
        assert exc.value.reference_count == 1
        assert accounts.get(record["id"])

    def test_release_version_in_use(self, store):
        versions = ReleaseVersionRepository(store)
        record = versions.create({"name": "r1", "features": []})
        store.save(RELEASES, [{"id": 1, "release_version": "R1"}, {"id": 2, "release_version": "r1"}])
        with pytest.raises(InUseError) as exc:
            versions.delete(record["id"])
        assert exc.value.reference_count == 2

    def test_delete_unreferenced(self, store, accounts):
        record = accounts.create({"name": "acme"})
        store.save(RELEASES, [{"id": 1, "account_name": "GLOBEX"}])
        accounts.delete(record["id"])
        assert accounts.list() == []

    def test_release_delete_unconditional(self, store):
        releases = ReleaseRepository(store)
        record = releases.create({"account_name": "ACME"})
        releases.delete(record["id"])
        assert releases.list() == []


class TestRename:
    def test_rename_referenced_account_refused(self, store, accounts):
        record = accounts.create({"name": "acme"})
        store.save(RELEASES, [{"id": 1, "account_name": "ACME"}])
        with pytest.raises(InUseError) as exc:
            accounts.update(record["id"], {"name": "globex"})
        assert exc.value.action == "rename"
        assert str(exc.value).startswith("Cannot rename account 'ACME'")
        assert accounts.get(record["id"])["name"] == "ACME"

    def test_case_only_rename_allowed_while_referenced(self, store, accounts):
        record = accounts.create({"name": "acme"})
        store.save(RELEASES, [{"id": 1, "account_name": "ACME"}])
        assert accounts.update(record["id"], {"name": "Acme"})["name"] == "ACME"

    def test_rename_referenced_release_version_refused(self, store):
        versions = ReleaseVersionRepository(store)
        record = versions.create({"name": "r1", "features": []})
        store.save(RELEASES, [{"id": 1, "release_version": "R1"}])
        with pytest.raises(InUseError):
            versions.update(record["id"], {"name": "r2"})

    def test_rename_unreferenced(self, store, accounts):
        record = accounts.create({"name": "acme"})
        store.save(RELEASES, [{"id": 1, "account_name": "OTHER"}])
        assert accounts.update(record["id"], {"name": "globex"})["name"] == "GLOBEX"

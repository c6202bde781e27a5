"""Entity repositories — typed CRUD over the Record Store.

Every operation reads the whole collection, mutates it in memory and writes
the whole collection back.  No locking: two concurrent writers race and the
last one wins (this includes ``max(id) + 1`` id assignment).

Repositories:
- AccountRepository          unique uppercase names, delete and rename blocked while referenced
- ReleaseVersionRepository   same rules, keyed on Release.release_version
- ReleaseRepository          plain CRUD; validation lives in release_lifecycle

Callers pass already-validated field dicts (see release_planner.models).
"""
import logging

from release_planner.core.exceptions import DuplicateNameError, InUseError, NotFoundError
from release_planner.models.account import normalize_name
from release_planner.store import ACCOUNTS, RELEASE_VERSIONS, RELEASES
from release_planner.utils.helpers import next_id, utc_now_iso

logger = logging.getLogger(__name__)


def _same_name(a, b):
    return (a or "").strip().lower() == (b or "").strip().lower()


def _find_index(records, record_id):
    for index, record in enumerate(records):
        if record.get("id") == record_id:
            return index
    return None


class Repository:
    """Read-entire-collection / write-entire-collection CRUD."""

    collection = None
    label = None

    def __init__(self, store):
        self.store = store

    def list(self):
        return self.store.load(self.collection)

    def get(self, record_id):
        records = self.list()
        index = _find_index(records, record_id)
        if index is None:
            raise NotFoundError(self.label, record_id)
        return records[index]

    def create(self, fields):
        records = self.list()
        self._before_create(records, fields)
        now = utc_now_iso()
        record = {"id": next_id(records), **fields, "created_at": now, "updated_at": now}
        records.append(record)
        self.store.save(self.collection, records)
        logger.info("%s created: id=%s", self.label, record["id"])
        return record

    def update(self, record_id, fields):
        records = self.list()
        index = _find_index(records, record_id)
        if index is None:
            raise NotFoundError(self.label, record_id)
        self._before_update(records, records[index], fields)
        records[index] = {
            **records[index],
            **fields,
            "id": records[index]["id"],
            "updated_at": utc_now_iso(),
        }
        self.store.save(self.collection, records)
        logger.info("%s updated: id=%s fields=%s", self.label, record_id, sorted(fields))
        return records[index]

    def replace(self, record_id, record):
        """Store a fully-built record in place of the existing one.

        Used by the lifecycle service, which merges and validates the whole
        record itself before writing.
        """
        return self.update(record_id, {k: v for k, v in record.items() if k not in ("id", "created_at")})

    def delete(self, record_id):
        records = self.list()
        index = _find_index(records, record_id)
        if index is None:
            raise NotFoundError(self.label, record_id)
        self._before_delete(records[index])
        removed = records.pop(index)
        self.store.save(self.collection, records)
        logger.info("%s deleted: id=%s", self.label, record_id)
        return removed

    # ── Hooks ────────────────────────────────────────────────────────────

    def _before_create(self, records, fields):
        pass

    def _before_update(self, records, existing, fields):
        pass

    def _before_delete(self, record):
        pass


class NamedRepository(Repository):
    """Repository whose records carry a unique, uppercase ``name``.

    Deleting or renaming a record is refused while any Release still points
    at its name through ``reference_field``.
    """

    reference_field = None

    def list_sorted(self):
        return sorted(self.list(), key=lambda r: (r.get("name") or "").lower())

    def get_by_name(self, name):
        """Case-insensitive lookup; returns None when absent."""
        for record in self.list():
            if _same_name(record.get("name"), name):
                return record
        return None

    def _check_unique(self, records, name, exclude_id=None):
        for record in records:
            if record.get("id") != exclude_id and _same_name(record.get("name"), name):
                raise DuplicateNameError(self.label, name)

    def _references(self, name):
        releases = self.store.load(RELEASES)
        return [r for r in releases if _same_name(r.get(self.reference_field), name)]

    def _before_create(self, records, fields):
        fields["name"] = normalize_name(fields["name"])
        self._check_unique(records, fields["name"])

    def _before_update(self, records, existing, fields):
        if "name" not in fields:
            return
        fields["name"] = normalize_name(fields["name"])
        self._check_unique(records, fields["name"], exclude_id=existing.get("id"))
        if _same_name(fields["name"], existing.get("name")):
            return
        in_use = self._references(existing.get("name"))
        if in_use:
            logger.info(
                "%s rename refused: %s referenced by %d release(s)",
                self.label, existing.get("name"), len(in_use),
            )
            raise InUseError(self.label, existing.get("name"), len(in_use), action="rename")

    def _before_delete(self, record):
        in_use = self._references(record.get("name"))
        if in_use:
            logger.info(
                "%s delete refused: %s referenced by %d release(s)",
                self.label, record.get("name"), len(in_use),
            )
            raise InUseError(self.label, record.get("name"), len(in_use))


class AccountRepository(NamedRepository):
    collection = ACCOUNTS
    label = "Account"
    reference_field = "account_name"


class ReleaseVersionRepository(NamedRepository):
    collection = RELEASE_VERSIONS
    label = "ReleaseVersion"
    reference_field = "release_version"


class ReleaseRepository(Repository):
    collection = RELEASES
    label = "Release"

"""
Data migrations — one-off backfills applied to the JSON collections.

Each migration is a pure ``record -> record`` transform over one collection.
``run_migrations`` applies the ones missing from the ``_migrations`` ledger
and records them there.  Transforms only touch records that lack the new
fields, so replaying a migration (or the whole step) changes nothing.

Usage:
    from release_planner.services.data_migrations import run_migrations
    applied = run_migrations(store)          # ["0001_...", ...] on first run, [] after

Adding a migration: append a ``Migration`` to ``MIGRATIONS``; never edit or
reorder one that has shipped.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from release_planner.models.release import apply_derived_fields
from release_planner.store import ACCOUNTS, RELEASE_VERSIONS, RELEASES
from release_planner.store import MIGRATIONS as LEDGER
from release_planner.utils.helpers import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    id: str
    collection: str
    transform: Callable[[dict], dict]
    description: str = ""


def _release_completion_fields(record):
    if "completion_date" in record and isinstance(record.get("defects"), list):
        return record
    migrated = {
        "completion_date": None,
        "time_taken_hours": None,
        "completion_notes": "",
        **record,
    }
    if not isinstance(migrated.get("defects"), list):
        legacy_details = (record.get("defect_details") or "").strip()
        migrated["defects"] = (
            [{
                "id": 1,
                "defect_id": "LEGACY",
                "description": legacy_details,
                "severity": "Medium",
                "status": "Open",
            }]
            if legacy_details else []
        )
    return apply_derived_fields(migrated)


def _release_product_environment(record):
    if "product" in record and "environment" in record:
        return record
    return {"product": "", "environment": "", **record}


def _account_products(record):
    if isinstance(record.get("products"), list):
        return record
    return {**record, "products": []}


def _release_version_features(record):
    if isinstance(record.get("features"), list) and "description" in record:
        return record
    migrated = {"description": "", **record}
    if not isinstance(migrated.get("features"), list):
        migrated["features"] = []
    return migrated


MIGRATIONS = (
    Migration(
        "0001_release_completion_fields", RELEASES, _release_completion_fields,
        "Completion tracking fields and structured defects on releases",
    ),
    Migration(
        "0002_release_product_environment", RELEASES, _release_product_environment,
        "Product and environment on releases",
    ),
    Migration(
        "0003_account_products", ACCOUNTS, _account_products,
        "Supported products on accounts",
    ),
    Migration(
        "0004_release_version_features", RELEASE_VERSIONS, _release_version_features,
        "Feature lists on release versions",
    ),
)


def apply_migration(store, migration):
    """Apply one migration to its collection; returns the number of records changed."""
    records = store.load(migration.collection)
    migrated = [migration.transform(dict(record)) for record in records]
    changed = sum(1 for before, after in zip(records, migrated) if before != after)
    if changed:
        store.save(migration.collection, migrated)
    return changed


def pending_migrations(store, migrations=MIGRATIONS):
    applied = {entry.get("id") for entry in store.load(LEDGER)}
    return [m for m in migrations if m.id not in applied]


def run_migrations(store, migrations=MIGRATIONS):
    """Apply every pending migration in order and append it to the ledger.

    Returns the ids applied in this run.
    """
    pending = pending_migrations(store, migrations)
    if not pending:
        logger.debug("Data migrations: nothing pending")
        return []

    ledger = store.load(LEDGER)
    applied = []
    for migration in pending:
        changed = apply_migration(store, migration)
        ledger.append({
            "id": migration.id,
            "collection": migration.collection,
            "changed": changed,
            "applied_at": utc_now_iso(),
        })
        store.save(LEDGER, ledger)
        applied.append(migration.id)
        logger.info("Data migration %s applied (%d record(s) changed)", migration.id, changed)
    return applied

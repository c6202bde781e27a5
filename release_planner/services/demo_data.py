"""Demo data for local development (``flask seed-demo``).

Seeds only collections that are empty, going through the same repositories
and lifecycle service as the API so the records satisfy every invariant.
"""
import logging
from datetime import date, timedelta

from release_planner.services.release_lifecycle import ReleaseLifecycleService
from release_planner.services.repositories import AccountRepository, ReleaseVersionRepository

logger = logging.getLogger(__name__)

DEMO_ACCOUNTS = [
    {"name": "Northwind Telecom", "region": "EMEA", "products": ["Monitoring", "SRE"]},
    {"name": "Pacific Mobile", "region": "APAC", "products": ["Monitoring"]},
    {"name": "Andes Networks", "region": "CALA", "products": ["SRE"]},
]

DEMO_RELEASE_VERSIONS = [
    {
        "name": "R25.09",
        "description": "September train",
        "features": [
            {"name": "Alert deduplication", "description": "Collapse repeated alerts"},
            {"name": "SLO dashboards", "description": ""},
        ],
    },
    {"name": "R25.10", "description": "October train", "features": []},
]


def seed_demo_data(store, today=None):
    """Populate empty collections; returns the number of records created per collection."""
    today = today or date.today()
    counts = {"accounts": 0, "release_versions": 0, "releases": 0}

    accounts = AccountRepository(store)
    if not accounts.list():
        for payload in DEMO_ACCOUNTS:
            accounts.create(dict(payload))
            counts["accounts"] += 1

    versions = ReleaseVersionRepository(store)
    if not versions.list():
        for payload in DEMO_RELEASE_VERSIONS:
            versions.create({**payload, "features": [
                {"id": index + 1, **feature} for index, feature in enumerate(payload["features"])
            ]})
            counts["release_versions"] += 1

    lifecycle = ReleaseLifecycleService.for_store(store)
    if not lifecycle.releases.list():
        demo_releases = [
            {
                "account_name": "NORTHWIND TELECOM", "release_version": "R25.09",
                "product": "Monitoring", "environment": "PROD",
                "release_date": (today - timedelta(days=10)).isoformat(),
                "executor": "ops.oncall", "status": "Completed",
                "completion_date": (today - timedelta(days=10)).isoformat(),
                "time_taken_hours": 4,
                "defects": [{
                    "id": 1, "defect_id": "NORT-1042",
                    "description": "Alert rule import skipped disabled rules",
                    "severity": "Medium", "status": "Fixed",
                }],
            },
            {
                "account_name": "PACIFIC MOBILE", "release_version": "R25.10",
                "product": "Monitoring", "environment": "UAT",
                "release_date": (today + timedelta(days=7)).isoformat(),
                "executor": "ops.apac",
            },
            {
                "account_name": "ANDES NETWORKS", "release_version": "R25.10",
                "product": "SRE", "environment": "DR",
                "release_date": (today + timedelta(days=14)).isoformat(),
                "executor": "ops.cala", "status": "Blocked",
                "notes": "Waiting for firewall change",
            },
        ]
        for payload in demo_releases:
            lifecycle.create(payload)
            counts["releases"] += 1

    logger.info("Demo data seeded: %s", counts)
    return counts

"""
Release query & aggregation — read-only views over the release collection.

Everything here is a pure function of the lists it is given: no caching,
no I/O, recomputed on every request.

Provides:
  - filter_releases / sort_by_release_date   (GET /releases)
  - compute_stats                            (GET /stats)
  - flatten_defects / filter_defects         (GET /defects)
  - compute_defect_stats                     (GET /stats/defects)
  - compute_enhanced_stats                   (GET /stats/completion)
  - filter_options                           (GET /filter-options)
"""
import math
from collections import Counter
from datetime import date
from numbers import Real

from release_planner.models.release import (
    KNOWN_ENVIRONMENTS,
    KNOWN_PRODUCTS,
    RELEASE_STATUSES,
    STATUS_COMPLETED,
    STATUS_SCHEDULED,
    ReleaseFilter,
)
from release_planner.utils.helpers import parse_date

_DIRECT_CRITERIA = ("product", "environment", "status", "release_version")


def _histogram(values):
    """``{value: count}`` in first-seen order, skipping empty values."""
    return dict(Counter(v for v in values if v not in (None, "")))


def _region_by_account(accounts):
    return {(a.get("name") or "").lower(): a.get("region") or "" for a in accounts}


# ═════════════════════════════════════════════════════════════════════════════
# Filtering
# ═════════════════════════════════════════════════════════════════════════════


def filter_releases(releases, criteria=None, accounts=()):
    """Return the releases matching every non-empty criterion, input order kept.

    ``criteria`` is a ReleaseFilter or a plain dict with the same keys.
    ``account_region`` joins ``release.account_name`` to the Account list.
    """
    if criteria is None:
        criteria = ReleaseFilter()
    elif isinstance(criteria, dict):
        criteria = ReleaseFilter(**criteria)
    active = criteria.active()
    if not active:
        return list(releases)

    region = active.pop("account_region", None)
    regions = _region_by_account(accounts) if region else {}

    result = []
    for release in releases:
        if any(release.get(key) != value for key, value in active.items()):
            continue
        if region and regions.get((release.get("account_name") or "").lower()) != region:
            continue
        result.append(release)
    return result


def sort_by_release_date(releases, descending=True):
    """Sort by release_date; unparseable dates go last either way."""
    dated = []
    undated = []
    for release in releases:
        (dated if parse_date(release.get("release_date")) else undated).append(release)
    dated.sort(key=lambda r: parse_date(r.get("release_date")), reverse=descending)
    return dated + undated


# ═════════════════════════════════════════════════════════════════════════════
# Statistics
# ═════════════════════════════════════════════════════════════════════════════


def compute_stats(releases, accounts, release_versions, today=None):
    """Dashboard counters over all three collections."""
    today = today or date.today()
    upcoming = 0
    for release in releases:
        release_date = parse_date(release.get("release_date"))
        if release.get("status") == STATUS_SCHEDULED and release_date and release_date >= today:
            upcoming += 1

    return {
        "totalAccounts": len(accounts),
        "totalReleases": len(releases),
        "totalReleaseVersions": len(release_versions),
        "totalFeatures": sum(len(rv.get("features") or []) for rv in release_versions),
        "statusCounts": _histogram(r.get("status") for r in releases),
        "releaseVersionCounts": _histogram(r.get("release_version") for r in releases),
        "regionCounts": _histogram(a.get("region") for a in accounts),
        "upcomingCount": upcoming,
    }


def _completed(releases):
    return [r for r in releases if r.get("status") == STATUS_COMPLETED]


def flatten_defects(releases):
    """Defects of completed releases, each tagged with its parent release."""
    flat = []
    for release in _completed(releases):
        for defect in release.get("defects") or []:
            flat.append({
                **defect,
                "release_id": release.get("id"),
                "account_name": release.get("account_name"),
                "release_version": release.get("release_version"),
            })
    return flat


def filter_defects(defects, account_name="", release_version="", severity="", status=""):
    criteria = {
        "account_name": account_name,
        "release_version": release_version,
        "severity": severity,
        "status": status,
    }
    active = {k: v for k, v in criteria.items() if v}
    return [d for d in defects if all(d.get(k) == v for k, v in active.items())]


def compute_defect_stats(releases):
    """Defect totals and breakdowns over completed releases.

    ``defectRate`` is defects per completed release, 0.0 when nothing has
    been completed yet.
    """
    completed = _completed(releases)
    defects = flatten_defects(releases)
    rate = round(len(defects) / len(completed), 2) if completed else 0.0

    return {
        "totalDefects": len(defects),
        "totalReleases": len(completed),
        "defectRate": rate,
        "severityBreakdown": _histogram(d.get("severity") for d in defects),
        "statusBreakdown": _histogram(d.get("status") for d in defects),
        "accountBreakdown": _histogram(d.get("account_name") for d in defects),
    }


def _hours(value):
    """Finite numeric time_taken_hours or None; legacy strings like "not set" are skipped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, Real):
        return None
    try:
        hours = float(value)
    except (ValueError, OverflowError):
        return None
    return hours if math.isfinite(hours) else None


def compute_enhanced_stats(releases):
    """Completion roll-up: average time taken and defect-free counts."""
    completed = _completed(releases)
    hours = [h for h in (_hours(r.get("time_taken_hours")) for r in completed) if h is not None]
    with_defects = sum(1 for r in completed if r.get("defects"))

    return {
        "completedReleases": len(completed),
        "releasesWithTime": len(hours),
        "totalTimeHours": round(sum(hours), 2),
        "avgTime": round(sum(hours) / len(hours), 2) if hours else 0.0,
        "releasesWithDefects": with_defects,
        "defectFreeReleases": len(completed) - with_defects,
    }


def filter_options(accounts, release_versions):
    """Values for the release table filter dropdowns."""
    regions = []
    for account in accounts:
        region = account.get("region")
        if region and region not in regions:
            regions.append(region)
    return {
        "products": list(KNOWN_PRODUCTS),
        "environments": list(KNOWN_ENVIRONMENTS),
        "statuses": list(RELEASE_STATUSES),
        "releaseVersions": sorted(rv.get("name") for rv in release_versions if rv.get("name")),
        "accountRegions": regions,
    }

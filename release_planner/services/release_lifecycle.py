"""
Release Lifecycle Service

Owns write-time semantics of a single Release record:
  - Status handling (Scheduled / In Progress / Completed / Blocked)
  - Completion validation (completion_date + time_taken_hours required)
  - Defect validation on completion (defect_id + description required)
  - Derived fields (defects_raised, defect_details) recomputed on every write
  - Referential integrity against Account / ReleaseVersion names

There is no transition graph: any status may be set from any other status,
including Blocked → Completed.  Only the Completed state carries extra rules.

Usage:
    from release_planner.services.release_lifecycle import ReleaseLifecycleService

    lifecycle = ReleaseLifecycleService.for_store(store)
    release = lifecycle.create({"account_name": "ACME", "release_date": "2025-09-14"})
    lifecycle.set_status(release["id"], "Completed",
                         {"completion_date": "2025-09-14", "time_taken_hours": 4})
"""

import logging

from release_planner.core.exceptions import ValidationError
from release_planner.models.release import (
    RELEASE_STATUSES,
    STATUS_COMPLETED,
    ReleaseInput,
    apply_derived_fields,
)
from release_planner.services.repositories import (
    AccountRepository,
    ReleaseRepository,
    ReleaseVersionRepository,
)

logger = logging.getLogger(__name__)

# Fields a quick status change may carry alongside the status
COMPLETION_FIELDS = ("completion_date", "time_taken_hours", "completion_notes")


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def validate_completion(record: dict) -> None:
    """Reject a Completed release that lacks completion data or has incomplete defects."""
    if record.get("status") != STATUS_COMPLETED:
        return

    details = {}
    if _is_blank(record.get("completion_date")):
        details["completion_date"] = "is required for completed releases"
    if _is_blank(record.get("time_taken_hours")):
        details["time_taken_hours"] = "is required for completed releases"

    incomplete = {}
    for index, defect in enumerate(record.get("defects") or []):
        missing = [key for key in ("defect_id", "description") if _is_blank(defect.get(key))]
        if missing:
            incomplete[str(index)] = {key: "is required for completed releases" for key in missing}
    if incomplete:
        details["defects"] = incomplete

    if details:
        raise ValidationError(
            "Completed releases need completion_date, time_taken_hours "
            "and a defect_id and description for every defect",
            details=details,
        )


class ReleaseLifecycleService:
    """Create / update / status-change entry point for releases."""

    def __init__(self, releases, accounts, release_versions):
        self.releases = releases
        self.accounts = accounts
        self.release_versions = release_versions

    @classmethod
    def for_store(cls, store):
        return cls(
            ReleaseRepository(store),
            AccountRepository(store),
            ReleaseVersionRepository(store),
        )

    # ── Reference checks ─────────────────────────────────────────────────

    def _check_references(self, record: dict) -> None:
        details = {}
        if self.accounts.get_by_name(record.get("account_name")) is None:
            details["account_name"] = f"no account named {record.get('account_name')!r}"
        version = record.get("release_version")
        if version and self.release_versions.get_by_name(version) is None:
            details["release_version"] = f"no release version named {version!r}"
        if details:
            raise ValidationError("Release references unknown records", details=details)

    def _prepare(self, record: dict) -> dict:
        self._check_references(record)
        apply_derived_fields(record)
        validate_completion(record)
        return record

    # ── Operations ───────────────────────────────────────────────────────

    def create(self, payload) -> dict:
        """Validate a new release (status defaults to Scheduled) and persist it."""
        dto = ReleaseInput.from_payload(payload)
        record = self._prepare(dto.changes())
        created = self.releases.create(record)
        logger.info(
            "Release scheduled: id=%s account=%s version=%s status=%s",
            created["id"], created["account_name"], created["release_version"], created["status"],
            extra={
                "release_id": created["id"],
                "account_name": created["account_name"],
                "release_status": created["status"],
            },
        )
        return created

    def update(self, release_id, payload) -> dict:
        """Merge the supplied fields over the stored release and re-validate the result."""
        dto = ReleaseInput.from_payload(payload, partial=True)
        existing = self.releases.get(release_id)
        merged = self._prepare({**existing, **dto.changes()})
        updated = self.releases.replace(release_id, merged)
        if existing.get("status") != updated.get("status"):
            logger.info(
                "Release status changed: id=%s %s -> %s",
                release_id, existing.get("status"), updated.get("status"),
                extra={
                    "release_id": release_id,
                    "account_name": updated.get("account_name"),
                    "release_status": updated.get("status"),
                },
            )
        return updated

    def set_status(self, release_id, status, completion=None) -> dict:
        """Quick status change, optionally carrying completion fields.

        ``completion`` is a dict that may hold completion_date,
        time_taken_hours and completion_notes; any other key is rejected.
        """
        completion = dict(completion or {})
        if status not in RELEASE_STATUSES:
            raise ValidationError(
                f"status must be one of: {', '.join(RELEASE_STATUSES)}",
                details={"status": status},
            )
        unknown = sorted(set(completion) - set(COMPLETION_FIELDS))
        if unknown:
            raise ValidationError(
                f"Invalid status change payload: {', '.join(unknown)}",
                details={key: "unknown field" for key in unknown},
            )
        return self.update(release_id, {"status": status, **completion})

    def delete(self, release_id) -> dict:
        return self.releases.delete(release_id)

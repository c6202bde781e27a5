"""
Release — a scheduled or completed deployment for one account.

Stored shape (``releases.json``)::

    {"id": 3, "account_name": "ACME TELECOM", "release_version": "R25.09",
     "product": "Monitoring", "environment": "PROD",
     "release_date": "2025-09-14", "executor": "j.doe",
     "status": "Completed", "notes": "",
     "completion_date": "2025-09-14", "time_taken_hours": 4,
     "defects_raised": "1", "defect_details": "ACME-1234: Login fails",
     "completion_notes": "", "defects": [{...}],
     "created_at": "...", "updated_at": "..."}

``defects_raised`` and ``defect_details`` are projections of ``defects`` and
are recomputed on every write; clients cannot set them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from release_planner.models.base import SERVER_FIELDS, InputDTO, PayloadReader
from release_planner.utils.helpers import timestamp_id

# ── Release status (closed set, no enforced transition graph) ───────────────
STATUS_SCHEDULED = "Scheduled"
STATUS_IN_PROGRESS = "In Progress"
STATUS_COMPLETED = "Completed"
STATUS_BLOCKED = "Blocked"

RELEASE_STATUSES = (STATUS_SCHEDULED, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_BLOCKED)

# ── Defects ─────────────────────────────────────────────────────────────────
DEFECT_SEVERITIES = ("Low", "Medium", "High", "Critical")
DEFECT_STATUSES = ("Open", "In Progress", "Fixed", "Closed", "Rejected")

# Dropdown values offered by the UI; not enforced on write.
KNOWN_PRODUCTS = ("Monitoring", "SRE")
KNOWN_ENVIRONMENTS = ("PROD", "DR", "DEV", "UAT")

DERIVED_FIELDS = frozenset({"defects_raised", "defect_details"})


def defects_raised(defects) -> str:
    return str(len(defects or []))


def defect_details(defects) -> str:
    """Legacy one-line summary: ``"KEY-1: text; KEY-2: text"``."""
    return "; ".join(
        f"{d.get('defect_id', '')}: {d.get('description', '')}" for d in (defects or [])
    )


def apply_derived_fields(record: dict) -> dict:
    """Recompute the defect projections in place and return the record."""
    defects = record.get("defects") or []
    record["defects"] = defects
    record["defects_raised"] = defects_raised(defects)
    record["defect_details"] = defect_details(defects)
    return record


@dataclass
class DefectInput:
    """One entry of ``Release.defects``.

    ``defect_id`` and ``description`` may be blank while a release is not yet
    completed; the lifecycle service rejects blanks on completion.
    """

    id: int | str
    defect_id: str = ""
    description: str = ""
    severity: str = "Medium"
    status: str = "Open"

    @classmethod
    def from_payload(cls, payload, index=0):
        reader = PayloadReader(
            payload, "Defect",
            allowed=("id", "defect_id", "description", "severity", "status"),
            ignored=(),
        )
        reader.string("defect_id")
        reader.string("description")
        reader.choice("severity", DEFECT_SEVERITIES, default="Medium")
        reader.choice("status", DEFECT_STATUSES, default="Open")
        values = reader.raise_if_errors()
        defect_id = payload.get("id") or timestamp_id(index)
        return cls(id=defect_id, **values)

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "defect_id": self.defect_id,
            "description": self.description,
            "severity": self.severity,
            "status": self.status,
        }


@dataclass
class ReleaseInput(InputDTO):
    """Validated body of POST/PUT /releases.

    On create every field gets its default (status Scheduled, no defects);
    on update only the supplied fields are kept for the merge.
    """

    FIELDS = (
        "account_name", "release_version", "product", "environment",
        "release_date", "executor", "status", "notes",
        "completion_date", "time_taken_hours", "completion_notes", "defects",
    )

    account_name: str | None = None
    release_version: str | None = None
    product: str | None = None
    environment: str | None = None
    release_date: str | None = None
    executor: str | None = None
    status: str | None = None
    notes: str | None = None
    completion_date: str | None = None
    time_taken_hours: float | None = None
    completion_notes: str | None = None
    defects: list[DefectInput] | None = None
    supplied: frozenset = field(default_factory=frozenset, repr=False)

    @classmethod
    def from_payload(cls, payload, partial=False):
        reader = PayloadReader(
            payload, "Release",
            allowed=cls.FIELDS,
            ignored=SERVER_FIELDS | DERIVED_FIELDS,
            partial=partial,
        )
        reader.string("account_name", required=True)
        reader.string("release_version")
        reader.string("product")
        reader.string("environment")
        reader.date("release_date", required=True)
        reader.string("executor")
        reader.choice("status", RELEASE_STATUSES, default=STATUS_SCHEDULED)
        reader.string("notes")
        reader.date("completion_date")
        reader.number("time_taken_hours")
        reader.string("completion_notes")
        reader.items("defects", DefectInput)
        values = reader.raise_if_errors()
        return cls(**values, supplied=frozenset(values))


@dataclass
class ReleaseFilter:
    """Optional equality criteria for listing releases.

    Empty values impose no constraint.  ``release_version`` is an exact match;
    ``account_region`` is resolved through the Account collection.
    """

    FIELDS = ("product", "environment", "status", "release_version", "account_region")

    product: str = ""
    environment: str = ""
    status: str = ""
    release_version: str = ""
    account_region: str = ""

    @classmethod
    def from_args(cls, args):
        return cls(**{name: (args.get(name) or "").strip() for name in cls.FIELDS})

    def active(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS if getattr(self, name)}

    def is_empty(self) -> bool:
        return not self.active()

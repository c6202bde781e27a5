"""
ReleaseVersion — a named release train (e.g. ``R25.09``) grouping features.

Historically exposed as "regions" by the API; ``/api/regions`` is kept as an
alias of ``/api/releaseVersions``.

Stored shape (``release_versions.json``)::

    {"id": 1, "name": "R25.09", "description": "...",
     "features": [{"id": 1726000000000, "name": "...", "description": "..."}],
     "created_at": "...", "updated_at": "..."}
"""

from __future__ import annotations

from dataclasses import dataclass, field

from release_planner.models.account import normalize_name
from release_planner.models.base import InputDTO, PayloadReader
from release_planner.utils.helpers import timestamp_id


@dataclass
class FeatureInput:
    """One entry of ``ReleaseVersion.features``."""

    id: int | str
    name: str
    description: str = ""

    @classmethod
    def from_payload(cls, payload, index=0):
        reader = PayloadReader(payload, "Feature", allowed=("id", "name", "description"), ignored=())
        reader.string("name", required=True)
        reader.string("description")
        values = reader.raise_if_errors()
        feature_id = payload.get("id") or timestamp_id(index)
        return cls(id=feature_id, **values)

    def to_record(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


@dataclass
class ReleaseVersionInput(InputDTO):
    """Validated body of POST/PUT /releaseVersions."""

    FIELDS = ("name", "description", "features")

    name: str | None = None
    description: str | None = None
    features: list[FeatureInput] | None = None
    supplied: frozenset = field(default_factory=frozenset, repr=False)

    @classmethod
    def from_payload(cls, payload, partial=False):
        reader = PayloadReader(payload, "ReleaseVersion", allowed=cls.FIELDS, partial=partial)
        reader.string("name", required=True)
        reader.string("description")
        reader.items("features", FeatureInput)
        values = reader.raise_if_errors()
        if "name" in values:
            values["name"] = normalize_name(values["name"])
        return cls(**values, supplied=frozenset(values))


def count_features(release_versions) -> int:
    return sum(len(rv.get("features") or []) for rv in release_versions)

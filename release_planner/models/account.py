"""
Account — a customer/tenant a release is performed for.

Stored shape (``accounts.json``)::

    {"id": 1, "name": "ACME TELECOM", "region": "EMEA",
     "products": ["Monitoring", "SRE"],
     "created_at": "...", "updated_at": "..."}

Names are stored uppercase and are unique case-insensitively.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from release_planner.models.base import InputDTO, PayloadReader

# Regions seen in production data; region stays a free string.
KNOWN_REGIONS = ("APAC", "EMEA", "CALA", "Cluster M", "Cluster R")


def normalize_name(name: str) -> str:
    """Stored form of an Account / ReleaseVersion name."""
    return name.strip().upper()


@dataclass
class AccountInput(InputDTO):
    """Validated body of POST/PUT /accounts."""

    FIELDS = ("name", "region", "products")

    name: str | None = None
    region: str | None = None
    products: list[str] | None = None
    supplied: frozenset = field(default_factory=frozenset, repr=False)

    @classmethod
    def from_payload(cls, payload, partial=False):
        reader = PayloadReader(payload, "Account", allowed=cls.FIELDS, partial=partial)
        reader.string("name", required=True)
        reader.string("region")
        reader.string_list("products")
        values = reader.raise_if_errors()
        if "name" in values:
            values["name"] = normalize_name(values["name"])
        return cls(**values, supplied=frozenset(values))

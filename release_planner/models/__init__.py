"""
Release Planner record shapes, closed value sets and input DTOs.

Records are persisted as plain dicts by the Record Store; the classes here
only validate what comes in over the API.
"""

from release_planner.models.account import AccountInput, KNOWN_REGIONS, normalize_name  # noqa: F401
from release_planner.models.release import (  # noqa: F401
    DEFECT_SEVERITIES,
    DEFECT_STATUSES,
    KNOWN_ENVIRONMENTS,
    KNOWN_PRODUCTS,
    RELEASE_STATUSES,
    STATUS_BLOCKED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_SCHEDULED,
    DefectInput,
    ReleaseFilter,
    ReleaseInput,
    apply_derived_fields,
    defect_details,
    defects_raised,
)
from release_planner.models.release_version import FeatureInput, ReleaseVersionInput  # noqa: F401

"""
Release Planner exception hierarchy.

Services raise these types; the application factory registers one error
handler per type so every blueprint gets the same HTTP status mapping.

Usage:
    from release_planner.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Release", resource_id=42)
    raise ValidationError("completion_date is required", details={"completion_date": "required"})
"""

from release_planner.utils.errors import E


class ReleasePlannerError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code = 400
    code = E.INTERNAL

    def to_details(self) -> dict | None:
        return None


class ValidationError(ReleasePlannerError):
    """Raised when input is malformed or violates a business rule.

    Covers missing required fields, values outside a closed enum, unknown
    payload keys and incomplete completion data.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names,
                 values are error descriptions.
    """

    status_code = 400
    code = E.VALIDATION_INVALID

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def to_details(self) -> dict | None:
        return self.details or None


class DuplicateNameError(ReleasePlannerError):
    """Raised when an Account or ReleaseVersion name is already taken.

    Names are compared case-insensitively.
    """

    status_code = 400
    code = E.CONFLICT_DUPLICATE

    def __init__(self, resource: str, name: str) -> None:
        self.resource = resource
        self.name = name
        super().__init__(f"{resource} {name!r} already exists")


class NotFoundError(ReleasePlannerError):
    """Raised when a requested record does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Account", "Release").
        resource_id: The id that was looked up.
    """

    status_code = 404
    code = E.NOT_FOUND

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class InUseError(ReleasePlannerError):
    """Raised when deleting or renaming an Account or ReleaseVersion still referenced by releases."""

    status_code = 400
    code = E.CONFLICT_IN_USE

    def __init__(self, resource: str, name: str, reference_count: int, action: str = "delete") -> None:
        self.resource = resource
        self.action = action
        self.name = name
        self.reference_count = reference_count
        super().__init__(
            f"Cannot {action} {resource.lower()} {name!r}: "
            f"referenced by {reference_count} release(s)"
        )

    def to_details(self) -> dict | None:
        return {"reference_count": self.reference_count}


class StorageError(ReleasePlannerError):
    """Raised when a collection cannot be written to disk."""

    status_code = 500
    code = E.STORAGE


class DeliveryError(ReleasePlannerError):
    """Raised when an email cannot be handed to the SMTP server.

    Args:
        message: Explanation for the caller.
        status_code: HTTP status to surface (502/503/504 for server side
                     failures, 400 when the server rejected recipients).
        smtp_code: SMTP reply code, when the server sent one.
    """

    code = E.DELIVERY

    def __init__(self, message: str, status_code: int = 502, smtp_code: int | None = None) -> None:
        self.status_code = status_code
        self.smtp_code = smtp_code
        super().__init__(message)

    def to_details(self) -> dict | None:
        if self.smtp_code is None:
            return None
        return {"smtp_code": self.smtp_code}

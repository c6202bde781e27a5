"""
Payload validation shared by the input DTOs.

``PayloadReader`` walks one JSON object, converts each known field into its
stored form and collects per-field errors.  DTOs call ``raise_if_errors()``
once at the end so the caller sees every problem in a single 400 response.

Server-owned keys (``id``, ``created_at``, ``updated_at``) are accepted and
dropped, which lets a client PUT back a record it previously fetched.  Any
other key the DTO does not declare is rejected.
"""

from __future__ import annotations

import math
from numbers import Real

from release_planner.core.exceptions import ValidationError
from release_planner.utils.helpers import parse_date_input

SERVER_FIELDS = frozenset({"id", "created_at", "updated_at"})


class PayloadReader:
    """Field-by-field reader over one request payload.

    Args:
        payload: Decoded JSON body.
        entity: Name used in error messages ("Account", "Release", ...).
        allowed: Keys the DTO understands.
        ignored: Keys silently dropped.
        partial: When True (updates), absent keys are skipped instead of
                 defaulted and required checks only apply to supplied keys.
    """

    def __init__(self, payload, entity, allowed, ignored=SERVER_FIELDS, partial=False):
        if not isinstance(payload, dict):
            raise ValidationError(f"{entity} payload must be a JSON object")
        self.payload = payload
        self.entity = entity
        self.partial = partial
        self.values: dict = {}
        self.errors: dict = {}

        for key in sorted(set(payload) - set(allowed) - set(ignored)):
            self.errors[key] = "unknown field"

    def wants(self, key):
        return key in self.payload or not self.partial

    # ── Scalar fields ────────────────────────────────────────────────────

    def string(self, key, *, required=False, default=""):
        if not self.wants(key):
            return
        value = self.payload.get(key)
        if value is None:
            value = default
        if not isinstance(value, str):
            self.errors[key] = "must be a string"
            return
        value = value.strip()
        if required and not value:
            self.errors[key] = "is required"
            return
        self.values[key] = value

    def choice(self, key, choices, *, default):
        if not self.wants(key):
            return
        value = self.payload.get(key)
        if value in (None, ""):
            value = default
        if value not in choices:
            self.errors[key] = f"must be one of: {', '.join(choices)}"
            return
        self.values[key] = value

    def number(self, key):
        """Finite, non-negative number; ``None`` or ``""`` means not set."""
        if not self.wants(key):
            return
        value = self.payload.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            self.values[key] = None
            return
        if isinstance(value, bool):
            self.errors[key] = "must be a number"
            return
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                self.errors[key] = "must be a number"
                return
        if not isinstance(value, Real):
            self.errors[key] = "must be a number"
            return
        if isinstance(value, float) and not math.isfinite(value):
            self.errors[key] = "must be a finite number"
            return
        if value < 0:
            self.errors[key] = "must not be negative"
            return
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        self.values[key] = value

    def date(self, key, *, required=False):
        """Date stored as ``YYYY-MM-DD``; empty input means not set."""
        if not self.wants(key):
            return
        raw = self.payload.get(key)
        if raw is not None and not isinstance(raw, str):
            self.errors[key] = "must be a date string"
            return
        try:
            parsed = parse_date_input(raw.strip() if raw else raw)
        except ValueError as exc:
            self.errors[key] = str(exc)
            return
        if parsed is None and required:
            self.errors[key] = "is required"
            return
        self.values[key] = parsed.isoformat() if parsed else None

    # ── Collections ──────────────────────────────────────────────────────

    def string_list(self, key):
        """List of distinct non-blank strings, order preserved."""
        if not self.wants(key):
            return
        value = self.payload.get(key)
        if value is None:
            value = []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            self.errors[key] = "must be a list of strings"
            return
        seen = []
        for item in value:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        self.values[key] = seen

    def items(self, key, item_cls):
        """List of embedded objects, each parsed with ``item_cls.from_payload``."""
        if not self.wants(key):
            return
        value = self.payload.get(key)
        if value is None:
            value = []
        if not isinstance(value, list):
            self.errors[key] = "must be a list"
            return
        parsed = []
        item_errors = {}
        for index, item in enumerate(value):
            try:
                parsed.append(item_cls.from_payload(item, index=index))
            except ValidationError as exc:
                item_errors[str(index)] = exc.details or str(exc)
        if item_errors:
            self.errors[key] = item_errors
            return
        self.values[key] = parsed

    def raise_if_errors(self):
        if self.errors:
            fields = ", ".join(sorted(self.errors))
            raise ValidationError(f"Invalid {self.entity} payload: {fields}", details=self.errors)
        return self.values


class InputDTO:
    """Mixin for dataclass DTOs that track which fields the caller supplied."""

    FIELDS: tuple = ()

    def changes(self) -> dict:
        """Supplied fields in their stored (JSON-ready) form."""
        out = {}
        for name in self.FIELDS:
            if name not in self.supplied:
                continue
            value = getattr(self, name)
            if isinstance(value, list):
                value = [v.to_record() if hasattr(v, "to_record") else v for v in value]
            out[name] = value
        return out

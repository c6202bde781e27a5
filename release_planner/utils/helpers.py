"""Shared date/time and id helpers used by the services and blueprints.

parse_date:        returns None on bad input (sorting, comparisons)
parse_date_input:  raises ValueError on bad input (payload validation)
utc_now_iso:       timestamp format stamped on created_at / updated_at
next_id:           max-existing + 1 id assignment
"""
import time
from datetime import date, datetime, timezone


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY (European format)
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises ValueError instead of returning None.
    Empty input still returns None; callers decide whether it is required.
    """
    if value in (None, ""):
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.")
    return parsed


def utc_now_iso():
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamp_id(offset=0):
    """Millisecond timestamp id for embedded items submitted without one."""
    return int(time.time() * 1000) + offset


def next_id(records):
    """Return max(existing integer ids, 0) + 1."""
    ids = [r.get("id") for r in records if isinstance(r.get("id"), int) and not isinstance(r.get("id"), bool)]
    return max(ids, default=0) + 1

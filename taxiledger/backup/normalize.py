"""
Date normalization applied to every value before it is serialized.

Dates become ISO-8601 strings; lists and dicts are walked recursively;
everything else is returned unchanged.  ``normalize`` is total: it never
raises and never mutates its input.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any


def to_iso(value: date) -> str:
    """Render a date/datetime as ISO-8601.

    Datetimes are expressed in UTC with millisecond precision and a ``Z``
    suffix (``2024-12-31T09:30:00.000Z``).  Naive datetimes are taken to be
    UTC already.  Plain dates render as ``YYYY-MM-DD``.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
    return value.isoformat()


def normalize(value: Any) -> Any:
    """Return a JSON-safe copy of ``value`` with every date turned into text."""
    if isinstance(value, date):
        return to_iso(value)
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if isinstance(value, dict):
        return {k: normalize(v) for k, v in value.items()}
    return value

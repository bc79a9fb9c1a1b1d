"""
Tolerant coercion of untyped spreadsheet text back into numbers, dates and
booleans.

All parsers here are total: they never raise.  ``parse_number`` and
``parse_bool`` fall back to a neutral value; ``parse_date`` returns ``None``
and leaves the choice of fallback (usually "now") to the caller.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

# Longest numeric prefix, the way a lenient float reader consumes text.
_NUMBER_PREFIX = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_NON_NUMERIC = re.compile(r"[^\d.\-]")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")

_TRUE_WORDS = {"true", "1", "yes", "y", "si", "sí", "x"}

Number = Union[int, float]


def parse_number(value: Any) -> Number:
    """Read a number from a cell, accepting European formatting.

    ``"1.234,56"`` → ``1234.56``: dots are thousands separators, the first
    comma is the decimal separator, anything else non-numeric is dropped.
    Blanks, unparseable text and non-numeric values (booleans included)
    yield ``0``.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str) or value == "":
        return 0

    clean = value.replace(".", "").replace(",", ".", 1)
    clean = _NON_NUMERIC.sub("", clean)
    match = _NUMBER_PREFIX.match(clean)
    if not match:
        return 0
    try:
        return float(match.group(0))
    except ValueError:
        return 0


def parse_optional_number(value: Any) -> Optional[Number]:
    """Like ``parse_number`` but keeps blanks as ``None``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_number(value)


def _parse_iso(text: str) -> Optional[datetime]:
    candidate = text
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[datetime]:
    """Read a datetime from a cell, or return ``None``.

    Accepted inputs, in order: ``datetime`` / ``date`` objects, epoch
    milliseconds, ISO-8601 text, then a ``DD/MM/YYYY`` prefix (the time
    part after the date, if any, is ignored).
    """
    if not value or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    parsed = _parse_iso(text)
    if parsed is not None:
        return parsed

    match = _DAY_MONTH_YEAR.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            return None
    return None


def parse_date_or_now(value: Any) -> datetime:
    """``parse_date`` with the documented fallback: the current UTC time."""
    return parse_date(value) or datetime.now(timezone.utc)


def parse_bool(value: Any) -> bool:
    """Read a boolean from a cell (``TRUE``/``FALSE`` text, 1/0, yes/no)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return False

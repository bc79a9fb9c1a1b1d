"""
Decoding of spreadsheet grids back into a typed ``BackupPayload``.

``from_rows`` / ``rows_to_object`` only undo the grid shape; every value
they return is still whatever the spreadsheet handed back.  The per
collection ``type_*`` functions then re-apply numbers, dates, booleans and
defaults so the payload is fully typed before it reaches restore.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from taxiledger.backup.cells import Grid, decode_value
from taxiledger.backup.parsing import (
    parse_bool,
    parse_date,
    parse_date_or_now,
    parse_number,
    parse_optional_number,
)
from taxiledger.core.constants import (
    BREAK_CONFIGURATION,
    BREAK_CONFIGURATION_DEFAULTS,
    COLLECTION_TABS,
    CONCEPTS,
    EXCEPTIONS,
    EXPENSES,
    FONT_SIZE_KEY,
    LEGACY_FONT_SIZE_KEY,
    SETTINGS,
    SETTINGS_DEFAULTS,
    SHIFTS,
    SUPPLIERS,
    TRIPS,
    WORKSHOPS,
)
from taxiledger.domain.models import BackupMeta, BackupPayload

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


# ---------------------------------------------------------------------------
# Grid shape
# ---------------------------------------------------------------------------

def _is_blank_row(row: Sequence[Any]) -> bool:
    return all(cell is None or cell == "" for cell in row)


def from_rows(grid: Optional[Sequence[Sequence[Any]]]) -> List[Record]:
    """Turn an entity grid into one dict per data row, keyed by the header.

    Cells past the end of a short row are ``None``.  Fully blank rows are
    skipped.  Values are not typed yet.
    """
    if not grid or len(grid) < 2:
        return []
    header = [None if h is None or h == "" else str(h) for h in grid[0]]
    records: List[Record] = []
    for row in grid[1:]:
        row = list(row or [])
        if _is_blank_row(row):
            continue
        record: Record = {}
        for index, key in enumerate(header):
            if key is None:
                continue
            record[key] = decode_value(row[index]) if index < len(row) else None
        records.append(record)
    return records


def rows_to_object(grid: Optional[Sequence[Sequence[Any]]]) -> Optional[Record]:
    """Rebuild a nested object from ``[Key, Value]`` rows.

    Keys are split on ``.`` to restore nesting; ``None`` leaves are kept.
    A grid without data rows decodes to ``None``.
    """
    if not grid or len(grid) < 2:
        return None
    result: Record = {}
    for row in grid[1:]:
        if not row or row[0] is None or row[0] == "":
            continue
        path = str(row[0]).split(".")
        value = decode_value(row[1]) if len(row) > 1 else None
        node = result
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
    return result or None


# ---------------------------------------------------------------------------
# Typing pass
# ---------------------------------------------------------------------------

def _numbers(record: Record, fields: Sequence[str]) -> None:
    for name in fields:
        record[name] = parse_number(record.get(name))


def _optional_numbers(record: Record, fields: Sequence[str]) -> None:
    for name in fields:
        if name in record:
            record[name] = parse_optional_number(record[name])


def _dates_or_now(record: Record, fields: Sequence[str]) -> None:
    for name in fields:
        record[name] = parse_date_or_now(record.get(name))


def _bools(record: Record, fields: Sequence[str]) -> None:
    for name in fields:
        record[name] = parse_bool(record.get(name))


def _text_id(value: Any) -> Any:
    # Spreadsheets may hand numeric-looking ids back as numbers.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def type_trip(record: Mapping[str, Any]) -> Record:
    trip = dict(record)
    _numbers(trip, ("taximeterFare", "chargedAmount"))
    _dates_or_now(trip, ("dateTime",))
    _bools(trip, ("dispatch", "airport", "station"))
    return trip


def type_expense(record: Mapping[str, Any]) -> Record:
    expense = dict(record)
    _numbers(expense, ("amount",))
    _optional_numbers(expense, (
        "taxableBase", "vatAmount", "vatPercentage", "kilometers",
        "vehicleKilometers", "partialKilometers", "liters", "pricePerLiter",
        "discount",
    ))
    _dates_or_now(expense, ("date",))
    return expense


def type_shift(record: Mapping[str, Any]) -> Record:
    shift = dict(record)
    _numbers(shift, ("startKilometers",))
    shift["endKilometers"] = parse_optional_number(shift.get("endKilometers"))
    shift["number"] = parse_optional_number(shift.get("number"))
    _dates_or_now(shift, ("startDate",))
    shift["endDate"] = parse_date(shift.get("endDate"))
    return shift


def type_catalog_entry(record: Mapping[str, Any]) -> Record:
    """Suppliers, concepts and workshops share the same typing."""
    entry = dict(record)
    _dates_or_now(entry, ("createdAt",))
    return entry


def type_exception(record: Mapping[str, Any]) -> Record:
    exception = dict(record)
    legacy_date = exception.pop("date", None)
    if legacy_date not in (None, ""):
        for name in ("startDate", "endDate"):
            if exception.get(name) in (None, ""):
                exception[name] = legacy_date
    _dates_or_now(exception, ("startDate", "endDate", "createdAt"))
    _bools(exception, ("appliesEven", "appliesOdd"))
    return exception


def upgrade_legacy_settings(settings: Mapping[str, Any]) -> Record:
    """Move the legacy font-size key onto ``fontSize``."""
    upgraded = dict(settings)
    legacy = upgraded.pop(LEGACY_FONT_SIZE_KEY, None)
    if upgraded.get(FONT_SIZE_KEY) is None and legacy is not None:
        upgraded[FONT_SIZE_KEY] = legacy
    return upgraded


def _with_defaults(obj: Mapping[str, Any], defaults: Mapping[str, Any]) -> Record:
    result = dict(obj)
    for key, default in defaults.items():
        if result.get(key) is None:
            result[key] = default
    return result


def type_settings(obj: Optional[Mapping[str, Any]]) -> Optional[Record]:
    if obj is None:
        return None
    settings = _with_defaults(upgrade_legacy_settings(obj), SETTINGS_DEFAULTS)
    _numbers(settings, (FONT_SIZE_KEY, "dailyGoal"))
    _bools(settings, ("darkTheme", "highContrast"))
    return settings


def type_break_configuration(obj: Optional[Mapping[str, Any]]) -> Optional[Record]:
    if obj is None:
        return None
    return _with_defaults(obj, BREAK_CONFIGURATION_DEFAULTS)


_LIST_TYPERS: Dict[str, Callable[[Mapping[str, Any]], Record]] = {
    TRIPS: type_trip,
    EXPENSES: type_expense,
    SHIFTS: type_shift,
    SUPPLIERS: type_catalog_entry,
    CONCEPTS: type_catalog_entry,
    WORKSHOPS: type_catalog_entry,
    EXCEPTIONS: type_exception,
}


# ---------------------------------------------------------------------------
# Whole payload
# ---------------------------------------------------------------------------

def decode_collection(key: str, grid: Optional[Grid]) -> List[Record]:
    """Decode and type one entity tab; rows without an id are dropped."""
    typer = _LIST_TYPERS[key]
    records: List[Record] = []
    skipped = 0
    for raw in from_rows(grid):
        raw["id"] = _text_id(raw.get("id"))
        if raw["id"] in (None, ""):
            skipped += 1
            continue
        records.append(typer(raw))
    if skipped:
        logger.warning("Skipped %d %s row(s) without an id", skipped, key)
    return records


def grids_to_payload(grids: Mapping[str, Grid]) -> BackupPayload:
    """Build a restorable payload from tab grids keyed by tab name.

    Missing tabs decode as empty collections.  The payload gets a fresh
    ``meta`` since a spreadsheet carries none of its own.
    """
    lists = {
        key: decode_collection(key, grids.get(COLLECTION_TABS[key]))
        for key in _LIST_TYPERS
    }
    return BackupPayload(
        meta=BackupMeta.now(),
        settings=type_settings(rows_to_object(grids.get(COLLECTION_TABS[SETTINGS]))),
        break_configuration=type_break_configuration(
            rows_to_object(grids.get(COLLECTION_TABS[BREAK_CONFIGURATION]))
        ),
        **lists,
    )

"""
Encoding of a ``BackupPayload`` into spreadsheet grids.

Two shapes are produced:

* entity tabs - header row of column names, one row per record;
* Key/Value tabs - one row per leaf of a (flattened) singleton object.

Vehicle expenses are additionally exploded into the derived Services tab,
one row per service line, while the parent expense is still written in full
to the Expenses tab.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from taxiledger.backup.cells import Cell, Grid, RawCell, encode_row
from taxiledger.core.constants import (
    BREAK_CONFIGURATION,
    COLLECTION_TABS,
    ENTITY_COLUMNS,
    EXPENSES,
    KEY_VALUE_HEADER,
    SERVICE_COLUMNS,
    SETTINGS,
    TAB_SERVICES,
    VEHICLE_EXPENSE_TYPE,
)
from taxiledger.domain.models import BackupPayload

# ---------------------------------------------------------------------------
# Entity tabs
# ---------------------------------------------------------------------------

def to_rows(entities: Optional[Iterable[Mapping[str, Any]]], columns: Sequence[str]) -> Grid:
    """Encode ``entities`` under a fixed, ordered column schema.

    Columns missing from a record become blank cells; fields that are not
    in ``columns`` are not exported.
    """
    rows: Grid = [list(columns)]
    for entity in entities or []:
        rows.append(encode_row([entity.get(c) for c in columns]))
    return rows


# ---------------------------------------------------------------------------
# Key/Value tabs
# ---------------------------------------------------------------------------

def object_to_rows(obj: Optional[Mapping[str, Any]]) -> Grid:
    """Flatten a singleton into ``[Key, Value]`` rows.

    Nested objects become dot-joined key paths (``fiscalData.name``).
    Lists and dates are leaves: lists are stored as JSON text because index
    keys could not be told apart from object keys on the way back.  An
    empty nested object is stored as ``"{}"`` so it is not lost.  ``None``
    yields the header row alone.
    """
    rows: Grid = [list(KEY_VALUE_HEADER)]
    if obj is None:
        return rows
    if not isinstance(obj, Mapping):
        raise TypeError(f"Expected a mapping, got {type(obj).__name__}")

    def _flatten(node: Mapping[str, Any], parent: str) -> None:
        for key, value in node.items():
            full_key = f"{parent}.{key}" if parent else str(key)
            if isinstance(value, Mapping) and value:
                _flatten(value, full_key)
            else:
                rows.append([full_key, Cell.encode(value).raw])

    _flatten(obj, "")
    return rows


# ---------------------------------------------------------------------------
# Services tab (derived from vehicle expenses)
# ---------------------------------------------------------------------------

def _service_date(expense: Mapping[str, Any]) -> RawCell:
    return Cell.encode(expense.get("date")).raw


def service_rows(expenses: Optional[Iterable[Mapping[str, Any]]]) -> Grid:
    """One row per service line of every vehicle expense.

    An expense without service lines gets a single summary row carrying
    its total amount, discount and notes.
    """
    rows: Grid = [list(SERVICE_COLUMNS)]
    for expense in expenses or []:
        if expense.get("type") != VEHICLE_EXPENSE_TYPE:
            continue
        expense_id = expense.get("id")
        when = _service_date(expense)
        service = expense.get("concept") or ""
        lines = expense.get("services")

        if isinstance(lines, list) and lines:
            for line in lines:
                line = line if isinstance(line, Mapping) else {}
                rows.append([
                    expense_id,
                    when,
                    service,
                    line.get("reference") or "",
                    line.get("amount") or 0,
                    line.get("quantity") or 1,
                    line.get("discountPercentage") or 0,
                    line.get("description") or "",
                ])
        else:
            rows.append([
                expense_id,
                when,
                service,
                "",
                expense.get("amount") or 0,
                1,
                expense.get("discount") or 0,
                expense.get("notes") or "",
            ])
    return rows


# ---------------------------------------------------------------------------
# Whole payload
# ---------------------------------------------------------------------------

def payload_to_grids(payload: BackupPayload) -> Dict[str, Grid]:
    """Encode every collection of ``payload`` into its tab grid."""
    grids: Dict[str, Grid] = {}
    for key, columns in ENTITY_COLUMNS.items():
        grids[COLLECTION_TABS[key]] = to_rows(payload.collection(key), columns)
    grids[TAB_SERVICES] = service_rows(payload.collection(EXPENSES))
    for key in (SETTINGS, BREAK_CONFIGURATION):
        grids[COLLECTION_TABS[key]] = object_to_rows(payload.collection(key))
    return grids


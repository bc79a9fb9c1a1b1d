"""
Tagged spreadsheet cells.

``Cell.encode`` decides how a Python value is written into a grid and
``Cell.decode`` reverses it from whatever a spreadsheet hands back.  Both
directions go through the same ``CellKind`` tags, so a change to one side
without the other shows up here instead of drifting between two modules.

Known limitation: decoding sniffs JSON by a leading ``{`` or ``[``.  Free
text that starts with either character and happens to be valid JSON is
decoded as JSON; text that is not valid JSON is kept verbatim.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Sequence, Union

from taxiledger.backup.normalize import normalize, to_iso
from taxiledger.domain.enums import CellKind

RawCell = Union[str, int, float, bool, None]
Grid = List[List[RawCell]]

_JSON_OPENERS = ("{", "[")


def dump_json(value: Any) -> str:
    """Compact JSON text for a cell (dates normalized first)."""
    return json.dumps(normalize(value), ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True)
class Cell:
    """One grid cell: its tag, its wire form and its Python value."""
    kind: CellKind
    raw: RawCell
    value: Any

    @classmethod
    def empty(cls) -> "Cell":
        return cls(CellKind.EMPTY, None, None)

    # ------------------------------------------------------------------
    # Python value → wire
    # ------------------------------------------------------------------

    @classmethod
    def encode(cls, value: Any) -> "Cell":
        if value is None:
            return cls.empty()
        if isinstance(value, bool):
            return cls(CellKind.BOOLEAN, value, value)
        if isinstance(value, (int, float)):
            return cls(CellKind.NUMBER, value, value)
        if isinstance(value, date):
            text = to_iso(value)
            return cls(CellKind.DATE, text, text)
        if isinstance(value, (dict, list, tuple)):
            normalized = normalize(value)
            return cls(CellKind.JSON, dump_json(normalized), normalized)
        if isinstance(value, str):
            return cls(CellKind.TEXT, value, value)
        return cls(CellKind.TEXT, str(value), str(value))

    # ------------------------------------------------------------------
    # Wire → Python value
    # ------------------------------------------------------------------

    @classmethod
    def decode(cls, raw: Any) -> "Cell":
        if raw is None:
            return cls.empty()
        if isinstance(raw, bool):
            return cls(CellKind.BOOLEAN, raw, raw)
        if isinstance(raw, (int, float)):
            return cls(CellKind.NUMBER, raw, raw)
        if isinstance(raw, date):
            # Spreadsheet libraries may hand dates back as native values.
            text = to_iso(raw)
            return cls(CellKind.DATE, text, text)
        text = raw if isinstance(raw, str) else str(raw)
        if text.startswith(_JSON_OPENERS):
            try:
                return cls(CellKind.JSON, text, json.loads(text))
            except ValueError:
                pass
        return cls(CellKind.TEXT, text, text)


def encode_row(values: Sequence[Any]) -> List[RawCell]:
    return [Cell.encode(v).raw for v in values]


def decode_value(raw: Any) -> Any:
    return Cell.decode(raw).value

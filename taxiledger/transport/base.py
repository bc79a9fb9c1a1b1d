"""
Abstract transport interfaces consumed by the backup service.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from taxiledger.backup.cells import Grid
from taxiledger.domain.models import UploadedBlob

_RANGE_RE = re.compile(r"^(?:'((?:[^']|'')+)'|([^!]+))(?:!(.+))?$")
_COLUMN_SPAN_RE = re.compile(r"^([A-Za-z]+)\d*(?::([A-Za-z]+)\d*)?$")


def parse_range_ref(range_ref: str) -> Tuple[str, Optional[str]]:
    """Split ``"Tab!A:Z"`` into ``("Tab", "A:Z")``.

    Quoted tab names (``"'My tab'!A:B"``) are unquoted.  A bare tab name
    returns ``None`` for the cell span.
    """
    match = _RANGE_RE.match(range_ref.strip())
    if not match:
        raise ValueError(f"Invalid range reference: {range_ref!r}")
    quoted, bare, span = match.groups()
    tab = quoted.replace("''", "'") if quoted is not None else bare
    return tab, span


def column_index(letters: str) -> int:
    """1-based index of a column label (``A`` → 1, ``Z`` → 26, ``AA`` → 27)."""
    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def column_bounds(span: Optional[str]) -> Tuple[int, Optional[int]]:
    """First and last 1-based column of a span such as ``A:Z``.

    ``None`` as the upper bound means "no limit".
    """
    if not span:
        return 1, None
    match = _COLUMN_SPAN_RE.match(span)
    if not match:
        raise ValueError(f"Invalid column span: {span!r}")
    first, last = match.groups()
    return column_index(first), column_index(last or first)


def clip_grid(rows: Sequence[Sequence[object]], span: Optional[str]) -> Grid:
    """Keep only the columns of ``span`` and drop trailing blanks.

    Mirrors what spreadsheet APIs return: trailing empty cells of a row and
    trailing empty rows are omitted.
    """
    first, last = column_bounds(span)
    clipped: Grid = []
    for row in rows:
        cells: List = list(row[first - 1:last] if last else row[first - 1:])
        while cells and cells[-1] is None:
            cells.pop()
        clipped.append(cells)
    while clipped and not clipped[-1]:
        clipped.pop()
    return clipped


class SheetsTransport(ABC):
    """A place that can hold a multi-tab spreadsheet."""

    @abstractmethod
    async def create_spreadsheet(self, title: str, tab_names: Sequence[str]) -> str:
        """Create a spreadsheet with ``tab_names`` and return its id."""

    @abstractmethod
    async def write_grid(self, spreadsheet_id: str, tab_name: str, grid: Grid) -> None:
        """Write ``grid`` into ``tab_name`` starting at A1, values taken as-is."""

    @abstractmethod
    async def read_grid(self, spreadsheet_id: str, range_ref: str) -> Grid:
        """Read ``range_ref`` (``"Tab!A:Z"``); an empty tab yields ``[]``."""

    @abstractmethod
    def spreadsheet_url(self, spreadsheet_id: str) -> str:
        """Where a person can open the spreadsheet."""


class BlobUploader(ABC):
    """A place that can store a single named file."""

    @abstractmethod
    async def upload_blob(self, name: str, mime_type: str, data: bytes) -> UploadedBlob:
        ...

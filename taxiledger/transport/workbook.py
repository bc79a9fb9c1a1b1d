"""
Local file transports.

``WorkbookSheetsTransport`` keeps one ``.xlsx`` file per spreadsheet in a
directory, so an export can be opened in any spreadsheet program and read
back without a network connection.  ``LocalBlobUploader`` drops backup
files into a directory.

openpyxl is blocking, so every file operation runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from pathlib import Path
from typing import Sequence, Union
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException

from taxiledger import config
from taxiledger.backup.cells import Grid
from taxiledger.backup.errors import TransportError
from taxiledger.domain.models import UploadedBlob
from taxiledger.transport.base import (
    BlobUploader,
    SheetsTransport,
    clip_grid,
    column_bounds,
    parse_range_ref,
)

logger = logging.getLogger(__name__)

_HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
_HEADER_FONT = Font(color="FFFFFF", bold=True)
_HEADER_ALIGNMENT = Alignment(horizontal="left", vertical="center")


def _style_sheet(ws) -> None:
    for cell in ws[1]:
        cell.fill = _HEADER_FILL
        cell.font = _HEADER_FONT
        cell.alignment = _HEADER_ALIGNMENT

    ws.freeze_panes = "A2"

    for col in ws.columns:
        col_letter = col[0].column_letter
        max_len = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
        ws.column_dimensions[col_letter].width = min(max(12, max_len + 2), 80)


class WorkbookSheetsTransport(SheetsTransport):
    """Spreadsheets stored as ``<directory>/<spreadsheet_id>.xlsx``."""

    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self.directory = Path(directory or config.WORKBOOK_DIR)
        self._lock = threading.Lock()

    def path_for(self, spreadsheet_id: str) -> Path:
        return self.directory / f"{spreadsheet_id}.xlsx"

    def _load(self, spreadsheet_id: str):
        path = self.path_for(spreadsheet_id)
        if not path.exists():
            raise TransportError(f"Spreadsheet {spreadsheet_id} not found in {self.directory}", status_code=404)
        try:
            return load_workbook(path)
        except (InvalidFileException, BadZipFile, OSError, KeyError) as exc:
            raise TransportError.from_exception(f"Opening {path.name}", exc) from exc

    # ------------------------------------------------------------------
    # SheetsTransport
    # ------------------------------------------------------------------

    async def create_spreadsheet(self, title: str, tab_names: Sequence[str]) -> str:
        spreadsheet_id = uuid.uuid4().hex

        def _sync() -> None:
            wb = Workbook()
            wb.remove(wb.active)
            for name in tab_names:
                wb.create_sheet(title=name)
            wb.properties.title = title
            with self._lock:
                self.directory.mkdir(parents=True, exist_ok=True)
                wb.save(self.path_for(spreadsheet_id))

        await asyncio.to_thread(_sync)
        logger.info("Created workbook %s (%d tabs)", self.path_for(spreadsheet_id), len(tab_names))
        return spreadsheet_id

    async def write_grid(self, spreadsheet_id: str, tab_name: str, grid: Grid) -> None:
        def _sync() -> None:
            with self._lock:
                wb = self._load(spreadsheet_id)
                if tab_name not in wb.sheetnames:
                    raise TransportError(f"Unable to parse range: {tab_name}", status_code=400)
                ws = wb[tab_name]
                if ws.max_row:
                    ws.delete_rows(1, ws.max_row)
                for row_index, row in enumerate(grid, start=1):
                    for col_index, value in enumerate(row, start=1):
                        cell = ws.cell(row=row_index, column=col_index, value=value)
                        # Values are written raw: text starting with "=" stays text.
                        if isinstance(value, str) and value.startswith("="):
                            cell.data_type = "s"
                if grid:
                    _style_sheet(ws)
                wb.save(self.path_for(spreadsheet_id))

        await asyncio.to_thread(_sync)

    async def read_grid(self, spreadsheet_id: str, range_ref: str) -> Grid:
        tab_name, span = parse_range_ref(range_ref)
        first, last = column_bounds(span)

        def _sync() -> Grid:
            with self._lock:
                wb = self._load(spreadsheet_id)
                if tab_name not in wb.sheetnames:
                    raise TransportError(f"Unable to parse range: {range_ref}", status_code=400)
                ws = wb[tab_name]
                rows = [
                    list(row)
                    for row in ws.iter_rows(
                        min_col=first, max_col=last or ws.max_column, values_only=True,
                    )
                ]
            return clip_grid(rows, None)

        return await asyncio.to_thread(_sync)

    def spreadsheet_url(self, spreadsheet_id: str) -> str:
        return self.path_for(spreadsheet_id).resolve().as_uri()


class LocalBlobUploader(BlobUploader):
    """Writes uploaded files into ``directory`` under their own name."""

    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self.directory = Path(directory or config.BACKUP_DIR)

    async def upload_blob(self, name: str, mime_type: str, data: bytes) -> UploadedBlob:
        target = self.directory / Path(name).name

        def _sync() -> None:
            self.directory.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_sync)
        logger.info("Stored %s (%s, %d bytes)", target, mime_type, len(data))
        return UploadedBlob(id=str(target), name=target.name)

"""
In-memory transports.  Nothing leaves the process; used by tests and as a
stand-in while developing without network access.
"""

from __future__ import annotations

import copy
import uuid
from typing import Dict, List, Sequence, Tuple

from taxiledger.backup.cells import Grid
from taxiledger.backup.errors import TransportError
from taxiledger.domain.models import UploadedBlob
from taxiledger.transport.base import BlobUploader, SheetsTransport, clip_grid, parse_range_ref


class MemorySheetsTransport(SheetsTransport):

    def __init__(self) -> None:
        self.spreadsheets: Dict[str, Dict[str, Grid]] = {}
        self.titles: Dict[str, str] = {}

    def _tabs(self, spreadsheet_id: str) -> Dict[str, Grid]:
        try:
            return self.spreadsheets[spreadsheet_id]
        except KeyError:
            raise TransportError(f"Spreadsheet {spreadsheet_id} not found", status_code=404) from None

    async def create_spreadsheet(self, title: str, tab_names: Sequence[str]) -> str:
        spreadsheet_id = uuid.uuid4().hex
        self.spreadsheets[spreadsheet_id] = {name: [] for name in tab_names}
        self.titles[spreadsheet_id] = title
        return spreadsheet_id

    async def write_grid(self, spreadsheet_id: str, tab_name: str, grid: Grid) -> None:
        tabs = self._tabs(spreadsheet_id)
        if tab_name not in tabs:
            raise TransportError(f"Unable to parse range: {tab_name}", status_code=400)
        tabs[tab_name] = copy.deepcopy(grid)

    async def read_grid(self, spreadsheet_id: str, range_ref: str) -> Grid:
        tab_name, span = parse_range_ref(range_ref)
        tabs = self._tabs(spreadsheet_id)
        if tab_name not in tabs:
            raise TransportError(f"Unable to parse range: {range_ref}", status_code=400)
        return clip_grid(copy.deepcopy(tabs[tab_name]), span)

    def spreadsheet_url(self, spreadsheet_id: str) -> str:
        return f"memory://spreadsheets/{spreadsheet_id}"


class MemoryBlobUploader(BlobUploader):

    def __init__(self) -> None:
        self.blobs: Dict[str, Tuple[str, str, bytes]] = {}

    async def upload_blob(self, name: str, mime_type: str, data: bytes) -> UploadedBlob:
        blob_id = uuid.uuid4().hex
        self.blobs[blob_id] = (name, mime_type, bytes(data))
        return UploadedBlob(id=blob_id, name=name)

    def names(self) -> List[str]:
        return [name for name, _, _ in self.blobs.values()]

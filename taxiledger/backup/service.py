"""
End-to-end backup operations.

Each function ties the core pieces (payload builder, sheet codec and
decoder, restore orchestrator) to one destination:

* ``write_backup_file`` / ``restore_from_json`` - a JSON file on disk
* ``upload_backup``                             - a blob store (e.g. Drive)
* ``export_to_sheets`` / ``restore_from_sheets`` - a multi-tab spreadsheet

Transport failures surface as ``TransportError`` with a message the user
can act on; restore failures surface as the orchestrator raises them.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from taxiledger import config
from taxiledger.backup.cells import Grid
from taxiledger.backup.errors import BackupValidationError, TransportError
from taxiledger.backup.normalize import to_iso
from taxiledger.backup.payload import build_backup_payload
from taxiledger.backup.restore import ProgressCallback, restore_backup
from taxiledger.backup.sheet_codec import payload_to_grids
from taxiledger.backup.sheet_decoder import grids_to_payload
from taxiledger.core.constants import (
    BACKUP_FILE_PREFIX,
    BACKUP_MIME_TYPE,
    COLLECTION_TABS,
    ENTITY_RANGE_COLUMNS,
    EXPORT_TABS,
    EXPORT_TITLE_PREFIX,
    SINGLETON_COLLECTIONS,
    SINGLETON_RANGE_COLUMNS,
)
from taxiledger.domain.models import BackupPayload, ExportResult, RestoreSummary, UploadedBlob
from taxiledger.store import LocalStore
from taxiledger.transport.base import BlobUploader, SheetsTransport

logger = logging.getLogger(__name__)

JsonSource = Union[Mapping[str, Any], str, bytes, os.PathLike]


# ---------------------------------------------------------------------------
# JSON backup file
# ---------------------------------------------------------------------------

def dumps_backup(payload: BackupPayload) -> str:
    return json.dumps(payload.to_dict(), ensure_ascii=False, indent=2)


def backup_filename(now: Optional[datetime] = None) -> str:
    """``tappxi-backup-2024-12-31T09-30-00-000Z.json``"""
    stamp = to_iso(now or datetime.now(timezone.utc)).replace(":", "-").replace(".", "-")
    return f"{BACKUP_FILE_PREFIX}-{stamp}.json"


async def write_backup_file(store: LocalStore, directory: Union[str, Path, None] = None) -> Path:
    """Snapshot ``store`` into a new JSON file and return its path."""
    payload = await build_backup_payload(store)
    target = Path(directory or config.BACKUP_DIR) / backup_filename()
    text = dumps_backup(payload)

    def _write() -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")

    await asyncio.to_thread(_write)
    logger.info("Wrote backup to %s (%d bytes)", target, len(text))
    return target


def load_backup_json(source: JsonSource) -> Dict[str, Any]:
    """Parse a backup from a mapping, JSON text/bytes or a file path.

    Unreadable or non-JSON input raises ``BackupValidationError``.
    """
    if isinstance(source, Mapping):
        return dict(source)
    try:
        if isinstance(source, bytes):
            text = source.decode("utf-8-sig")
        elif isinstance(source, os.PathLike) or (
            isinstance(source, str) and not source.lstrip().startswith(("{", "["))
        ):
            text = Path(source).read_text(encoding="utf-8-sig")
        else:
            text = source
        data = json.loads(text)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise BackupValidationError(f"Invalid backup file: it could not be read as JSON ({exc}).") from exc
    if not isinstance(data, dict):
        raise BackupValidationError("Invalid backup file: expected a JSON object at the top level.")
    return data


async def restore_from_json(
    store: LocalStore,
    source: JsonSource,
    on_progress: Optional[ProgressCallback] = None,
) -> RestoreSummary:
    data = await asyncio.to_thread(load_backup_json, source)
    return await restore_backup(store, data, on_progress)


# ---------------------------------------------------------------------------
# Blob upload
# ---------------------------------------------------------------------------

async def upload_backup(store: LocalStore, uploader: BlobUploader) -> UploadedBlob:
    """Snapshot ``store`` and upload it as a JSON file."""
    payload = await build_backup_payload(store)
    name = backup_filename()
    body = dumps_backup(payload).encode("utf-8")
    try:
        blob = await uploader.upload_blob(name, BACKUP_MIME_TYPE, body)
    except TransportError:
        raise
    except Exception as exc:
        raise TransportError.from_exception("Uploading the backup", exc) from exc
    if blob is None or not blob.id:
        raise TransportError(
            "Uploading the backup failed: the upload finished without a file id. "
            "Check the destination and try again."
        )
    logger.info("Uploaded backup %s as %s", name, blob.id)
    return blob


# ---------------------------------------------------------------------------
# Spreadsheet export / restore
# ---------------------------------------------------------------------------

def _export_title(now: Optional[datetime] = None) -> str:
    return f"{EXPORT_TITLE_PREFIX} {(now or datetime.now(timezone.utc)).strftime('%Y-%m-%d %H:%M')}"


async def export_to_sheets(
    store: LocalStore,
    transport: SheetsTransport,
    title: Optional[str] = None,
) -> ExportResult:
    """Write a snapshot of ``store`` into a new spreadsheet, one tab per collection."""
    payload = await build_backup_payload(store)
    grids = payload_to_grids(payload)
    try:
        spreadsheet_id = await transport.create_spreadsheet(title or _export_title(), list(EXPORT_TABS))
        if not spreadsheet_id:
            raise TransportError("Creating the spreadsheet failed: no spreadsheet id was returned.")
        for tab in EXPORT_TABS:
            await transport.write_grid(spreadsheet_id, tab, grids[tab])
            logger.info("Exported tab %s (%d rows)", tab, len(grids[tab]) - 1)
    except TransportError:
        raise
    except Exception as exc:
        raise TransportError.from_exception("Exporting to the spreadsheet", exc) from exc
    return ExportResult(spreadsheet_id=spreadsheet_id, url=transport.spreadsheet_url(spreadsheet_id))


def _range_for(key: str) -> str:
    span = SINGLETON_RANGE_COLUMNS if key in SINGLETON_COLLECTIONS else ENTITY_RANGE_COLUMNS
    return f"{COLLECTION_TABS[key]}!{span}"


async def read_backup_grids(transport: SheetsTransport, spreadsheet_id: str) -> Dict[str, Grid]:
    """Read every collection tab concurrently.

    A tab that cannot be read counts as empty.  If no tab can be read at
    all the spreadsheet itself is unreachable and ``TransportError`` is
    raised.
    """
    keys = list(COLLECTION_TABS)
    results = await asyncio.gather(
        *(transport.read_grid(spreadsheet_id, _range_for(key)) for key in keys),
        return_exceptions=True,
    )

    grids: Dict[str, Grid] = {}
    failures: Dict[str, BaseException] = {}
    for key, result in zip(keys, results):
        tab = COLLECTION_TABS[key]
        if isinstance(result, Exception):
            logger.warning("Could not read tab %s, treating it as empty: %s", tab, result)
            failures[tab] = result
            grids[tab] = []
        elif isinstance(result, BaseException):
            raise result
        else:
            grids[tab] = result or []
            logger.info("Read tab %s (%d rows)", tab, max(len(grids[tab]) - 1, 0))

    if len(failures) == len(keys):
        first = next(iter(failures.values()))
        raise TransportError.from_exception("Reading the spreadsheet", first) from first
    return grids


def _scaled(on_progress: Optional[ProgressCallback], low: int, high: int) -> Optional[ProgressCallback]:
    if on_progress is None:
        return None

    def report(percentage: int, message: str) -> None:
        on_progress(low + round(percentage * (high - low) / 100), message)

    return report


async def restore_from_sheets(
    store: LocalStore,
    transport: SheetsTransport,
    spreadsheet_id: str,
    on_progress: Optional[ProgressCallback] = None,
) -> RestoreSummary:
    """Decode a spreadsheet export and restore it into ``store``.

    Progress: 0 while downloading, 10 while decoding, then the restore
    itself mapped onto 10..100.
    """
    if on_progress:
        on_progress(0, "Downloading spreadsheet data...")
    grids = await read_backup_grids(transport, spreadsheet_id)

    if on_progress:
        on_progress(10, "Processing data...")
    payload = grids_to_payload(grids)
    logger.info(
        "Decoded spreadsheet %s: %s",
        spreadsheet_id,
        ", ".join(f"{key}={n}" for key, n in _counts(payload)),
    )
    return await restore_backup(store, payload, _scaled(on_progress, 10, 100))


def _counts(payload: BackupPayload) -> Tuple[Tuple[str, int], ...]:
    return tuple(
        (key, len(payload.collection(key)))
        for key in COLLECTION_TABS
        if key not in SINGLETON_COLLECTIONS
    )

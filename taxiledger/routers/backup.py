"""
Backup Endpoints for Taxi Ledger
GET  /api/backup                  - download a JSON backup of every collection
POST /api/backup/restore          - restore from an uploaded JSON backup
POST /api/backup/drive            - upload a JSON backup to Google Drive
POST /api/backup/sheets/export    - export every collection to a Google spreadsheet
POST /api/backup/sheets/restore   - restore from a Google spreadsheet export
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from taxiledger.backup.errors import (
    BackupError,
    BackupValidationError,
    RestoreAbortedError,
    TransportError,
)
from taxiledger.backup.payload import build_backup_payload
from taxiledger.backup.restore import restore_backup
from taxiledger.backup.service import (
    backup_filename,
    dumps_backup,
    export_to_sheets,
    restore_from_sheets,
    upload_backup,
)
from taxiledger.core.constants import BACKUP_MIME_TYPE
from taxiledger.database import SessionLocal
from taxiledger.store import LocalStore
from taxiledger.transport.google import GoogleDriveUploader, GoogleSession, GoogleSheetsTransport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/backup", tags=["backup"])


class DriveUploadRequest(BaseModel):
    """Body for uploading a backup to Drive."""
    access_token: str


class SheetsExportRequest(BaseModel):
    access_token: str
    title: Optional[str] = None


class SheetsRestoreRequest(BaseModel):
    access_token: str
    spreadsheet_id: str


@lru_cache(maxsize=1)
def get_store() -> LocalStore:
    """The process-wide store backed by the configured database."""
    return LocalStore(SessionLocal)


def _http_error(exc: BackupError) -> HTTPException:
    if isinstance(exc, BackupValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, TransportError):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, RestoreAbortedError):
        return HTTPException(
            status_code=500,
            detail={
                "message": str(exc),
                "step": exc.step,
                "completed": exc.completed_steps,
                "summary": exc.summary.to_dict(),
            },
        )
    return HTTPException(status_code=500, detail=str(exc))


@router.get("")
async def download_backup(store: LocalStore = Depends(get_store)):
    """Return the full backup as a JSON file download."""
    payload = await build_backup_payload(store)
    return Response(
        content=dumps_backup(payload),
        media_type=BACKUP_MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{backup_filename()}"'},
    )


@router.post("/restore")
async def restore_endpoint(
    body: Dict[str, Any] = Body(...),
    store: LocalStore = Depends(get_store),
):
    """Restore every collection from a JSON backup posted as the request body."""
    try:
        summary = await restore_backup(store, body)
    except BackupError as exc:
        raise _http_error(exc)
    return {"status": "ok", "summary": summary.to_dict()}


@router.post("/drive")
async def upload_to_drive(body: DriveUploadRequest, store: LocalStore = Depends(get_store)):
    uploader = GoogleDriveUploader(GoogleSession(body.access_token))
    try:
        blob = await upload_backup(store, uploader)
    except BackupError as exc:
        raise _http_error(exc)
    return blob.to_dict()


@router.post("/sheets/export")
async def export_sheets(body: SheetsExportRequest, store: LocalStore = Depends(get_store)):
    transport = GoogleSheetsTransport(GoogleSession(body.access_token))
    try:
        result = await export_to_sheets(store, transport, title=body.title)
    except BackupError as exc:
        raise _http_error(exc)
    return result.to_dict()


@router.post("/sheets/restore")
async def restore_sheets(body: SheetsRestoreRequest, store: LocalStore = Depends(get_store)):
    """Restore from a spreadsheet previously produced by the export endpoint."""
    transport = GoogleSheetsTransport(GoogleSession(body.access_token))
    try:
        summary = await restore_from_sheets(store, transport, body.spreadsheet_id)
    except BackupError as exc:
        raise _http_error(exc)
    return {"status": "ok", "summary": summary.to_dict()}

"""
Google Sheets / Drive transports over the REST APIs.

Usage::

    session = GoogleSession(access_token)
    sheets = GoogleSheetsTransport(session)
    spreadsheet_id = await sheets.create_spreadsheet("TAppXI Export", ["Trips"])

The access token is obtained elsewhere (sign-in is not handled here) and
is passed in explicitly; nothing is cached at module level.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
from urllib.parse import quote

import httpx

from taxiledger import config
from taxiledger.backup.cells import Grid
from taxiledger.backup.errors import TransportError
from taxiledger.domain.models import UploadedBlob
from taxiledger.transport.base import BlobUploader, SheetsTransport, parse_range_ref

logger = logging.getLogger(__name__)

SPREADSHEET_WEB_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit"


@dataclass(frozen=True)
class GoogleSession:
    """OAuth access token for one signed-in user."""
    access_token: str

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def a1_range(tab_name: str, span: Optional[str] = None) -> str:
    """Quoted A1 notation (``'Trips'!A:Z``) that is safe for any tab name."""
    quoted = "'" + tab_name.replace("'", "''") + "'"
    return f"{quoted}!{span}" if span else quoted


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or error.get("status") or resp.reason_phrase
    return str(error or resp.reason_phrase)


class _GoogleApi:
    """Shared request plumbing for the Google adapters.

    Pass ``client`` to reuse a long-lived ``httpx.AsyncClient`` (or a mock
    one in tests); otherwise a short-lived client is opened per call.
    """

    def __init__(
        self,
        session: GoogleSession,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = config.TRANSPORT_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._client = client
        self._timeout = timeout

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {**self._session.headers(), **kwargs.pop("headers", {})}
        return await client.request(method, url, headers=headers, **kwargs)

    async def _request(self, action: str, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            if self._client is not None:
                resp = await self._send(self._client, method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await self._send(client, method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s failed: %s", action, exc)
            raise TransportError.from_exception(action, exc) from exc

        if resp.status_code >= 400:
            logger.error("%s failed with HTTP %s", action, resp.status_code)
            raise TransportError.from_exception(
                action,
                TransportError(f"HTTP {resp.status_code}: {_error_detail(resp)}", status_code=resp.status_code),
            )
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError.from_exception(action, exc) from exc


class GoogleSheetsTransport(_GoogleApi, SheetsTransport):
    """Spreadsheets in the user's Google account."""

    base_url: str = config.GOOGLE_SHEETS_API_URL

    async def create_spreadsheet(self, title: str, tab_names: Sequence[str]) -> str:
        body = {
            "properties": {"title": title},
            "sheets": [{"properties": {"title": name}} for name in tab_names],
        }
        data = await self._request("Creating the spreadsheet", "POST", self.base_url, json=body)
        spreadsheet_id = data.get("spreadsheetId")
        if not spreadsheet_id:
            raise TransportError("Creating the spreadsheet failed: the response carried no spreadsheet id.")
        return spreadsheet_id

    async def write_grid(self, spreadsheet_id: str, tab_name: str, grid: Grid) -> None:
        target = a1_range(tab_name, "A1")
        await self._request(
            f"Writing tab {tab_name}",
            "PUT",
            f"{self.base_url}/{spreadsheet_id}/values/{quote(target, safe='')}",
            params={"valueInputOption": "RAW"},
            json={"range": target, "majorDimension": "ROWS", "values": grid},
        )

    async def read_grid(self, spreadsheet_id: str, range_ref: str) -> Grid:
        tab_name, span = parse_range_ref(range_ref)
        target = a1_range(tab_name, span)
        data = await self._request(
            f"Reading {range_ref}",
            "GET",
            f"{self.base_url}/{spreadsheet_id}/values/{quote(target, safe='')}",
            params={"valueRenderOption": "UNFORMATTED_VALUE", "majorDimension": "ROWS"},
        )
        return data.get("values", [])

    def spreadsheet_url(self, spreadsheet_id: str) -> str:
        return SPREADSHEET_WEB_URL.format(spreadsheet_id=spreadsheet_id)


class GoogleDriveUploader(_GoogleApi, BlobUploader):
    """Uploads a file to the user's Google Drive (multipart upload)."""

    upload_url: str = config.GOOGLE_DRIVE_UPLOAD_URL

    async def upload_blob(self, name: str, mime_type: str, data: bytes) -> UploadedBlob:
        boundary = f"taxiledger-{uuid.uuid4().hex}"
        metadata = json.dumps({"name": name, "mimeType": mime_type}).encode("utf-8")
        body = b"".join([
            f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n".encode("ascii"),
            metadata,
            f"\r\n--{boundary}\r\nContent-Type: {mime_type}\r\n\r\n".encode("ascii"),
            data,
            f"\r\n--{boundary}--".encode("ascii"),
        ])
        result = await self._request(
            "Uploading the backup to Drive",
            "POST",
            self.upload_url,
            params={"uploadType": "multipart", "fields": "id,name"},
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
            content=body,
        )
        logger.info("Uploaded %s to Drive (%d bytes)", name, len(data))
        return UploadedBlob(id=result.get("id") or "", name=result.get("name") or name)

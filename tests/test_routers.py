"""Tests for the HTTP surface (taxiledger.routers.backup)."""

import pytest
from fastapi.testclient import TestClient

from taxiledger.app import app
from taxiledger.backup.normalize import normalize
from taxiledger.routers import backup as backup_router
from taxiledger.transport.memory import MemoryBlobUploader, MemorySheetsTransport

from conftest import make_trip


def trip(n):
    return normalize(make_trip(n))


def payload(**collections):
    data = {"meta": {"app": "TAppXI", "version": "1.0", "createdAt": "2024-03-01T00:00:00.000Z"}}
    data.update(collections)
    return data


@pytest.fixture
def client(store):
    app.dependency_overrides[backup_router.get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestJsonEndpoints:
    def test_restore_then_download(self, client):
        resp = client.post("/api/backup/restore", json=payload(trips=[trip(1), trip(2)]))
        assert resp.status_code == 200
        assert resp.json()["summary"] == {"trips": 2, "expenses": 0, "shifts": 0}

        resp = client.get("/api/backup")
        assert resp.status_code == 200
        assert resp.headers["content-disposition"].startswith('attachment; filename="tappxi-backup-')
        body = resp.json()
        assert body["meta"]["app"] == "TAppXI"
        assert [t["id"] for t in body["trips"]] == ["trip-001", "trip-002"]
        assert body["trips"][0]["dateTime"].endswith("Z")

    def test_foreign_file_rejected(self, client):
        resp = client.post("/api/backup/restore", json={"meta": {"app": "Other"}})
        assert resp.status_code == 400
        assert "Invalid backup file" in resp.json()["detail"]

    def test_aborted_restore_reports_step(self, client):
        resp = client.post("/api/backup/restore", json=payload(trips=[trip(1), {"notes": "no id"}]))
        assert resp.status_code == 500
        detail = resp.json()["detail"]
        assert detail["step"] == "trips"
        assert detail["summary"]["trips"] == 1


class TestGoogleEndpoints:
    def test_sheets_export_and_restore(self, client, monkeypatch):
        transport = MemorySheetsTransport()
        monkeypatch.setattr(backup_router, "GoogleSheetsTransport", lambda session: transport)
        client.post("/api/backup/restore", json=payload(trips=[trip(1)]))

        resp = client.post("/api/backup/sheets/export", json={"access_token": "tok", "title": "March"})
        assert resp.status_code == 200
        spreadsheet_id = resp.json()["spreadsheetId"]
        assert transport.titles[spreadsheet_id] == "March"

        resp = client.post(
            "/api/backup/sheets/restore",
            json={"access_token": "tok", "spreadsheet_id": spreadsheet_id},
        )
        assert resp.status_code == 200
        assert resp.json()["summary"]["trips"] == 1

    def test_drive_upload(self, client, monkeypatch):
        uploader = MemoryBlobUploader()
        monkeypatch.setattr(backup_router, "GoogleDriveUploader", lambda session: uploader)

        resp = client.post("/api/backup/drive", json={"access_token": "tok"})

        assert resp.status_code == 200
        assert resp.json()["id"] in uploader.blobs

    def test_transport_failure_is_bad_gateway(self, client, monkeypatch):
        monkeypatch.setattr(backup_router, "GoogleSheetsTransport", lambda session: MemorySheetsTransport())
        resp = client.post(
            "/api/backup/sheets/restore",
            json={"access_token": "tok", "spreadsheet_id": "missing"},
        )
        assert resp.status_code == 502

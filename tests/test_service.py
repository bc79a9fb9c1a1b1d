"""End-to-end tests for taxiledger.backup.service."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from taxiledger.backup.errors import BackupValidationError, TransportError
from taxiledger.backup.normalize import normalize
from taxiledger.backup.service import (
    backup_filename,
    dumps_backup,
    export_to_sheets,
    load_backup_json,
    restore_from_json,
    restore_from_sheets,
    upload_backup,
    write_backup_file,
)
from taxiledger.core.constants import BACKUP_APP, EXPORT_TABS, LIST_COLLECTIONS, TRIP_COLUMNS
from taxiledger.database import make_engine
from taxiledger.domain.models import BackupPayload, UploadedBlob
from taxiledger.store import LocalStore
from taxiledger.transport.base import BlobUploader
from taxiledger.transport.memory import MemoryBlobUploader, MemorySheetsTransport
from taxiledger.transport.workbook import LocalBlobUploader, WorkbookSheetsTransport


def fresh_store() -> LocalStore:
    return LocalStore.from_engine(make_engine("sqlite:///:memory:"))


async def snapshot(store):
    data = {key: await store.list_records(key) for key in LIST_COLLECTIONS}
    data["settings"] = await store.get_singleton("settings")
    data["breakConfiguration"] = await store.get_singleton("breakConfiguration")
    return data


class FailingUploader(BlobUploader):
    def __init__(self, exc=None, blob=None):
        self.exc = exc
        self.blob = blob

    async def upload_blob(self, name, mime_type, data):
        if self.exc:
            raise self.exc
        return self.blob


class TestJsonFile:
    def test_backup_filename(self):
        when = datetime(2024, 12, 31, 9, 30, tzinfo=timezone.utc)
        assert backup_filename(when) == "tappxi-backup-2024-12-31T09-30-00-000Z.json"

    def test_dumps_backup_wire_keys(self):
        data = json.loads(dumps_backup(BackupPayload(trips=[{"id": "t1"}])))
        assert data["meta"]["app"] == BACKUP_APP
        assert set(data) == {
            "meta", "settings", "breakConfiguration", "exceptions", "trips",
            "expenses", "shifts", "suppliers", "concepts", "workshops",
        }

    @pytest.mark.asyncio
    async def test_round_trip_through_file(self, seeded_store, tmp_path):
        path = await write_backup_file(seeded_store, tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("tappxi-backup-")

        target = fresh_store()
        summary = await restore_from_json(target, path)

        assert summary.to_dict() == {"trips": 3, "expenses": 2, "shifts": 2}
        assert await snapshot(target) == normalize(await snapshot(seeded_store))

    @pytest.mark.asyncio
    async def test_restore_from_text_and_bytes(self, store):
        text = json.dumps({"meta": {"app": BACKUP_APP}, "trips": [{"id": "t1"}]})
        assert (await restore_from_json(store, text)).trips == 1
        assert (await restore_from_json(store, text.encode("utf-8"))).trips == 1
        assert await store.count("trips") == 1

    def test_invalid_json_is_validation_error(self, tmp_path):
        with pytest.raises(BackupValidationError):
            load_backup_json("{not json")
        with pytest.raises(BackupValidationError):
            load_backup_json(tmp_path / "missing.json")
        with pytest.raises(BackupValidationError):
            load_backup_json(b"[1, 2]")


class TestUpload:
    @pytest.mark.asyncio
    async def test_uploads_json_backup(self, seeded_store):
        uploader = MemoryBlobUploader()
        blob = await upload_backup(seeded_store, uploader)

        name, mime_type, body = uploader.blobs[blob.id]
        assert name == blob.name
        assert name.endswith(".json")
        assert mime_type == "application/json"
        assert len(json.loads(body)["trips"]) == 3

    @pytest.mark.asyncio
    async def test_local_uploader_writes_file(self, store, tmp_path):
        blob = await upload_backup(store, LocalBlobUploader(tmp_path))
        assert (tmp_path / blob.name).exists()

    @pytest.mark.asyncio
    async def test_missing_id_is_transport_error(self, store):
        with pytest.raises(TransportError):
            await upload_backup(store, FailingUploader(blob=UploadedBlob(id="", name="x.json")))

    @pytest.mark.asyncio
    async def test_permission_failure_gets_permission_hint(self, store):
        with pytest.raises(TransportError) as info:
            await upload_backup(store, FailingUploader(exc=RuntimeError("403 Forbidden")))
        assert "permission problem" in str(info.value)

    @pytest.mark.asyncio
    async def test_other_failure_gets_connectivity_hint(self, store):
        with pytest.raises(TransportError) as info:
            await upload_backup(store, FailingUploader(exc=RuntimeError("connection reset")))
        assert "online" in str(info.value)


class TestSheets:
    @pytest.mark.asyncio
    async def test_export_creates_every_tab(self, seeded_store):
        transport = MemorySheetsTransport()
        result = await export_to_sheets(seeded_store, transport, title="March")

        tabs = transport.spreadsheets[result.spreadsheet_id]
        assert list(tabs) == list(EXPORT_TABS)
        assert transport.titles[result.spreadsheet_id] == "March"
        assert len(tabs["Trips"]) == 4
        assert len(tabs["Services"]) == 3
        assert result.url.endswith(result.spreadsheet_id)

    @pytest.mark.asyncio
    async def test_round_trip_through_memory_sheets(self, seeded_store):
        transport = MemorySheetsTransport()
        result = await export_to_sheets(seeded_store, transport)

        target = fresh_store()
        summary = await restore_from_sheets(target, transport, result.spreadsheet_id)

        assert summary.to_dict() == {"trips": 3, "expenses": 2, "shifts": 2}
        assert await snapshot(target) == await snapshot(seeded_store)

    @pytest.mark.asyncio
    async def test_round_trip_through_workbook(self, seeded_store, tmp_path):
        transport = WorkbookSheetsTransport(tmp_path)
        result = await export_to_sheets(seeded_store, transport)
        assert transport.path_for(result.spreadsheet_id).exists()

        target = fresh_store()
        await restore_from_sheets(target, transport, result.spreadsheet_id)

        assert await snapshot(target) == await snapshot(seeded_store)

    @pytest.mark.asyncio
    async def test_invalid_cells_use_documented_fallbacks(self, seeded_store):
        transport = MemorySheetsTransport()
        result = await export_to_sheets(seeded_store, transport)
        trips = transport.spreadsheets[result.spreadsheet_id]["Trips"]
        trips[1][TRIP_COLUMNS.index("dateTime")] = "sometime last week"
        trips[1][TRIP_COLUMNS.index("chargedAmount")] = "n/a"

        target = fresh_store()
        before = datetime.now(timezone.utc)
        await restore_from_sheets(target, transport, result.spreadsheet_id)

        trip = await target.get_record("trips", trips[1][0])
        # Unparseable date becomes "now", unparseable number becomes 0.
        assert before - timedelta(seconds=1) <= trip["dateTime"] <= datetime.now(timezone.utc)
        assert trip["chargedAmount"] == 0
        original = await seeded_store.get_record("trips", trips[1][0])
        assert trip["taximeterFare"] == original["taximeterFare"]

    @pytest.mark.asyncio
    async def test_restore_progress_is_rescaled(self, seeded_store):
        transport = MemorySheetsTransport()
        result = await export_to_sheets(seeded_store, transport)
        calls = []

        await restore_from_sheets(
            fresh_store(), transport, result.spreadsheet_id,
            on_progress=lambda pct, msg: calls.append((pct, msg)),
        )

        assert calls[0] == (0, "Downloading spreadsheet data...")
        assert calls[1] == (10, "Processing data...")
        percentages = [p for p, _ in calls]
        assert all(a <= b for a, b in zip(percentages, percentages[1:]))
        assert min(percentages[2:]) >= 10
        assert calls[-1] == (100, "done")

    @pytest.mark.asyncio
    async def test_unreadable_tab_treated_as_empty(self, seeded_store):
        transport = MemorySheetsTransport()
        result = await export_to_sheets(seeded_store, transport)
        del transport.spreadsheets[result.spreadsheet_id]["Shifts"]

        target = fresh_store()
        summary = await restore_from_sheets(target, transport, result.spreadsheet_id)

        assert summary.shifts == 0
        assert summary.trips == 3

    @pytest.mark.asyncio
    async def test_missing_spreadsheet_is_transport_error(self, store):
        with pytest.raises(TransportError):
            await restore_from_sheets(store, MemorySheetsTransport(), "does-not-exist")
        assert await store.count("trips") == 0

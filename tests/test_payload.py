"""Tests for the snapshot builder (taxiledger.backup.payload)."""

import pytest

from taxiledger.backup.payload import build_backup_payload
from taxiledger.core.constants import (
    BACKUP_APP,
    BACKUP_VERSION,
    LIST_COLLECTIONS,
    SINGLETON_COLLECTIONS,
)

ALL_SOURCES = SINGLETON_COLLECTIONS + LIST_COLLECTIONS


class TestBuildBackupPayload:
    @pytest.mark.asyncio
    async def test_all_collections_read_and_normalized(self, seeded_store):
        payload = await build_backup_payload(seeded_store)

        assert payload.meta.app == BACKUP_APP
        assert payload.meta.version == BACKUP_VERSION
        assert payload.meta.created_at.endswith("Z")
        assert len(payload.trips) == 3
        assert len(payload.expenses) == 2
        assert payload.trips[0]["dateTime"] == "2024-03-02T08:15:00.000Z"
        assert payload.settings["fiscalData"]["name"] == "Juan Pérez"

    @pytest.mark.asyncio
    async def test_empty_store_uses_defaults(self, store):
        payload = await build_backup_payload(store)

        assert payload.settings is None
        assert payload.break_configuration is None
        for key in LIST_COLLECTIONS:
            assert payload.collection(key) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("denied", ALL_SOURCES)
    async def test_one_denied_source_is_isolated(self, seeded_store, denied):
        seeded_store.deny(denied)

        payload = await build_backup_payload(seeded_store)

        for key in ALL_SOURCES:
            value = payload.collection(key)
            if key == denied:
                assert value in (None, [])
            else:
                assert value, f"{key} should still be backed up"

    @pytest.mark.asyncio
    async def test_other_errors_abort(self, store, monkeypatch):
        async def broken(collection):
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(store, "list_records", broken)
        with pytest.raises(RuntimeError):
            await build_backup_payload(store)

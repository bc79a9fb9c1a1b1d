"""
taxiledger.domain.models - canonical backup data structures.

A ``BackupPayload`` is built fresh for every backup and is never mutated
after construction; restore consumes it (or its dict form) once.

Import pattern::

    from taxiledger.domain.models import BackupPayload, RestoreSummary
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from taxiledger.core.constants import (
    BACKUP_APP,
    BACKUP_VERSION,
    BREAK_CONFIGURATION,
    CONCEPTS,
    EXCEPTIONS,
    EXPENSES,
    LIST_COLLECTIONS,
    PAYLOAD_KEY_ALIASES,
    SETTINGS,
    SHIFTS,
    SUPPLIERS,
    TRIPS,
    WORKSHOPS,
)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BackupMeta:
    """Format header of a backup: marker, format version and creation time."""
    app: str = BACKUP_APP
    version: str = BACKUP_VERSION
    created_at: str = ""

    @classmethod
    def now(cls) -> "BackupMeta":
        from taxiledger.backup.normalize import to_iso

        return cls(created_at=to_iso(datetime.now(timezone.utc)))

    def to_dict(self) -> Dict[str, str]:
        return {"app": self.app, "version": self.version, "createdAt": self.created_at}


@dataclass(frozen=True)
class BackupPayload:
    """
    Versioned snapshot of every domain collection.

    List collections hold plain record dicts (each with an ``id``);
    singletons hold one dict or ``None`` when the source had nothing
    (or could not be read).
    """
    meta: BackupMeta = field(default_factory=BackupMeta.now)
    settings: Optional[Dict[str, Any]] = None
    break_configuration: Optional[Dict[str, Any]] = None
    exceptions: List[Dict[str, Any]] = field(default_factory=list)
    trips: List[Dict[str, Any]] = field(default_factory=list)
    expenses: List[Dict[str, Any]] = field(default_factory=list)
    shifts: List[Dict[str, Any]] = field(default_factory=list)
    suppliers: List[Dict[str, Any]] = field(default_factory=list)
    concepts: List[Dict[str, Any]] = field(default_factory=list)
    workshops: List[Dict[str, Any]] = field(default_factory=list)

    def collection(self, key: str) -> Any:
        """Return a collection by its wire key (``breakConfiguration`` etc.)."""
        if key == BREAK_CONFIGURATION:
            return self.break_configuration
        return getattr(self, key)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: the exact shape of the JSON backup file."""
        return {
            "meta": self.meta.to_dict(),
            SETTINGS: self.settings,
            BREAK_CONFIGURATION: self.break_configuration,
            EXCEPTIONS: self.exceptions,
            TRIPS: self.trips,
            EXPENSES: self.expenses,
            SHIFTS: self.shifts,
            SUPPLIERS: self.suppliers,
            CONCEPTS: self.concepts,
            WORKSHOPS: self.workshops,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BackupPayload":
        """Build a payload from its wire form.

        Missing or malformed list collections become empty lists; legacy
        collection keys (see ``PAYLOAD_KEY_ALIASES``) are honoured when the
        current key is absent.  No validation of ``meta`` happens here.
        """
        data = dict(data)
        for legacy, current in PAYLOAD_KEY_ALIASES.items():
            if current not in data and legacy in data:
                data[current] = data[legacy]

        raw_meta = data.get("meta") if isinstance(data.get("meta"), Mapping) else {}
        meta = BackupMeta(
            app=str(raw_meta.get("app") or ""),
            version=str(raw_meta.get("version") or ""),
            created_at=str(raw_meta.get("createdAt") or ""),
        )

        lists = {}
        for key in LIST_COLLECTIONS:
            value = data.get(key)
            lists[key] = list(value) if isinstance(value, list) else []

        def _singleton(key: str) -> Optional[Dict[str, Any]]:
            value = data.get(key)
            return dict(value) if isinstance(value, Mapping) else None

        return cls(
            meta=meta,
            settings=_singleton(SETTINGS),
            break_configuration=_singleton(BREAK_CONFIGURATION),
            **lists,
        )


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------

@dataclass
class RestoreSummary:
    """Counts of headline records written by a restore."""
    trips: int = 0
    expenses: int = 0
    shifts: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"trips": self.trips, "expenses": self.expenses, "shifts": self.shifts}


@dataclass(frozen=True)
class ExportResult:
    spreadsheet_id: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"spreadsheetId": self.spreadsheet_id, "url": self.url}


@dataclass(frozen=True)
class UploadedBlob:
    """Identity of a file accepted by a blob store."""
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}

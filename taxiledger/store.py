"""
Taxi Ledger - async facade over the local store.

The backup core only talks to the store through ``LocalStore``: list reads
for the snapshot, upsert-by-id and full singleton replacement for restore.
Blocking SQLAlchemy work runs in a thread so callers can ``await`` and issue
independent reads concurrently.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from taxiledger.database import Setting, StoredRecord, init_db, make_engine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorePermissionError(PermissionError):
    """The caller may not read or write the given collection."""

    code = "permission-denied"

    def __init__(self, collection: str, action: str = "read") -> None:
        super().__init__(f"Missing or insufficient permissions to {action} '{collection}'")
        self.collection = collection


def is_permission_error(exc: BaseException) -> bool:
    """Classify ``exc`` as a permission failure.

    Matches builtin ``PermissionError`` (which ``StorePermissionError``
    extends), errors carrying ``code == "permission-denied"`` and, as a last
    resort, any error whose message mentions "permission".
    """
    if isinstance(exc, PermissionError):
        return True
    if getattr(exc, "code", None) == "permission-denied":
        return True
    return "permission" in str(exc).lower()


class LocalStore:
    """Record store keyed by ``(collection, id)`` plus keyed singletons.

    Usage::

        store = LocalStore.from_url("sqlite:///:memory:")
        await store.restore_record("trips", {"id": "t1", "chargedAmount": 12.5})
        trips = await store.list_records("trips")
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self._denied: Set[str] = set()
        # One sqlite connection is shared (StaticPool); serialize sessions on it.
        self._lock = threading.Lock()

    @classmethod
    def from_engine(cls, engine: Engine, create_tables: bool = True) -> "LocalStore":
        if create_tables:
            init_db(engine)
        return cls(sessionmaker(bind=engine, autoflush=False))

    @classmethod
    def from_url(cls, url: str) -> "LocalStore":
        return cls.from_engine(make_engine(url))

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    def deny(self, collection: str) -> None:
        """Make ``collection`` unreadable and unwritable for this store."""
        self._denied.add(collection)

    def allow(self, collection: str) -> None:
        self._denied.discard(collection)

    def _check(self, collection: str, action: str) -> None:
        if collection in self._denied:
            raise StorePermissionError(collection, action)

    async def _run(self, fn: Callable[[Session], T]) -> T:
        def _sync() -> T:
            with self._lock:
                db = self._session_factory()
                try:
                    return fn(db)
                except Exception:
                    db.rollback()
                    raise
                finally:
                    db.close()

        return await asyncio.to_thread(_sync)

    # ------------------------------------------------------------------
    # List collections
    # ------------------------------------------------------------------

    async def list_records(self, collection: str) -> List[Dict[str, Any]]:
        """Return every record of ``collection`` ordered by id."""
        self._check(collection, "read")

        def _sync(db: Session) -> List[Dict[str, Any]]:
            rows = (
                db.query(StoredRecord)
                .filter(StoredRecord.collection == collection)
                .order_by(StoredRecord.id.asc())
                .all()
            )
            return [copy.deepcopy(r.data) for r in rows]

        return await self._run(_sync)

    async def get_record(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        self._check(collection, "read")

        def _sync(db: Session) -> Optional[Dict[str, Any]]:
            row = db.get(StoredRecord, (collection, record_id))
            return copy.deepcopy(row.data) if row else None

        return await self._run(_sync)

    async def restore_record(self, collection: str, record: Mapping[str, Any]) -> None:
        """Upsert ``record`` by its ``id``; an existing record is fully replaced."""
        self._check(collection, "write")
        record_id = record.get("id") if isinstance(record, Mapping) else None
        if record_id is None or str(record_id) == "":
            raise ValueError(f"Cannot restore a {collection} record without an id")
        data = dict(record)

        def _sync(db: Session) -> None:
            row = db.get(StoredRecord, (collection, str(record_id)))
            if row:
                row.data = data
                row.updated_at = datetime.utcnow()
            else:
                db.add(StoredRecord(collection=collection, id=str(record_id), data=data))
            db.commit()

        await self._run(_sync)

    async def count(self, collection: str) -> int:
        self._check(collection, "read")

        def _sync(db: Session) -> int:
            return db.query(StoredRecord).filter(StoredRecord.collection == collection).count()

        return await self._run(_sync)

    # ------------------------------------------------------------------
    # Singletons
    # ------------------------------------------------------------------

    async def get_singleton(self, key: str) -> Optional[Dict[str, Any]]:
        self._check(key, "read")

        def _sync(db: Session) -> Optional[Dict[str, Any]]:
            row = db.get(Setting, key)
            return copy.deepcopy(row.value) if row and row.value is not None else None

        return await self._run(_sync)

    async def save_singleton(self, key: str, value: Mapping[str, Any]) -> None:
        """Replace the singleton stored under ``key`` (no field-level merge)."""
        self._check(key, "write")
        data = dict(value)

        def _sync(db: Session) -> None:
            row = db.get(Setting, key)
            if row:
                row.value = data
                row.updated_at = datetime.utcnow()
            else:
                db.add(Setting(key=key, value=data))
            db.commit()

        await self._run(_sync)
        logger.debug("Saved singleton %s (%d keys)", key, len(data))

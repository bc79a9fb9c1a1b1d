"""
SQLite database layer for Taxi Ledger.
Stores every domain record as a JSON document keyed by (collection, id),
plus the singleton configuration objects in a key/value table.
"""

import json
from datetime import date, datetime
from typing import Any

from sqlalchemy import Column, DateTime, JSON, String, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taxiledger import config

_DATETIME_TAG = "$date"
_DATE_TAG = "$day"


# ---------------------------------------------------------------------------
# JSON columns keep native dates
# ---------------------------------------------------------------------------

def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, date):
        return {_DATE_TAG: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_hook(obj: dict) -> Any:
    if len(obj) != 1:
        return obj
    try:
        if _DATETIME_TAG in obj:
            return datetime.fromisoformat(obj[_DATETIME_TAG])
        if _DATE_TAG in obj:
            return date.fromisoformat(obj[_DATE_TAG])
    except (TypeError, ValueError):
        return obj
    return obj


def json_dumps(value: Any) -> str:
    return json.dumps(value, default=_encode_default, ensure_ascii=False)


def json_loads(text: str) -> Any:
    return json.loads(text, object_hook=_decode_hook)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def make_engine(url: str = config.DATABASE_URL) -> Engine:
    """Create an engine whose JSON columns round-trip ``datetime`` values."""
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        json_serializer=json_dumps,
        json_deserializer=json_loads,
        echo=config.DATABASE_ECHO,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class StoredRecord(Base):
    """One entity of a list collection (trip, expense, shift, ...)."""
    __tablename__ = "records"

    collection = Column(String(64), primary_key=True)
    id = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Setting(Base):
    """Singleton configuration objects (``settings``, ``breakConfiguration``)."""
    __tablename__ = "settings"

    key = Column(String(128), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ---------------------------------------------------------------------------
# Database initialization
# ---------------------------------------------------------------------------

def init_db(bind: Engine = None):
    """Create all tables if they don't exist."""
    Base.metadata.create_all(bind=bind or engine)

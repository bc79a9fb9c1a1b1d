"""
Snapshot builder: reads every collection concurrently and assembles a
``BackupPayload``.

A source that fails with a permission error is replaced by its default
(``[]`` for lists, ``None`` for singletons) so a partially restricted store
still backs up everything it can read.  Any other failure aborts the build.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Tuple

from taxiledger.backup.normalize import normalize
from taxiledger.core.constants import (
    BREAK_CONFIGURATION,
    LIST_COLLECTIONS,
    SETTINGS,
    SINGLETON_COLLECTIONS,
)
from taxiledger.domain.models import BackupMeta, BackupPayload
from taxiledger.store import LocalStore, is_permission_error

logger = logging.getLogger(__name__)


async def _read_or_default(
    source: str,
    read: Callable[[], Awaitable[Any]],
    default: Any,
) -> Any:
    try:
        value = await read()
    except Exception as exc:
        if is_permission_error(exc):
            logger.warning("Permission denied reading %s, backing up without it: %s", source, exc)
            return default
        raise
    if not value:
        return default
    return normalize(value)


def _sources(store: LocalStore) -> Dict[str, Tuple[Callable[[], Awaitable[Any]], Any]]:
    sources: Dict[str, Tuple[Callable[[], Awaitable[Any]], Any]] = {}
    for key in SINGLETON_COLLECTIONS:
        sources[key] = (lambda key=key: store.get_singleton(key), None)
    for key in LIST_COLLECTIONS:
        sources[key] = (lambda key=key: store.list_records(key), [])
    return sources


async def build_backup_payload(store: LocalStore) -> BackupPayload:
    """Read all nine collections from ``store`` and return a fresh snapshot."""
    sources = _sources(store)
    keys = list(sources)
    values = await asyncio.gather(
        *(_read_or_default(key, *sources[key]) for key in keys)
    )
    collected = dict(zip(keys, values))

    payload = BackupPayload(
        meta=BackupMeta.now(),
        settings=collected[SETTINGS],
        break_configuration=collected[BREAK_CONFIGURATION],
        **{key: collected[key] for key in LIST_COLLECTIONS},
    )
    logger.info(
        "Built backup payload: %s",
        ", ".join(f"{key}={len(collected[key])}" for key in LIST_COLLECTIONS),
    )
    return payload

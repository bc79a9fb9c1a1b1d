"""
Restore orchestrator.

Validates a payload, then applies it to the local store one collection at a
time in ``RESTORE_ORDER``.  Writes are strictly sequential so the progress
percentages reported to the caller never go backwards.

There is no cross-collection transaction: if a write fails, collections
before it are fully replaced, the failing one is partially applied and the
rest are untouched.  ``RestoreAbortedError`` reports exactly where it
stopped.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from taxiledger.backup.errors import BackupValidationError, RestoreAbortedError
from taxiledger.backup.sheet_decoder import upgrade_legacy_settings
from taxiledger.core.constants import (
    BACKUP_APP,
    BREAK_CONFIGURATION,
    CONCEPTS,
    EXCEPTIONS,
    EXPENSES,
    PROGRESS_ITEM_STRIDE,
    RESTORE_ORDER,
    RESTORE_TOTAL_STEPS,
    SETTINGS,
    SHIFTS,
    SINGLETON_COLLECTIONS,
    SUPPLIERS,
    TRIPS,
    WORKSHOPS,
)
from taxiledger.domain.models import BackupPayload, RestoreSummary
from taxiledger.store import LocalStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], Any]

DONE_MESSAGE = "done"

_STEP_LABELS = {
    SETTINGS: "settings",
    BREAK_CONFIGURATION: "break configuration",
    TRIPS: "trips",
    EXPENSES: "expenses",
    SHIFTS: "shifts",
    SUPPLIERS: "suppliers",
    CONCEPTS: "concepts",
    WORKSHOPS: "workshops",
    EXCEPTIONS: "calendar exceptions",
}

_COUNTED = (TRIPS, EXPENSES, SHIFTS)


def validate_payload(data: Union[BackupPayload, Mapping[str, Any], Any]) -> BackupPayload:
    """Return ``data`` as a payload, or raise ``BackupValidationError``.

    The only hard requirement is the format marker in ``meta.app``;
    ``meta.version`` is carried but not checked.
    """
    if isinstance(data, BackupPayload):
        app = data.meta.app
        payload = data
    elif isinstance(data, Mapping):
        meta = data.get("meta")
        app = meta.get("app") if isinstance(meta, Mapping) else None
        payload = None
    else:
        raise BackupValidationError(
            "Invalid backup file: expected a JSON object at the top level."
        )

    if app != BACKUP_APP:
        raise BackupValidationError(
            f"Invalid backup file: it was not created by {BACKUP_APP} "
            f"(format marker {app!r}). Choose a file produced by the app's backup."
        )
    return payload if payload is not None else BackupPayload.from_dict(data)


def _reporter(on_progress: Optional[ProgressCallback]) -> Callable[[float, str], None]:
    def report(percentage: float, message: str) -> None:
        if on_progress is not None:
            on_progress(min(100, max(0, round(percentage))), message)

    return report


async def restore_backup(
    store: LocalStore,
    data: Union[BackupPayload, Mapping[str, Any]],
    on_progress: Optional[ProgressCallback] = None,
) -> RestoreSummary:
    """Validate ``data`` and write it into ``store``.

    ``on_progress(percentage, message)`` is called at the start of every
    step and every ``PROGRESS_ITEM_STRIDE`` records inside a list step; the
    last call is always ``(100, "done")``.  Records are upserted by id, so
    running the same restore twice leaves the same record set.
    """
    payload = validate_payload(data)
    report = _reporter(on_progress)
    summary = RestoreSummary()
    completed: List[str] = []
    slice_size = 100 / RESTORE_TOTAL_STEPS

    logger.info("Restoring backup created at %s", payload.meta.created_at or "unknown time")

    for index, key in enumerate(RESTORE_ORDER):
        label = _STEP_LABELS[key]
        base = index * slice_size
        report(base, f"Restoring {label}...")
        try:
            if key in SINGLETON_COLLECTIONS:
                value = payload.collection(key)
                if value:
                    if key == SETTINGS:
                        value = upgrade_legacy_settings(value)
                    await store.save_singleton(key, value)
            else:
                records = payload.collection(key) or []
                total = len(records)
                for position, record in enumerate(records):
                    if position % PROGRESS_ITEM_STRIDE == 0:
                        report(
                            base + position / total * slice_size,
                            f"Restoring {label} ({position + 1}/{total})...",
                        )
                    await store.restore_record(key, record)
                    if key in _COUNTED:
                        setattr(summary, key, getattr(summary, key) + 1)
        except Exception as exc:
            logger.exception("Restore aborted during %s after %s", key, completed or "no steps")
            raise RestoreAbortedError(key, completed, summary, str(exc)) from exc
        completed.append(key)
        logger.info("Restored %s", label)

    report(100, DONE_MESSAGE)
    logger.info(
        "Restore finished: %d trips, %d expenses, %d shifts",
        summary.trips, summary.expenses, summary.shifts,
    )
    return summary

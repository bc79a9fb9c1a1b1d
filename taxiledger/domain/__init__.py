"""
taxiledger.domain - canonical types shared by the store, the backup core
and the transport adapters.
"""

from taxiledger.domain.enums import CellKind
from taxiledger.domain.models import (
    BackupMeta,
    BackupPayload,
    ExportResult,
    RestoreSummary,
    UploadedBlob,
)

__all__ = [
    "CellKind",
    "BackupMeta",
    "BackupPayload",
    "ExportResult",
    "RestoreSummary",
    "UploadedBlob",
]

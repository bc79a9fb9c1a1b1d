"""
Exceptions raised by the backup subsystem.

Every message is meant to be shown to the user as-is, so it names the
failed action and, where one exists, what to check next.
"""

from __future__ import annotations

from typing import Optional, Sequence

from taxiledger.domain.models import RestoreSummary

_PERMISSION_HINTS = ("401", "403", "permission", "unauthorized", "forbidden", "unverified")


class BackupError(Exception):
    """Base class for backup, export and restore failures."""


class BackupValidationError(BackupError):
    """The input is not a backup this application can restore.

    Raised before anything is written.
    """


class TransportError(BackupError):
    """A transport adapter call failed or returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def from_exception(cls, action: str, exc: BaseException) -> "TransportError":
        """Wrap ``exc`` with a remediation-oriented message for ``action``."""
        if isinstance(exc, TransportError):
            status_code = exc.status_code
        else:
            status_code = getattr(exc, "status_code", None)
        detail = str(exc) or type(exc).__name__
        lowered = detail.lower()
        if status_code in (401, 403) or any(h in lowered for h in _PERMISSION_HINTS):
            hint = (
                "This looks like a permission problem: sign in again and make "
                "sure every requested access scope was granted."
            )
        else:
            hint = (
                "Check that you are online, that access to the remote account "
                "was authorized, and that the account has free space."
            )
        return cls(f"{action} failed: {detail}\n\n{hint}", status_code=status_code)


class RestoreAbortedError(BackupError):
    """A write failed part-way through a restore.

    Collections listed in ``completed_steps`` were fully replaced; ``step``
    was partially applied; later collections were not touched.  The local
    store must be treated as indeterminate until the restore is re-run.
    """

    def __init__(
        self,
        step: str,
        completed_steps: Sequence[str],
        summary: RestoreSummary,
        reason: str,
    ) -> None:
        super().__init__(
            f"Restore stopped while restoring {step}: {reason}. "
            f"Completed: {', '.join(completed_steps) or 'nothing'}. "
            "Run the restore again to bring the data back to a consistent state."
        )
        self.step = step
        self.completed_steps = list(completed_steps)
        self.summary = summary

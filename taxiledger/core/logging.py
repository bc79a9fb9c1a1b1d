"""
Logging setup shared by the API server and the CLI.

``configure_logging()`` installs a single stdout handler on the root logger
and lowers the chatter of the libraries the backup paths drive (HTTP
client, ORM, spreadsheet writer).  Modules log through
``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from taxiledger import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are only interesting when something breaks.
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "openpyxl",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "uvicorn.access",
)

_configured = False


def resolve_level(level: Optional[str] = None) -> int:
    """``"debug"`` → ``logging.DEBUG``; unknown names fall back to INFO."""
    name = (level or config.LOG_LEVEL or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger on first call; later calls are no-ops.

    ``level`` overrides ``config.LOG_LEVEL``.  When uvicorn has already
    attached handlers they are left in place and only the level changes.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True

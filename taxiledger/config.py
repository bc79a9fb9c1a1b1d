"""
Centralized configuration for Taxi Ledger.
All settings come from environment variables for 12-factor deployment.
"""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# ---------------------------------------------------------------------------
# Local store
# ---------------------------------------------------------------------------
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(BASE_DIR, 'taxiledger.db')}",
)
DATABASE_ECHO = _env_bool("DATABASE_ECHO", False)

# ---------------------------------------------------------------------------
# Backup destinations
# ---------------------------------------------------------------------------
# Directory that receives JSON backup files ("download" target).
BACKUP_DIR = os.environ.get("BACKUP_DIR", os.path.join(BASE_DIR, "backups"))
# Directory holding the .xlsx files of the local spreadsheet adapter.
WORKBOOK_DIR = os.environ.get("WORKBOOK_DIR", os.path.join(BASE_DIR, "workbooks"))

# ---------------------------------------------------------------------------
# Google REST endpoints (session tokens are passed per call, never cached here)
# ---------------------------------------------------------------------------
GOOGLE_SHEETS_API_URL = os.environ.get(
    "GOOGLE_SHEETS_API_URL", "https://sheets.googleapis.com/v4/spreadsheets"
)
GOOGLE_DRIVE_UPLOAD_URL = os.environ.get(
    "GOOGLE_DRIVE_UPLOAD_URL", "https://www.googleapis.com/upload/drive/v3/files"
)
TRANSPORT_TIMEOUT_SECONDS = float(os.environ.get("TRANSPORT_TIMEOUT_SECONDS", "30"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
PORT = int(os.environ.get("PORT", "8001"))
CORS_ORIGINS = [
    s.strip()
    for s in os.environ.get("CORS_ORIGINS", "*").split(",")
    if s.strip()
]

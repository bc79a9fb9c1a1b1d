"""
Taxi Ledger - command-line backup tool.

Usage::

    python -m taxiledger.cli backup --out backups/
    python -m taxiledger.cli restore backups/tappxi-backup-....json
    python -m taxiledger.cli export-workbook --dir workbooks/
    python -m taxiledger.cli restore-workbook <id> --dir workbooks/
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from taxiledger import config
from taxiledger.backup.errors import BackupError
from taxiledger.backup.service import (
    export_to_sheets,
    restore_from_json,
    restore_from_sheets,
    write_backup_file,
)
from taxiledger.core.logging import configure_logging
from taxiledger.store import LocalStore
from taxiledger.transport.workbook import WorkbookSheetsTransport


def print_progress(percentage: int, message: str) -> None:
    print(f"[{percentage:3d}%] {message}", flush=True)


def _print_summary(summary) -> None:
    print()
    print(f"  Trips restored:    {summary.trips}")
    print(f"  Expenses restored: {summary.expenses}")
    print(f"  Shifts restored:   {summary.shifts}")


async def _run(args: argparse.Namespace) -> None:
    store = LocalStore.from_url(args.database)

    if args.command == "backup":
        path = await write_backup_file(store, args.out)
        print(f"Backup written to {path}")

    elif args.command == "restore":
        summary = await restore_from_json(store, args.file, on_progress=print_progress)
        _print_summary(summary)

    elif args.command == "export-workbook":
        result = await export_to_sheets(store, WorkbookSheetsTransport(args.dir), title=args.title)
        print(f"Exported spreadsheet {result.spreadsheet_id}")
        print(f"  {result.url}")

    elif args.command == "restore-workbook":
        summary = await restore_from_sheets(
            store, WorkbookSheetsTransport(args.dir), args.spreadsheet_id, on_progress=print_progress,
        )
        _print_summary(summary)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taxi Ledger - backup, export and restore")
    parser.add_argument(
        "--database",
        default=config.DATABASE_URL,
        help="SQLAlchemy database URL (default: DATABASE_URL)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    backup = commands.add_parser("backup", help="Write a JSON backup file")
    backup.add_argument("--out", default=config.BACKUP_DIR, help="Directory for the backup file")

    restore = commands.add_parser("restore", help="Restore from a JSON backup file")
    restore.add_argument("file", help="Path to a backup file")

    export = commands.add_parser("export-workbook", help="Export every collection to an .xlsx workbook")
    export.add_argument("--dir", default=config.WORKBOOK_DIR, help="Directory holding workbooks")
    export.add_argument("--title", default=None, help="Workbook title")

    restore_wb = commands.add_parser("restore-workbook", help="Restore from an exported .xlsx workbook")
    restore_wb.add_argument("spreadsheet_id", help="Id printed by export-workbook")
    restore_wb.add_argument("--dir", default=config.WORKBOOK_DIR, help="Directory holding workbooks")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    try:
        asyncio.run(_run(args))
    except BackupError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Transport adapters: where backups and spreadsheet exports actually go.

* ``memory``   - in-process, for tests and development
* ``workbook`` - local ``.xlsx`` files (openpyxl) and a backup directory
* ``google``   - Google Sheets / Drive REST APIs over httpx
"""

from taxiledger.transport.base import BlobUploader, SheetsTransport, parse_range_ref

__all__ = ["BlobUploader", "SheetsTransport", "parse_range_ref"]

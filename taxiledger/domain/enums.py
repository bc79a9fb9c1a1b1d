"""
taxiledger.domain.enums - enumerations used across the package.

Keep this module import-clean (stdlib only).
"""

from enum import Enum


class CellKind(str, Enum):
    """
    Variant tag of a spreadsheet cell.

    A grid on the wire only holds strings, numbers, booleans and blanks;
    the tag records what the value *means* so encoding and decoding stay
    symmetric.  ``DATE`` cells travel as ISO-8601 text and ``JSON`` cells as
    serialized objects/arrays.
    """
    EMPTY   = "empty"
    NUMBER  = "number"
    BOOLEAN = "boolean"
    TEXT    = "text"
    DATE    = "date"
    JSON    = "json"


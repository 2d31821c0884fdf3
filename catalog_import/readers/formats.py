from __future__ import annotations

from enum import Enum
from pathlib import PurePath

"""File format enum, detection and the ParseError raised by every reader."""

__all__ = [
    "FileFormat",
    "ParseError",
    "detect_format",
]

XLSX_SIGNATURE = b"PK\x03\x04"  # xlsx は zip コンテナ


class ParseError(Exception):
    """Raised when a file is empty or structurally unreadable."""


class FileFormat(Enum):
    CSV = "csv"
    XLSX = "xlsx"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def import_type(self) -> str:
        """Value reported to the snapshot collaborator."""
        return f"bulk_{self.value}"

    @classmethod
    def from_name(cls, name: str) -> FileFormat:
        try:
            return cls(name.strip().lower().lstrip("."))
        except ValueError as e:
            raise ParseError(f"unsupported file format: {name}") from e


_EXTENSIONS = {
    ".csv": FileFormat.CSV,
    ".txt": FileFormat.CSV,
    ".xlsx": FileFormat.XLSX,
}


def detect_format(filename: str | None, data: bytes) -> FileFormat:
    """Pick the reader for an upload.

    The extension decides when it is known; otherwise the zip signature marks
    xlsx and anything that decodes as text is treated as CSV.
    """
    suffix = PurePath(filename).suffix.lower() if filename else ""
    if suffix in _EXTENSIONS:
        return _EXTENSIONS[suffix]
    if suffix == ".xls":
        raise ParseError("legacy .xls workbooks are not supported, save as .xlsx")
    if data.startswith(XLSX_SIGNATURE):
        return FileFormat.XLSX
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"unsupported file format: {filename or '<unnamed>'}") from e
    return FileFormat.CSV

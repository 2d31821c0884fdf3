from __future__ import annotations

from dataclasses import dataclass, field

"""RawTable model.

Generic table produced by a format reader before normalization: lower-cased
headers plus one dict per data row (header -> string value). Never persisted.
"""

__all__ = [
    "RawTable",
]


@dataclass(frozen=True)
class RawTable:
    """Header row plus raw data rows, identical shape for CSV and XLSX input."""
    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)
    sheet_name: str | None = None  # xlsx のみ (読み込んだシート名)

    @property
    def row_count(self) -> int:
        return len(self.rows)

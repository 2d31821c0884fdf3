from __future__ import annotations

from dataclasses import asdict, dataclass

"""CanonicalRow model.

The normalized, format independent product record used by validation, apply
and export. Every field is a string; a field the source file did not provide
is the empty string.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "REQUIRED_FIELDS",
    "CanonicalRow",
    "sheet_row_number",
]

# Column order shared by the normalizer and the export serializer
CANONICAL_FIELDS: tuple[str, ...] = (
    "handle",
    "title",
    "description",
    "tags",
    "image",
    "category",
    "price",
    "sku",
)

REQUIRED_FIELDS: tuple[str, ...] = ("handle", "title", "description")


def sheet_row_number(index: int) -> int:
    """Convert a 0-based data row index to the spreadsheet row number.

    Row 1 is the header row, so the first data row is row 2.
    """
    return index + 2


@dataclass(frozen=True)
class CanonicalRow:
    handle: str = ""
    title: str = ""
    description: str = ""
    tags: str = ""  # comma-joined keyword list
    image: str = ""  # URI
    category: str = ""
    price: str = ""
    sku: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def values(self) -> list[str]:
        """Field values in CANONICAL_FIELDS order."""
        return [getattr(self, name) for name in CANONICAL_FIELDS]

    def missing_required(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]

    def keywords(self) -> list[str]:
        """Tags split on commas, trimmed and lower-cased (empty entries dropped)."""
        if not self.tags:
            return []
        return [k.strip().lower() for k in self.tags.split(",") if k.strip()]

from __future__ import annotations

import logging

from ..models.canonical_row import CanonicalRow
from ..models.raw_table import RawTable

"""Row normalizer: RawTable -> CanonicalRow list.

Each canonical field has an ordered list of accepted header aliases; the
first alias present in the table's headers wins. Exports from different
source systems therefore need no per-source configuration.
"""

__all__ = [
    "FIELD_ALIASES",
    "resolve_columns",
    "normalize",
]

logger = logging.getLogger(__name__)

FIELD_ALIASES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("handle", ("handle", "id", "product_handle")),
    ("title", ("title", "name", "product_title")),
    ("description", ("description", "body", "product_description")),
    ("tags", ("tags", "keywords")),
    ("image", ("image", "image_url", "images")),
    ("category", ("category", "product_type", "type")),
    ("price", ("price", "variant_price")),
    ("sku", ("sku", "variant_sku")),
)


def resolve_columns(headers: list[str]) -> dict[str, str | None]:
    """Map each canonical field to the raw header that feeds it (or None)."""
    present = set(headers)
    mapping: dict[str, str | None] = {}
    for field_name, aliases in FIELD_ALIASES:
        mapping[field_name] = next((a for a in aliases if a in present), None)
    return mapping


def normalize(table: RawTable) -> list[CanonicalRow]:
    """Build one CanonicalRow per raw row. Never raises.

    Unresolvable fields are left as the empty string.
    """
    mapping = resolve_columns(table.headers)
    unmapped = [f for f, h in mapping.items() if h is None]
    if unmapped:
        logger.debug("no source column for fields=%s headers=%s", unmapped, table.headers)

    rows: list[CanonicalRow] = []
    for raw in table.rows:
        values = {
            field_name: (raw.get(header) or "") if header is not None else ""
            for field_name, header in mapping.items()
        }
        rows.append(CanonicalRow(**values))
    return rows

from __future__ import annotations

import copy
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

from ..models.canonical_row import CanonicalRow
from ..models.import_session import SnapshotContext, SnapshotHandle

"""In-memory catalog implementing both apply collaborators.

Used for mock mode (DISABLE_DB_CONNECT=1) and in tests.
"""


class InMemoryCatalog:
    def __init__(self, products: Sequence[CanonicalRow] = ()) -> None:
        self.products: dict[str, CanonicalRow] = {p.handle: p for p in products}
        self.snapshots: dict[str, dict[str, CanonicalRow]] = {}
        self.calls: list[str] = []  # 呼び出し順 (テスト用)

    def create_snapshot(self, context: SnapshotContext) -> SnapshotHandle:
        self.calls.append("create_snapshot")
        snapshot_id = uuid.uuid4().hex
        self.snapshots[snapshot_id] = copy.copy(self.products)
        return SnapshotHandle(
            snapshot_id=snapshot_id,
            created_at=datetime.now(UTC),
            product_count=len(self.products),
        )

    def apply_catalog_write(self, rows: Sequence[CanonicalRow]) -> int:
        self.calls.append("apply_catalog_write")
        for row in rows:
            self.products[row.handle] = row
        return len(rows)

    def restore(self, snapshot_id: str) -> int:
        if snapshot_id not in self.snapshots:
            raise LookupError(f"snapshot not found: {snapshot_id}")
        self.products = copy.copy(self.snapshots[snapshot_id])
        return len(self.products)

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import psycopg2
from psycopg2.extras import Json

from ..models.canonical_row import CANONICAL_FIELDS, CanonicalRow
from ..models.import_session import SnapshotContext, SnapshotHandle
from ..services.orchestrator import SnapshotFailure, WriteFailure
from ..services.progress import ProgressTracker
from .batch_upsert import BatchMetrics, BatchUpsertError, batch_upsert

"""PostgreSQL implementations of the two apply collaborators.

PostgresSnapshotStore copies the whole product table into one
product_snapshots row and commits before returning, so the snapshot
survives a failed write. PostgresCatalogWriter upserts every row keyed by
handle inside a single transaction.
"""

__all__ = [
    "SNAPSHOT_REASON",
    "PostgresSnapshotStore",
    "PostgresCatalogWriter",
    "ensure_schema",
]

logger = logging.getLogger(__name__)

SNAPSHOT_REASON = "before_bulk_import"

_PRODUCTS_DDL = """
CREATE TABLE IF NOT EXISTS {products} (
    handle text PRIMARY KEY,
    title text NOT NULL,
    description text NOT NULL,
    tags text NOT NULL DEFAULT '',
    image text NOT NULL DEFAULT '',
    category text NOT NULL DEFAULT '',
    price text NOT NULL DEFAULT '',
    sku text NOT NULL DEFAULT ''
)
"""

_SNAPSHOTS_DDL = """
CREATE TABLE IF NOT EXISTS {snapshots} (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    import_type text NOT NULL,
    product_count integer NOT NULL,
    reason text NOT NULL,
    snapshot_data jsonb NOT NULL,
    created_at timestamptz NOT NULL DEFAULT now()
)
"""


def _rollback_quietly(conn: Any) -> None:
    try:
        conn.rollback()
    except psycopg2.Error:
        logger.warning("rollback failed", exc_info=True)


def ensure_schema(conn: Any, products_table: str, snapshots_table: str) -> None:
    """Create the product and snapshot tables when they do not exist."""
    with conn.cursor() as cur:
        cur.execute(_PRODUCTS_DDL.format(products=products_table))
        cur.execute(_SNAPSHOTS_DDL.format(snapshots=snapshots_table))
    conn.commit()


def _throughput(metrics: BatchMetrics) -> float:
    if metrics.elapsed_seconds <= 0:
        return 0.0
    return metrics.batch_size / metrics.elapsed_seconds

class PostgresSnapshotStore:
    def __init__(
        self,
        conn: Any,
        products_table: str = "products",
        snapshots_table: str = "product_snapshots",
    ) -> None:
        self._conn = conn
        self._products = products_table
        self._snapshots = snapshots_table

    def create_snapshot(self, context: SnapshotContext) -> SnapshotHandle:
        try:
            with self._conn.cursor() as cur:
                cur.execute(
                    f"SELECT COALESCE(json_agg(row_to_json(p)), '[]'::json) FROM {self._products} p"
                )
                (products,) = cur.fetchone()
                cur.execute(
                    f"INSERT INTO {self._snapshots} "
                    "(import_type, product_count, reason, snapshot_data) "
                    "VALUES (%s, %s, %s, %s) RETURNING id, created_at",
                    (context.import_type, context.product_count, SNAPSHOT_REASON, Json(products)),
                )
                snapshot_id, created_at = cur.fetchone()
            self._conn.commit()
        except psycopg2.Error as e:
            _rollback_quietly(self._conn)
            raise SnapshotFailure(f"snapshot failed: {e}") from e

        logger.debug(
            "snapshot id=%s captured_products=%d import_type=%s",
            snapshot_id,
            len(products or []),
            context.import_type,
        )
        return SnapshotHandle(
            snapshot_id=str(snapshot_id),
            created_at=created_at,
            product_count=len(products or []),
        )

    def restore(self, snapshot_id: str) -> int:
        """Replace the product table with the snapshot's contents (manual rollback)."""
        try:
            with self._conn.cursor() as cur:
                cur.execute(
                    f"SELECT snapshot_data FROM {self._snapshots} WHERE id = %s", (snapshot_id,)
                )
                found = cur.fetchone()
                if found is None:
                    raise LookupError(f"snapshot not found: {snapshot_id}")
                (products,) = found
                cur.execute(f"DELETE FROM {self._products}")
                cur.execute(
                    f"INSERT INTO {self._products} "
                    f"SELECT * FROM json_populate_recordset(NULL::{self._products}, %s)",
                    (Json(products),),
                )
            self._conn.commit()
        except (psycopg2.Error, LookupError):
            _rollback_quietly(self._conn)
            raise
        logger.info("restored snapshot id=%s products=%d", snapshot_id, len(products))
        return len(products)


class PostgresCatalogWriter:
    def __init__(self, conn: Any, products_table: str = "products", page_size: int = 500) -> None:
        self._conn = conn
        self._products = products_table
        self._page_size = page_size

    def apply_catalog_write(self, rows: Sequence[CanonicalRow]) -> int:
        columns = list(CANONICAL_FIELDS)
        batches: list[BatchMetrics] = []
        try:
            with ProgressTracker(len(rows)) as progress, self._conn.cursor() as cur:
                for start in range(0, len(rows), self._page_size):
                    page = rows[start : start + self._page_size]
                    batch_upsert(
                        cur,
                        table=self._products,
                        columns=columns,
                        rows=[r.values() for r in page],
                        conflict_column="handle",
                        page_size=self._page_size,
                        metrics_callback=batches.append,
                    )
                    progress.advance(len(page))
                    progress.set_postfix(rps=f"{_throughput(batches[-1]):.0f}")
            self._conn.commit()
        except (BatchUpsertError, psycopg2.Error) as e:
            _rollback_quietly(self._conn)
            raise WriteFailure(f"catalog write failed: {e}") from e

        elapsed = sum(m.elapsed_seconds for m in batches)
        logger.info(
            "upserted rows=%d batches=%d elapsed_sec=%.2f", len(rows), len(batches), elapsed
        )
        return len(rows)

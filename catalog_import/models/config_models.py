from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the bulk product importer.

Loaded from YAML by catalog_import.config.loader; every section is optional
and falls back to the defaults declared here.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class CatalogConfig:
    products_table: str = "products"
    snapshots_table: str = "product_snapshots"
    page_size: int = 500  # execute_values page_size


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for parse, validate and apply."""
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    csv_encoding: str = "utf-8-sig"
    error_log_dir: str = "./logs"

# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from catalog_import.logging.init import reset_logging
from tests.helpers import LONG_DESCRIPTION


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """catalog:
  products_table: products
  snapshots_table: product_snapshots
  page_size: 2
csv:
  encoding: utf-8-sig
logging:
  error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def valid_csv_bytes() -> bytes:
    return (
        "Handle,Title,Description,Tags,Price\n"
        f'p1,"Wireless Headphones","{LONG_DESCRIPTION}","audio, music",59.00\n'
        f'p2,"Smart Watch","{LONG_DESCRIPTION}","tech, wearable",129.00\n'
    ).encode("utf-8")

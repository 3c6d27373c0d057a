# Shared pytest fixtures
from __future__ import annotations

import tempfile
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd
import pytest

from mindful_mapper.config.loader import DatabaseConfig, MapperConfig
from mindful_mapper.db.memory import InMemoryStore
from mindful_mapper.logging.init import reset_logging
from mindful_mapper.services.commands import CommandContext

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # 実環境の接続設定がテストに混入しないようにする
    for name in (
        "MAPPER_BACKEND",
        "MONGODB_URI",
        "MONGODB_DB_NAME",
        "MONGODB_DB_COLLECTION",
        "ID_PREFIX",
        "DISABLE_DB_CONNECT",
        "DATABASE_URL",
        "POSTGRES_URI",
        "PGDSN",
        "PGHOST",
        "PGPORT",
        "PGUSER",
        "PGPASSWORD",
        "PGDATABASE",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  backend: memory
default_collection: products
id_prefix: spb
counter_key: item_id
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "mapper.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def memory_config() -> MapperConfig:
    return MapperConfig(database=DatabaseConfig(backend="memory"), default_collection="items")


@pytest.fixture()
def ctx(memory_config: MapperConfig, memory_store: InMemoryStore) -> CommandContext:
    return CommandContext.create(memory_config, memory_store)


@pytest.fixture()
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture()
def make_workbook(tmp_path: Path):
    """Factory writing ``rows`` (first row = headers) to an .xlsx file."""

    def _make(rows: list[list[object]], name: str = "products.xlsx", sheet: str = "Sheet1") -> Path:
        path = tmp_path / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path

    return _make


@pytest.fixture()
def product_workbook(make_workbook) -> Path:
    return make_workbook(
        [
            ["SKU", "Name EN", "Name FR", "Price Tag"],
            ["B01", "Brownie", "Petit Gateau", 4.5],
            ["C02", "Cookie", "Biscuit", 2],
            ["T03", "Tart", "Tarte", 6],
        ]
    )

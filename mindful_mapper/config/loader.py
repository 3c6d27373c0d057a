from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (default config/mapper.yml, optional)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults
- Apply environment overrides (.env is loaded by the CLI before this runs)
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/mapper.yml")

DEFAULT_BACKEND = "mongo"
DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
DEFAULT_MONGODB_DB_NAME = "mindful_db"
DEFAULT_COLLECTION = "items"
DEFAULT_ID_PREFIX = "spb"
DEFAULT_COUNTER_KEY = "item_id"
DEFAULT_COUNTERS_COLLECTION = "counters"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    backend: str = DEFAULT_BACKEND  # mongo | postgres | memory
    # MongoDB
    uri: str = DEFAULT_MONGODB_URI
    name: str = DEFAULT_MONGODB_DB_NAME
    # PostgreSQL (dsn が優先、無ければ個別項目から組み立て)
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None


@dataclass(frozen=True)
class MapperConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    default_collection: str = DEFAULT_COLLECTION
    id_prefix: str = DEFAULT_ID_PREFIX
    counter_key: str = DEFAULT_COUNTER_KEY
    counters_collection: str = DEFAULT_COUNTERS_COLLECTION
    keep_na_strings: list[str] | None = None
    error_log_dir: str | None = None


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or config data fails
            validation (unknown keys, wrong types, bad backend name)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path | None = None, *, required: bool = False) -> MapperConfig:
    """Load and validate a config file.

    Args:
        path: YAML file. None -> DEFAULT_CONFIG_PATH
        required: if True a missing file is an error, otherwise defaults are used

    Raises:
        ConfigError: missing (when required), unparsable or invalid config
    """
    path = path or DEFAULT_CONFIG_PATH
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return MapperConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    db_raw = data.get("database", {})
    db = DatabaseConfig(
        backend=db_raw.get("backend", DEFAULT_BACKEND),
        uri=db_raw.get("uri", DEFAULT_MONGODB_URI),
        name=db_raw.get("name", DEFAULT_MONGODB_DB_NAME),
        dsn=db_raw.get("dsn"),
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
    )
    return MapperConfig(
        database=db,
        default_collection=data.get("default_collection", DEFAULT_COLLECTION),
        id_prefix=data.get("id_prefix", DEFAULT_ID_PREFIX),
        counter_key=data.get("counter_key", DEFAULT_COUNTER_KEY),
        counters_collection=data.get("counters_collection", DEFAULT_COUNTERS_COLLECTION),
        keep_na_strings=data.get("keep_na_strings"),
        error_log_dir=data.get("error_log_dir"),
    )


def apply_env_overrides(cfg: MapperConfig, environ: Mapping[str, str] | None = None) -> MapperConfig:
    """Return a copy of ``cfg`` with environment variables taking precedence.

    MAPPER_BACKEND, MONGODB_URI, MONGODB_DB_NAME, MONGODB_DB_COLLECTION, ID_PREFIX.
    DISABLE_DB_CONNECT=1 forces the in-memory backend (mock mode).
    PostgreSQL variables (DATABASE_URL, PG*) are resolved in db.connection.
    """
    env = os.environ if environ is None else environ
    db = cfg.database
    backend = env.get("MAPPER_BACKEND", db.backend)
    if env.get("DISABLE_DB_CONNECT") == "1":
        backend = "memory"
    if backend not in ("mongo", "postgres", "memory"):
        raise ConfigError(f"unknown backend: {backend}")
    db = replace(
        db,
        backend=backend,
        uri=env.get("MONGODB_URI", db.uri),
        name=env.get("MONGODB_DB_NAME", db.name),
    )
    return replace(
        cfg,
        database=db,
        default_collection=env.get("MONGODB_DB_COLLECTION", cfg.default_collection),
        id_prefix=env.get("ID_PREFIX", cfg.id_prefix),
    )

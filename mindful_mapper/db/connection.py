from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from ..config.loader import DatabaseConfig, MapperConfig
from .memory import InMemoryStore
from .store import RecordStore

"""Store construction.

open_store() builds the single store handle for the process. The handle is
passed explicitly to the orchestrator / commands; the underlying connection
is opened lazily by the store on first use.
"""

__all__ = [
    "open_store",
    "resolve_pg_dsn",
]

logger = logging.getLogger(__name__)


def resolve_pg_dsn(db_cfg: DatabaseConfig, environ: Mapping[str, str] | None = None) -> str:
    """Resolve the PostgreSQL DSN.

    優先順位:
        1. DATABASE_URL / POSTGRES_URI / PGDSN (DSN 全体)
        2. config の database.dsn
        3. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE、
           不足分は config の host/port/user/password/database
    """
    env = os.environ if environ is None else environ
    dsn = env.get("DATABASE_URL") or env.get("POSTGRES_URI") or env.get("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = env.get("PGHOST", db_cfg.host or "localhost")
    port = env.get("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = env.get("PGUSER", db_cfg.user or "postgres")
    password = env.get("PGPASSWORD", db_cfg.password or "")
    database = env.get("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def open_store(cfg: MapperConfig, environ: Mapping[str, str] | None = None) -> RecordStore:
    """Create the store for ``cfg.database.backend`` (no I/O happens here)."""
    backend = cfg.database.backend
    if backend == "memory":
        logger.debug("backend=memory (mock mode, nothing is persisted)")
        return InMemoryStore()
    if backend == "postgres":
        from .postgres import PostgresStore

        logger.debug("backend=postgres")
        return PostgresStore(resolve_pg_dsn(cfg.database, environ), counters_table=cfg.counters_collection)
    if backend == "mongo":
        from .mongo import MongoStore

        logger.debug("backend=mongo database=%s", cfg.database.name)
        return MongoStore(
            cfg.database.uri,
            cfg.database.name,
            counters_collection=cfg.counters_collection,
        )
    raise ValueError(f"unknown backend: {backend}")

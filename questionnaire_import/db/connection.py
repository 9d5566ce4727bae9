from __future__ import annotations

import os
from typing import Any

import psycopg2

from ..config.loader import DatabaseConfig

"""PostgreSQL connection helpers for the direct-database project sink.

DSN resolution order:
    1. DATABASE_URL / PGDSN environment variables (.env is loaded first by the CLI)
    2. config ``database.dsn``
    3. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each
       falling back to the matching config ``database`` key
"""

__all__ = [
    "resolve_dsn",
    "connect",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def connect(db_cfg: DatabaseConfig) -> Any:
    """Open a psycopg2 connection with explicit transactions (autocommit off)."""
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    return conn


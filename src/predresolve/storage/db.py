"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Last bulk listing of active markets (replaced wholesale on each sync)
CREATE TABLE IF NOT EXISTS market_index (
    slug            VARCHAR NOT NULL,
    seq             INTEGER NOT NULL,
    ticker          VARCHAR,
    strike_price    DOUBLE,
    deadline        BIGINT
);

-- Single-row metadata about the stored index
CREATE TABLE IF NOT EXISTS index_meta (
    id              INTEGER NOT NULL,
    refreshed_at    BIGINT NOT NULL,
    entry_count     INTEGER NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise

"""DuckDB connection, schema init and write transactions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb
import structlog

from moveengine.errors import StorageWriteError

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

SCHEMA_SQL = """
-- Static reference data
CREATE TABLE IF NOT EXISTS platforms (
    platform_id     VARCHAR PRIMARY KEY,
    name            VARCHAR NOT NULL
);

-- Market metadata, refreshed on every ingestion run
CREATE TABLE IF NOT EXISTS markets (
    platform_id     VARCHAR NOT NULL,
    market_id       VARCHAR NOT NULL,
    title           VARCHAR,
    rules           VARCHAR,
    close_time      VARCHAR,
    status          VARCHAR,
    raw             JSON,
    updated_at      BIGINT,
    PRIMARY KEY (platform_id, market_id)
);

-- Probability time series (upsert on exact timestamp only)
CREATE TABLE IF NOT EXISTS snapshots (
    platform_id     VARCHAR NOT NULL,
    market_id       VARCHAR NOT NULL,
    ts              BIGINT NOT NULL,
    prob_yes        DOUBLE,
    raw             JSON,
    PRIMARY KEY (platform_id, market_id, ts)
);

-- Derived windowed moves
CREATE TABLE IF NOT EXISTS moves (
    platform_id     VARCHAR NOT NULL,
    market_id       VARCHAR NOT NULL,
    window_key      VARCHAR NOT NULL,
    end_ts          BIGINT NOT NULL,
    prob_now        DOUBLE NOT NULL,
    prob_then       DOUBLE NOT NULL,
    delta           DOUBLE NOT NULL,
    trust_score     INTEGER,
    PRIMARY KEY (platform_id, market_id, window_key, end_ts)
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    Use read_only=True for readers (API, listings) while a run may hold the write lock."""
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


def _rollback(conn: DuckDBPyConnection) -> None:
    try:
        conn.rollback()
    except duckdb.Error as e:
        # Transaction already aborted by the failing statement.
        log.debug("rollback_skipped", error=str(e))


@contextmanager
def write_transaction(conn: DuckDBPyConnection, what: str) -> Iterator[DuckDBPyConnection]:
    """All-or-nothing write boundary. Rolls back and raises StorageWriteError on failure."""
    conn.begin()
    try:
        yield conn
        conn.commit()
    except duckdb.Error as e:
        _rollback(conn)
        raise StorageWriteError(f"{what} failed: {e}") from e
    except BaseException:
        _rollback(conn)
        raise

"""Platform reference data persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from moveengine.models import DEFAULT_PLATFORMS, Platform
from moveengine.storage.db import write_transaction

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def upsert_platforms(conn: DuckDBPyConnection, platforms: list[Platform] | None = None) -> int:
    """Insert or refresh platform rows. Returns number of rows written."""
    platforms = DEFAULT_PLATFORMS if platforms is None else platforms
    if not platforms:
        return 0
    with write_transaction(conn, "platform upsert"):
        conn.executemany(
            """
            INSERT INTO platforms (platform_id, name) VALUES (?, ?)
            ON CONFLICT (platform_id) DO UPDATE SET name = excluded.name
            """,
            [[p.platform_id, p.name] for p in platforms],
        )
    return len(platforms)


def list_platforms(conn: DuckDBPyConnection) -> list[Platform]:
    rows = conn.execute("SELECT platform_id, name FROM platforms ORDER BY platform_id").fetchall()
    return [Platform(platform_id=r[0], name=r[1]) for r in rows]

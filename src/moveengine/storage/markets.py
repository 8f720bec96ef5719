"""Market metadata persistence."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from moveengine.models import Market

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_COLUMNS = ["platform_id", "market_id", "title", "rules", "close_time", "status", "raw", "updated_at"]


def _market_row(market: Market) -> list[Any]:
    return [
        market.platform_id,
        market.market_id,
        market.title,
        market.rules,
        market.close_time,
        market.status,
        json.dumps(market.raw, sort_keys=True, default=str),
        market.updated_at,
    ]


def _row_market(row: tuple[Any, ...]) -> Market:
    data = dict(zip(_COLUMNS, row))
    raw = data.pop("raw")
    if isinstance(raw, str):
        raw = json.loads(raw)
    data["status"] = data["status"] or ""
    return Market(raw=raw or {}, **data)


def upsert_markets(conn: DuckDBPyConnection, markets: list[Market]) -> int:
    """Batch upsert on (platform_id, market_id). Caller owns the transaction."""
    if not markets:
        return 0
    conn.executemany(
        """
        INSERT INTO markets (platform_id, market_id, title, rules, close_time, status, raw, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (platform_id, market_id) DO UPDATE SET
            title = excluded.title,
            rules = excluded.rules,
            close_time = excluded.close_time,
            status = excluded.status,
            raw = excluded.raw,
            updated_at = excluded.updated_at
        """,
        [_market_row(m) for m in markets],
    )
    return len(markets)


def list_markets(
    conn: DuckDBPyConnection,
    platform_id: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Market]:
    """Markets ordered by most recently refreshed."""
    sql = f"SELECT {', '.join(_COLUMNS)} FROM markets"
    params: list[Any] = []
    if platform_id:
        sql += " WHERE platform_id = ?"
        params.append(platform_id)
    sql += " ORDER BY updated_at DESC NULLS LAST, market_id"
    if limit is not None:
        sql += " LIMIT ? OFFSET ?"
        params.extend([limit, offset])
    return [_row_market(r) for r in conn.execute(sql, params).fetchall()]


def count_markets(conn: DuckDBPyConnection, platform_id: str | None = None) -> int:
    if platform_id:
        return conn.execute("SELECT COUNT(*) FROM markets WHERE platform_id = ?", [platform_id]).fetchone()[0]
    return conn.execute("SELECT COUNT(*) FROM markets").fetchone()[0]

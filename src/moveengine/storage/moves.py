"""Move persistence - idempotent upsert writer and read-only queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from moveengine.models import Move
from moveengine.storage.db import write_transaction

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_MOVE_COLUMNS = [
    "platform_id",
    "market_id",
    "window_key",
    "end_ts",
    "prob_now",
    "prob_then",
    "delta",
    "trust_score",
]


def persist_moves(conn: DuckDBPyConnection, moves: list[Move]) -> int:
    """Batch upsert on (platform_id, market_id, window_key, end_ts), overwriting values.

    Re-running a window over the same snapshots rewrites identical rows; new
    snapshots produce a new end_ts key instead of touching history.
    """
    if not moves:
        return 0
    # Last one wins if a key repeats within the batch.
    by_key = {m.key(): m for m in moves}
    with write_transaction(conn, "move upsert"):
        conn.executemany(
            """
            INSERT INTO moves (platform_id, market_id, window_key, end_ts, prob_now, prob_then, delta, trust_score)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (platform_id, market_id, window_key, end_ts) DO UPDATE SET
                prob_now = excluded.prob_now,
                prob_then = excluded.prob_then,
                delta = excluded.delta,
                trust_score = excluded.trust_score
            """,
            [
                [m.platform_id, m.market_id, m.window_key, m.end_ts, m.prob_now, m.prob_then, m.delta, m.trust_score]
                for m in by_key.values()
            ],
        )
    return len(by_key)


def list_moves(
    conn: DuckDBPyConnection,
    window_key: str,
    platform_id: str | None = None,
    market_id: str | None = None,
) -> list[Move]:
    """All moves for a window in key order, oldest end_ts first within a market."""
    sql = f"SELECT {', '.join(_MOVE_COLUMNS)} FROM moves WHERE window_key = ?"
    params: list[Any] = [window_key]
    if platform_id:
        sql += " AND platform_id = ?"
        params.append(platform_id)
    if market_id:
        sql += " AND market_id = ?"
        params.append(market_id)
    sql += " ORDER BY platform_id, market_id, end_ts"
    return [Move(**dict(zip(_MOVE_COLUMNS, r))) for r in conn.execute(sql, params).fetchall()]


def count_moves(conn: DuckDBPyConnection, window_key: str | None = None) -> int:
    if window_key:
        return conn.execute("SELECT COUNT(*) FROM moves WHERE window_key = ?", [window_key]).fetchone()[0]
    return conn.execute("SELECT COUNT(*) FROM moves").fetchone()[0]


def latest_end_ts(conn: DuckDBPyConnection, window_key: str) -> int | None:
    """Freshest end_ts stored for a window, or None when empty."""
    return conn.execute("SELECT MAX(end_ts) FROM moves WHERE window_key = ?", [window_key]).fetchone()[0]


def top_moves(
    conn: DuckDBPyConnection,
    window_key: str,
    *,
    platform_id: str | None = None,
    start_ts: int | None = None,
    end_ts: int | None = None,
    candidate_limit: int = 500,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Biggest movers for a window.

    Takes the candidate_limit most recent moves (optionally within a date range),
    orders them by absolute delta and pages the result. Rows carry the market
    title and slug when the market is known.
    """
    conditions = ["window_key = ?"]
    params: list[Any] = [window_key]
    if platform_id:
        conditions.append("platform_id = ?")
        params.append(platform_id)
    if start_ts is not None:
        conditions.append("end_ts >= ?")
        params.append(start_ts)
    if end_ts is not None:
        conditions.append("end_ts <= ?")
        params.append(end_ts)
    where = " AND ".join(conditions)
    params.extend([candidate_limit, limit, offset])
    rows = conn.execute(
        f"""
        WITH recent AS (
            SELECT {', '.join(_MOVE_COLUMNS)} FROM moves
            WHERE {where}
            ORDER BY end_ts DESC, market_id
            LIMIT ?
        )
        SELECT r.platform_id, r.market_id, r.window_key, r.end_ts, r.prob_now, r.prob_then,
               r.delta, r.trust_score, m.title, json_extract_string(m.raw, '$.slug') AS slug
        FROM recent r
        LEFT JOIN markets m ON m.platform_id = r.platform_id AND m.market_id = r.market_id
        ORDER BY abs(r.delta) DESC, r.end_ts DESC, r.market_id
        LIMIT ? OFFSET ?
        """,
        params,
    ).fetchall()
    columns = [*_MOVE_COLUMNS, "title", "slug"]
    return [dict(zip(columns, r)) for r in rows]

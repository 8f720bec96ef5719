"""Snapshot time series persistence - (platform, market, ts) -> probability."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from moveengine.models import Snapshot

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_UPSERT_SQL = """
    INSERT INTO snapshots (platform_id, market_id, ts, prob_yes, raw)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT (platform_id, market_id, ts) DO UPDATE SET
        prob_yes = excluded.prob_yes,
        raw = excluded.raw
"""


def _snapshot_row(s: Snapshot) -> list[Any]:
    return [s.platform_id, s.market_id, s.ts, s.prob_yes, json.dumps(s.raw, sort_keys=True, default=str)]


def record_snapshot(
    conn: DuckDBPyConnection,
    platform_id: str,
    market_id: str,
    ts: int,
    prob_yes: float | None,
    raw: dict[str, Any] | None = None,
) -> None:
    """Upsert one snapshot. An unknown probability is stored as NULL, not skipped."""
    snap = Snapshot(platform_id=platform_id, market_id=market_id, ts=ts, prob_yes=prob_yes, raw=raw or {})
    conn.execute(_UPSERT_SQL, _snapshot_row(snap))


def upsert_snapshots(conn: DuckDBPyConnection, snapshots: list[Snapshot]) -> int:
    """Batch upsert on (platform_id, market_id, ts). Caller owns the transaction."""
    if not snapshots:
        return 0
    conn.executemany(_UPSERT_SQL, [_snapshot_row(s) for s in snapshots])
    return len(snapshots)


def read_since(
    conn: DuckDBPyConnection,
    platform_id: str,
    since_ts: int,
    market_id: str | None = None,
) -> dict[str, list[Snapshot]]:
    """Snapshots with ts >= since_ts grouped by market, each list ascending by ts.

    Null-probability rows are included; callers that need numeric values filter them.
    """
    sql = "SELECT market_id, ts, prob_yes FROM snapshots WHERE platform_id = ? AND ts >= ?"
    params: list[Any] = [platform_id, since_ts]
    if market_id:
        sql += " AND market_id = ?"
        params.append(market_id)
    sql += " ORDER BY market_id, ts ASC"
    series: dict[str, list[Snapshot]] = {}
    for mid, ts, prob in conn.execute(sql, params).fetchall():
        series.setdefault(mid, []).append(
            Snapshot(platform_id=platform_id, market_id=mid, ts=ts, prob_yes=prob)
        )
    return series


def count_snapshots(conn: DuckDBPyConnection, platform_id: str | None = None) -> int:
    if platform_id:
        return conn.execute("SELECT COUNT(*) FROM snapshots WHERE platform_id = ?", [platform_id]).fetchone()[0]
    return conn.execute("SELECT COUNT(*) FROM snapshots").fetchone()[0]


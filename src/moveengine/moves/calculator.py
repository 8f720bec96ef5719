"""Window delta calculator - "now" vs "then" probability per market and window."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from moveengine.models import DEFAULT_TRUST_SCORE, Move, Snapshot
from moveengine.moves.asof import latest_at_or_before
from moveengine.moves.windows import effective_lookback_ms, window_to_ms
from moveengine.storage.moves import persist_moves
from moveengine.storage.snapshots import read_since

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WindowResult:
    """Aggregate counts for one window pass."""

    window_key: str
    markets_seen: int
    moves_written: int
    since_ts: int

    @property
    def markets_skipped(self) -> int:
        return self.markets_seen - self.moves_written


def compute_market_move(
    points: Sequence[Snapshot],
    window_key: str,
    window_ms: int,
) -> Move | None:
    """Move for one market's ascending series, or None when history is insufficient."""
    numeric = [p for p in points if p.prob_yes is not None]
    if len(numeric) < 2:
        return None
    now = numeric[-1]
    then = latest_at_or_before(numeric, now.ts - window_ms)
    if then is None:
        return None
    return Move(
        platform_id=now.platform_id,
        market_id=now.market_id,
        window_key=window_key,
        end_ts=now.ts,
        prob_now=now.prob_yes,
        prob_then=then.prob_yes,
        delta=now.prob_yes - then.prob_yes,
        trust_score=DEFAULT_TRUST_SCORE,
    )


def compute_moves(
    series_by_market: Mapping[str, Sequence[Snapshot]],
    window_key: str,
) -> list[Move]:
    """One Move per market whose series yields both a "now" and a "then" value.

    Pure: reads nothing but its arguments, so each window is an independent pass
    over the same loaded snapshots.
    """
    window_ms = window_to_ms(window_key)
    moves = []
    for points in series_by_market.values():
        move = compute_market_move(points, window_key, window_ms)
        if move is not None:
            moves.append(move)
    return moves


def compute_window(
    conn: DuckDBPyConnection,
    window_key: str,
    *,
    platform_id: str,
    now_ts: int,
    lookback_ms: int,
) -> WindowResult:
    """Read recent snapshots, compute moves for one window and upsert them."""
    since_ts = now_ts - effective_lookback_ms(window_key, lookback_ms)
    series = read_since(conn, platform_id, since_ts)
    moves = compute_moves(series, window_key)
    persist_moves(conn, moves)
    result = WindowResult(
        window_key=window_key,
        markets_seen=len(series),
        moves_written=len(moves),
        since_ts=since_ts,
    )
    log.info(
        "window_complete",
        window=window_key,
        markets=result.markets_seen,
        moves_written=result.moves_written,
        skipped=result.markets_skipped,
    )
    return result

"""One engine run: reference data, ingestion, then each window in turn."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from moveengine.ingestion.batch import ingest
from moveengine.moves.calculator import WindowResult, compute_window
from moveengine.moves.windows import window_to_ms
from moveengine.storage.platforms import upsert_platforms

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from moveengine.ingestion.base import MarketFeed

log = structlog.get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RunSummary:
    """Per-phase row counts for one run."""

    ts: int
    platforms: int = 0
    markets: int = 0
    snapshots: int = 0
    prob_nonnull: int = 0
    windows: list[WindowResult] = field(default_factory=list)

    @property
    def moves_written(self) -> int:
        return sum(w.moves_written for w in self.windows)

    def lines(self) -> list[str]:
        out = [
            f"platforms={self.platforms}",
            f"ingest markets={self.markets} snapshots={self.snapshots} prob_nonnull={self.prob_nonnull} ts={self.ts}",
        ]
        for w in self.windows:
            out.append(f"compute window={w.window_key} markets={w.markets_seen} moves_written={w.moves_written}")
        return out


def run_engine(
    conn: DuckDBPyConnection,
    feed: MarketFeed,
    *,
    windows: list[str],
    lookback_ms: int,
    ts: int | None = None,
) -> RunSummary:
    """Run every phase to completion. Any EngineError aborts the run.

    ts is the ingestion timestamp (defaults to wall-clock now). Re-running with
    the same ts and upstream data rewrites identical rows.
    """
    # Unknown window keys fail before any I/O.
    for window_key in windows:
        window_to_ms(window_key)
    ts = now_ms() if ts is None else ts
    summary = RunSummary(ts=ts)
    summary.platforms = upsert_platforms(conn)
    batch = ingest(conn, feed, ts)
    summary.markets = len(batch.markets)
    summary.snapshots = len(batch.snapshots)
    summary.prob_nonnull = batch.prob_nonnull
    for window_key in windows:
        summary.windows.append(
            compute_window(
                conn,
                window_key,
                platform_id=feed.platform_id,
                now_ts=ts,
                lookback_ms=lookback_ms,
            )
        )
    log.info(
        "run_complete",
        ts=ts,
        markets=summary.markets,
        snapshots=summary.snapshots,
        moves_written=summary.moves_written,
    )
    return summary

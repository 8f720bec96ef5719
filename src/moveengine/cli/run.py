"""Engine run commands: run (ingest + all windows), compute (one window from stored snapshots)."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import duckdb
import structlog
import typer

from moveengine.engine import now_ms, run_engine
from moveengine.errors import EngineError
from moveengine.ingestion.polymarket.gamma import GammaMarketFeed
from moveengine.moves.calculator import compute_window
from moveengine.storage.db import get_connection, init_schema

log = structlog.get_logger(__name__)


@contextmanager
def _fail_fast() -> Iterator[None]:
    """Turn an unrecoverable failure into one log line and exit code 1."""
    try:
        yield
    except EngineError as e:
        log.error("run_failed", category=e.category, error=str(e))
        raise typer.Exit(1) from e
    except duckdb.Error as e:
        log.error("run_failed", category="storage", error=str(e))
        raise typer.Exit(1) from e
    except ValueError as e:
        log.error("run_failed", category="config", error=str(e))
        raise typer.Exit(1) from e


def run(
    ctx: typer.Context,
    ts: int | None = typer.Option(
        None, "--ts", help="Snapshot timestamp in ms (default now). Re-running a ts is idempotent."
    ),
    window: list[str] | None = typer.Option(
        None, "--window", "-w", help="Window key to compute (repeatable; default from config)"
    ),
) -> None:
    """Fetch markets, record a snapshot and compute moves for every window."""
    settings = ctx.obj["settings"]
    with _fail_fast():
        conn = get_connection(settings.db_path)
        try:
            init_schema(conn)
            summary = run_engine(
                conn,
                GammaMarketFeed.from_settings(settings),
                windows=window or settings.windows,
                lookback_ms=settings.lookback_ms,
                ts=ts,
            )
        finally:
            conn.close()
    for line in summary.lines():
        typer.echo(f"ok {line}")


def compute(
    ctx: typer.Context,
    window: str = typer.Option(..., "--window", "-w", help="Window key, e.g. 5m"),
    now: int | None = typer.Option(None, "--now", help="Reference time in ms for the lookback (default now)"),
) -> None:
    """Recompute one window from stored snapshots without fetching."""
    settings = ctx.obj["settings"]
    with _fail_fast():
        conn = get_connection(settings.db_path)
        try:
            init_schema(conn)
            result = compute_window(
                conn,
                window,
                platform_id=settings.platform_id,
                now_ts=now_ms() if now is None else now,
                lookback_ms=settings.lookback_ms,
            )
        finally:
            conn.close()
    typer.echo(f"ok compute window={result.window_key} markets={result.markets_seen} moves_written={result.moves_written}")

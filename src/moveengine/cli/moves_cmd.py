"""Top movers listing."""

from __future__ import annotations

import typer

from moveengine.storage.db import get_connection, init_schema
from moveengine.storage.moves import latest_end_ts, top_moves


def fmt_pct(x: float | None) -> str:
    if x is None:
        return ""
    return f"{x * 100:.1f}%"


def fmt_signed_pct(x: float | None) -> str:
    if x is None:
        return ""
    sign = "+" if x >= 0 else ""
    return f"{sign}{x * 100:.1f}%"


def top(
    ctx: typer.Context,
    window: str = typer.Option("5m", "--window", "-w", help="Window key"),
    limit: int = typer.Option(50, "--limit", "-n", help="Rows to show"),
) -> None:
    """Show the biggest recent moves for a window."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        rows = top_moves(conn, window, limit=limit)
        latest = latest_end_ts(conn, window)
        typer.echo(f"Window: {window}  Latest end_ts: {latest if latest is not None else 'n/a'}")
        for r in rows:
            title = (r.get("title") or r["market_id"])[:60]
            typer.echo(
                f"  {r['platform_id']:<11} {fmt_pct(r['prob_now']):>7} {fmt_pct(r['prob_then']):>7} "
                f"{fmt_signed_pct(r['delta']):>7}  {r['trust_score']:>3}  {title}"
            )
        if not rows:
            typer.echo("No data yet.")
    finally:
        conn.close()

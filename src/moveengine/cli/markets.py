"""Markets subcommand: list cached market metadata."""

from __future__ import annotations

import typer

from moveengine.storage.db import get_connection, init_schema
from moveengine.storage.markets import list_markets as storage_list_markets

app = typer.Typer(help="Market metadata cache")


@app.command("list")
def list_markets(
    ctx: typer.Context,
    limit: int = typer.Option(100, "--limit", "-n", help="Max markets to show"),
) -> None:
    """List markets in local cache, most recently refreshed first."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        rows = storage_list_markets(conn, platform_id=settings.platform_id, limit=limit)
        for m in rows:
            title = (m.title or "")[:60]
            typer.echo(f"  {m.market_id[:20]:<20}  {m.status:<6}  {title}")
        typer.echo(f"Total: {len(rows)} markets")
    finally:
        conn.close()

"""FastAPI read-only backend over computed moves and market metadata."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from moveengine.api.schemas import (
    ErrorResponse,
    HealthResponse,
    MarketListItem,
    MarketMovesResponse,
    MarketSnapshotsResponse,
    MarketsListResponse,
    MoveItem,
    MovesResponse,
    PlatformItem,
    PlatformsResponse,
    SnapshotPoint,
)
from moveengine.config import get_settings
from moveengine.storage.db import get_connection, init_schema
from moveengine.storage.markets import count_markets, list_markets
from moveengine.storage.moves import latest_end_ts, list_moves, top_moves
from moveengine.storage.platforms import list_platforms
from moveengine.storage.snapshots import read_since

# Windows offered to readers; anything else falls back to the default.
ALLOWED_WINDOWS = ("5m", "1h", "6h", "24h")
DEFAULT_WINDOW = "5m"
MARKET_URL_TEMPLATES = {"polymarket": "https://polymarket.com/event/{slug}"}

# Set by run_api() before uvicorn imports the app.
_config_profile: str | None = None
_config_dir: Path | None = None


def pick_window_key(value: str | None) -> str:
    if value and value in ALLOWED_WINDOWS:
        return value
    return DEFAULT_WINDOW


def market_url(platform_id: str, slug: str | None) -> str | None:
    template = MARKET_URL_TEMPLATES.get(platform_id)
    if not slug or template is None:
        return None
    return template.format(slug=slug)


def get_conn(request: Request) -> Iterator[Any]:
    """Read-only connection per request so a running engine keeps the write lock."""
    conn = get_connection(request.app.state.settings.db_path, read_only=True)
    try:
        yield conn
    finally:
        conn.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Settings are loaded and validated once per process
    settings = get_settings(_config_profile, _config_dir).validate()
    app.state.settings = settings
    # Ensure schema exists before read-only connections open the file
    conn = get_connection(settings.db_path, read_only=False)
    try:
        init_schema(conn)
    finally:
        conn.close()
    yield


app = FastAPI(title="Move Engine API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/platforms", response_model=PlatformsResponse)
def platforms_list(conn: Any = Depends(get_conn)) -> PlatformsResponse:
    return PlatformsResponse(
        platforms=[PlatformItem(**p.model_dump()) for p in list_platforms(conn)],
    )


@app.get("/moves", response_model=MovesResponse)
def moves_list(
    window: str | None = Query(None, description="Window key: 5m, 1h, 6h or 24h"),
    platform: str | None = Query(None),
    start_ts: int | None = Query(None, description="Earliest end_ts (ms)"),
    end_ts: int | None = Query(None, description="Latest end_ts (ms)"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    conn: Any = Depends(get_conn),
) -> MovesResponse:
    """Biggest recent moves for a window, ordered by absolute delta."""
    window_key = pick_window_key(window)
    rows = top_moves(
        conn,
        window_key,
        platform_id=platform,
        start_ts=start_ts,
        end_ts=end_ts,
        limit=limit,
        offset=offset,
    )
    items = [
        MoveItem(
            **{k: v for k, v in r.items() if k != "slug"},
            url=market_url(r["platform_id"], r.get("slug")),
        )
        for r in rows
    ]
    return MovesResponse(window=window_key, latest_end_ts=latest_end_ts(conn, window_key), moves=items)


@app.get("/markets", response_model=MarketsListResponse)
def markets_list(
    platform: str | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    conn: Any = Depends(get_conn),
) -> MarketsListResponse:
    """List markets with optional limit/offset."""
    markets = list_markets(conn, platform_id=platform, limit=limit, offset=offset)
    return MarketsListResponse(
        markets=[MarketListItem(**m.model_dump(exclude={"raw"})) for m in markets],
        total=count_markets(conn, platform_id=platform),
    )


@app.get(
    "/markets/{market_id}/snapshots",
    response_model=MarketSnapshotsResponse,
    responses={404: {"description": "No snapshots for market", "model": ErrorResponse}},
)
def market_snapshots(
    market_id: str,
    platform: str = Query("polymarket"),
    since_ts: int = Query(0, ge=0),
    conn: Any = Depends(get_conn),
):
    """Probability time series for one market, ascending by ts."""
    series = read_since(conn, platform, since_ts, market_id=market_id).get(market_id)
    if not series:
        return _error_json("not_found", f"No snapshots for market: {market_id}")
    return MarketSnapshotsResponse(
        platform_id=platform,
        market_id=market_id,
        series=[SnapshotPoint(ts=s.ts, prob_yes=s.prob_yes) for s in series],
    )


@app.get("/markets/{market_id}/moves", response_model=MarketMovesResponse)
def market_moves(
    market_id: str,
    window: str | None = Query(None, description="Window key: 5m, 1h, 6h or 24h"),
    platform: str = Query("polymarket"),
    conn: Any = Depends(get_conn),
) -> MarketMovesResponse:
    """Move history of one market for a window, ascending by end_ts."""
    window_key = pick_window_key(window)
    moves = list_moves(conn, window_key, platform_id=platform, market_id=market_id)
    return MarketMovesResponse(
        platform_id=platform,
        market_id=market_id,
        window=window_key,
        moves=[MoveItem(**m.model_dump()) for m in moves],
    )


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    config_dir: Path | None = None,
) -> None:
    global _config_profile, _config_dir
    _config_profile = profile
    _config_dir = config_dir
    import uvicorn

    uvicorn.run("moveengine.api.main:app", host=host, port=port, reload=False)

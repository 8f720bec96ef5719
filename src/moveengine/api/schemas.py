"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found")


# --- Platforms ---
class PlatformItem(BaseModel):
    platform_id: str
    name: str


class PlatformsResponse(BaseModel):
    platforms: list[PlatformItem]


# --- Moves ---
class MoveItem(BaseModel):
    platform_id: str
    market_id: str
    window_key: str
    end_ts: int
    prob_now: float
    prob_then: float
    delta: float
    trust_score: int | None = None
    title: str | None = None
    url: str | None = Field(None, description="Market page on the platform, when a slug is known")


class MovesResponse(BaseModel):
    window: str
    latest_end_ts: int | None
    moves: list[MoveItem]


# --- Markets ---
class MarketListItem(BaseModel):
    platform_id: str
    market_id: str
    title: str | None = None
    rules: str | None = None
    close_time: str | None = None
    status: str | None = None
    updated_at: int | None = None


class MarketsListResponse(BaseModel):
    markets: list[MarketListItem]
    total: int


class SnapshotPoint(BaseModel):
    ts: int
    prob_yes: float | None


class MarketSnapshotsResponse(BaseModel):
    platform_id: str
    market_id: str
    series: list[SnapshotPoint]


class MarketMovesResponse(BaseModel):
    platform_id: str
    market_id: str
    window: str
    moves: list[MoveItem]

"""Platform and Market - reference data and per-run refreshed metadata."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Platform(BaseModel):
    """Prediction-market venue (static reference data)."""

    platform_id: str
    name: str


DEFAULT_PLATFORMS: list[Platform] = [
    Platform(platform_id="polymarket", name="Polymarket"),
    Platform(platform_id="kalshi", name="Kalshi"),
]


class Market(BaseModel):
    """Market metadata, unique on (platform_id, market_id)."""

    platform_id: str = "polymarket"
    market_id: str
    title: str | None = None
    rules: str | None = None
    close_time: str | None = None
    status: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)  # full upstream record
    updated_at: int | None = None  # ms epoch

    @property
    def slug(self) -> str | None:
        slug = self.raw.get("slug")
        return str(slug) if slug else None

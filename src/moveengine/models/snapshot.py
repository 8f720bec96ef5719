"""Snapshot - one observed (market, timestamp) -> probability fact."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Snapshot(BaseModel):
    """Probability-of-yes for one market at one instant. None when unparsable."""

    platform_id: str
    market_id: str
    ts: int  # ms epoch
    prob_yes: float | None = Field(None, ge=0, le=1)
    raw: dict[str, Any] = Field(default_factory=dict)

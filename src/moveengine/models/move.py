"""Move - derived probability change for one market over one window."""

from __future__ import annotations

from pydantic import BaseModel, Field

# Placeholder until a real trust model exists.
DEFAULT_TRUST_SCORE = 100


class Move(BaseModel):
    """Keyed by (platform_id, market_id, window_key, end_ts)."""

    platform_id: str
    market_id: str
    window_key: str
    end_ts: int  # ms epoch of the freshest snapshot used as "now"
    prob_now: float = Field(..., ge=0, le=1)
    prob_then: float = Field(..., ge=0, le=1)
    delta: float = Field(..., ge=-1, le=1, description="prob_now - prob_then, unrounded")
    trust_score: int = DEFAULT_TRUST_SCORE

    def key(self) -> tuple[str, str, str, int]:
        return (self.platform_id, self.market_id, self.window_key, self.end_ts)

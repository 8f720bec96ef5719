"""Market feed protocol for pluggable venues (Polymarket, Kalshi, ...)."""

from __future__ import annotations

from typing import Any, Protocol


class MarketFeed(Protocol):
    """Upstream market list source. One call returns the deduplicated raw records."""

    platform_id: str

    def fetch_markets(self) -> list[dict[str, Any]]:
        """Return raw upstream market records. Raise UpstreamFetchError on failure."""
        ...

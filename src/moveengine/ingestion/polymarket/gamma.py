"""Polymarket Gamma API client - paginated market list and metadata parsing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from moveengine.errors import UpstreamFetchError
from moveengine.models import Market

if TYPE_CHECKING:
    from moveengine.config import Settings

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"

# Upstream id fields in order of preference.
MARKET_ID_KEYS = ("id", "market_id", "slug")


def _first_present(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def market_id_of(raw: dict[str, Any]) -> str | None:
    """First upstream id field that yields a non-empty string."""
    for key in MARKET_ID_KEYS:
        value = _as_text(raw.get(key))
        if value and value.strip():
            return value.strip()
    return None


def parse_market(raw: dict[str, Any], platform_id: str = "polymarket", updated_at: int | None = None) -> Market | None:
    """Convert a Gamma market object to a Market. None when it has no usable id."""
    market_id = market_id_of(raw)
    if market_id is None:
        return None
    return Market(
        platform_id=platform_id,
        market_id=market_id,
        title=_as_text(_first_present(raw, "question", "title", "name")),
        rules=_as_text(_first_present(raw, "rules", "description")),
        close_time=_as_text(_first_present(raw, "endDate", "end_date", "closeTime")),
        status=_as_text(_first_present(raw, "active", "status")) or "",
        raw=raw,
        updated_at=updated_at,
    )


def dedupe_markets(rows: list[dict[str, Any]], max_markets: int | None = None) -> list[dict[str, Any]]:
    """Drop rows without an id and repeats of an id (first occurrence kept)."""
    seen: set[str] = set()
    out: list[dict[str, Any]] = []
    for row in rows:
        market_id = market_id_of(row)
        if market_id is None or market_id in seen:
            continue
        seen.add(market_id)
        out.append(row)
        if max_markets is not None and len(out) >= max_markets:
            break
    return out


def _page_data(data: Any) -> list[Any]:
    """Entries of one response body. Raises UpstreamFetchError on an unexpected shape."""
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        data = data["data"]
    if not isinstance(data, list):
        raise UpstreamFetchError(f"Malformed Gamma response: expected a list, got {type(data).__name__}")
    return data


def _object_rows(entries: list[Any]) -> list[dict[str, Any]]:
    rows = [row for row in entries if isinstance(row, dict)]
    if len(rows) != len(entries):
        log.warning("skip_market", reason="not_an_object", count=len(entries) - len(rows))
    return rows


class GammaMarketFeed:
    """Open markets from the Gamma `/markets` endpoint, paged with limit/offset."""

    def __init__(
        self,
        base_url: str = GAMMA_API_BASE,
        page_size: int = 200,
        max_pages: int = 5,
        max_markets: int | None = 300,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
        platform_id: str = "polymarket",
    ) -> None:
        base = base_url.rstrip("/")
        self.url = base if base.endswith("/markets") else base + "/markets"
        self.page_size = page_size
        self.max_pages = max_pages
        self.max_markets = max_markets
        self.timeout = timeout
        self.platform_id = platform_id
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.Client | None = None) -> GammaMarketFeed:
        return cls(
            base_url=settings.gamma_api_base,
            page_size=settings.page_size,
            max_pages=settings.max_pages,
            max_markets=settings.max_markets,
            timeout=settings.timeout_sec,
            client=client,
            platform_id=settings.platform_id,
        )

    def _fetch_page(self, client: httpx.Client, offset: int) -> list[Any]:
        params = {"closed": "false", "active": "true", "limit": self.page_size, "offset": offset}
        try:
            resp = client.get(self.url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"Polymarket fetch failed: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"Polymarket fetch failed: {e}") from e
        except ValueError as e:
            raise UpstreamFetchError(f"Malformed Gamma response: {e}") from e
        return _page_data(data)

    def _fetch_all(self, client: httpx.Client) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for page in range(self.max_pages):
            offset = page * self.page_size
            entries = self._fetch_page(client, offset)
            log.debug("fetch_page", offset=offset, rows=len(entries))
            rows.extend(_object_rows(entries))
            # A short page is the last one; skipped non-object entries still count.
            if len(entries) < self.page_size:
                break
            if self.max_markets is not None and len(dedupe_markets(rows)) >= self.max_markets:
                break
        return rows

    def fetch_markets(self) -> list[dict[str, Any]]:
        """All pages, deduplicated by market id. Any failed page aborts the fetch."""
        if self._client is not None:
            rows = self._fetch_all(self._client)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                rows = self._fetch_all(client)
        markets = dedupe_markets(rows, self.max_markets)
        log.info("fetch_complete", url=self.url, rows=len(rows), markets=len(markets))
        return markets

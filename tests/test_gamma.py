"""Gamma feed pagination, dedupe and failure handling (no network)."""

import httpx
import pytest

from moveengine.config import Settings
from moveengine.errors import UpstreamFetchError
from moveengine.ingestion.polymarket.gamma import (
    GammaMarketFeed,
    dedupe_markets,
    market_id_of,
    parse_market,
)


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def _paged_handler(total, seen):
    def handler(request):
        params = request.url.params
        seen.append(dict(params))
        offset, limit = int(params["offset"]), int(params["limit"])
        rows = [{"id": str(i), "probability": 0.5} for i in range(offset, min(offset + limit, total))]
        return httpx.Response(200, json=rows)

    return handler


def test_pages_until_short_page():
    seen = []
    feed = GammaMarketFeed(page_size=10, max_pages=10, max_markets=None, client=_client(_paged_handler(25, seen)))
    rows = feed.fetch_markets()
    assert len(rows) == 25
    assert [p["offset"] for p in seen] == ["0", "10", "20"]
    assert seen[0]["closed"] == "false"
    assert seen[0]["active"] == "true"


def test_page_cap():
    seen = []
    feed = GammaMarketFeed(page_size=10, max_pages=2, max_markets=None, client=_client(_paged_handler(100, seen)))
    assert len(feed.fetch_markets()) == 20
    assert len(seen) == 2


def test_max_markets_cap():
    seen = []
    feed = GammaMarketFeed(page_size=10, max_pages=10, max_markets=15, client=_client(_paged_handler(100, seen)))
    assert len(feed.fetch_markets()) == 15
    assert len(seen) == 2


def test_dedupe_across_pages():
    def handler(request):
        offset = int(request.url.params["offset"])
        if offset == 0:
            return httpx.Response(200, json=[{"id": "a"}, {"id": "b"}])
        return httpx.Response(200, json=[{"id": "b", "question": "dup"}])

    feed = GammaMarketFeed(page_size=2, max_pages=5, client=_client(handler))
    rows = feed.fetch_markets()
    assert [r["id"] for r in rows] == ["a", "b"]
    assert "question" not in rows[1]


def test_wrapped_data_body_accepted():
    feed = GammaMarketFeed(page_size=5, client=_client(lambda r: httpx.Response(200, json={"data": [{"id": "x"}]})))
    assert [r["id"] for r in feed.fetch_markets()] == ["x"]


def test_http_error_is_upstream_error():
    feed = GammaMarketFeed(client=_client(lambda r: httpx.Response(503)))
    with pytest.raises(UpstreamFetchError, match="503"):
        feed.fetch_markets()


def test_error_on_later_page_aborts():
    def handler(request):
        if request.url.params["offset"] == "0":
            return httpx.Response(200, json=[{"id": "a"}, {"id": "b"}])
        return httpx.Response(500)

    feed = GammaMarketFeed(page_size=2, max_pages=3, client=_client(handler))
    with pytest.raises(UpstreamFetchError):
        feed.fetch_markets()


def test_malformed_body():
    feed = GammaMarketFeed(client=_client(lambda r: httpx.Response(200, content=b"<html>")))
    with pytest.raises(UpstreamFetchError, match="Malformed"):
        feed.fetch_markets()
    feed = GammaMarketFeed(client=_client(lambda r: httpx.Response(200, json={"error": "nope"})))
    with pytest.raises(UpstreamFetchError, match="Malformed"):
        feed.fetch_markets()


def test_transport_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    feed = GammaMarketFeed(client=_client(handler))
    with pytest.raises(UpstreamFetchError):
        feed.fetch_markets()


def test_url_building():
    assert GammaMarketFeed(base_url="https://example.test/").url == "https://example.test/markets"
    assert GammaMarketFeed(base_url="https://example.test/markets").url == "https://example.test/markets"


def test_market_id_fallback_order():
    assert market_id_of({"id": 7, "market_id": "m", "slug": "s"}) == "7"
    assert market_id_of({"id": "", "market_id": "m"}) == "m"
    assert market_id_of({"id": None, "market_id": "  ", "slug": "s"}) == "s"
    assert market_id_of({"question": "?"}) is None
    assert dedupe_markets([{"question": "?"}, {"id": "1"}, {"id": "1"}]) == [{"id": "1"}]


def test_parse_market_fields():
    m = parse_market(
        {"id": "9", "title": "T", "description": "D", "closeTime": "2031", "status": "open", "slug": "s9"},
        platform_id="polymarket",
        updated_at=5,
    )
    assert (m.market_id, m.title, m.rules, m.close_time, m.status, m.updated_at) == ("9", "T", "D", "2031", "open", 5)
    assert m.slug == "s9"
    assert parse_market({"id": "1", "active": False}).status == "false"
    assert parse_market({}) is None


def test_non_object_entry_does_not_end_paging():
    def handler(request):
        offset = int(request.url.params["offset"])
        if offset == 0:
            return httpx.Response(200, json=[{"id": "a"}, "junk", {"id": "b"}])
        return httpx.Response(200, json=[{"id": "c"}])

    feed = GammaMarketFeed(page_size=3, max_pages=5, max_markets=None, client=_client(handler))
    assert [r["id"] for r in feed.fetch_markets()] == ["a", "b", "c"]


def test_from_settings_uses_configured_platform():
    settings = Settings(
        engine={"platform_id": "kalshi"},
        polymarket={"gamma_api_base": "https://example.test", "page_size": 7},
    )
    feed = GammaMarketFeed.from_settings(settings)
    assert feed.platform_id == "kalshi"
    assert feed.page_size == 7
    assert feed.url == "https://example.test/markets"

"""Read-only API over stored moves."""

import pytest
from fastapi.testclient import TestClient

import moveengine.api.main as api_main
from moveengine.api.main import app, get_conn, pick_window_key
from moveengine.errors import ConfigError
from moveengine.models import Move
from moveengine.ingestion.batch import build_ingestion_batch, write_ingestion_batch
from moveengine.storage.moves import persist_moves
from moveengine.storage.platforms import upsert_platforms
from moveengine.storage.snapshots import record_snapshot

from conftest import MINUTE, T0


@pytest.fixture
def client(temp_db):
    upsert_platforms(temp_db)
    write_ingestion_batch(
        temp_db,
        build_ingestion_batch(
            [{"id": "101", "question": "Rain?", "slug": "rain", "probability": 0.6}, {"id": "102", "question": "Snow?"}],
            "polymarket",
            T0,
        ),
    )
    record_snapshot(temp_db, "polymarket", "101", T0 + 5 * MINUTE, 0.7)
    persist_moves(temp_db, [
        Move(platform_id="polymarket", market_id="101", window_key="5m", end_ts=T0 + 5 * MINUTE, prob_now=0.7, prob_then=0.6, delta=0.1),
        Move(platform_id="polymarket", market_id="102", window_key="5m", end_ts=T0 + 5 * MINUTE, prob_now=0.1, prob_then=0.4, delta=-0.3),
        Move(platform_id="polymarket", market_id="101", window_key="1h", end_ts=T0 + 5 * MINUTE, prob_now=0.7, prob_then=0.2, delta=0.5),
    ])
    app.dependency_overrides[get_conn] = lambda: temp_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_moves_default_window(client):
    body = client.get("/moves").json()
    assert body["window"] == "5m"
    assert body["latest_end_ts"] == T0 + 5 * MINUTE
    assert [m["market_id"] for m in body["moves"]] == ["102", "101"]
    rain = body["moves"][1]
    assert rain["title"] == "Rain?"
    assert rain["url"] == "https://polymarket.com/event/rain"
    assert body["moves"][0]["url"] is None


def test_moves_window_and_paging(client):
    body = client.get("/moves", params={"window": "1h"}).json()
    assert [m["delta"] for m in body["moves"]] == [0.5]
    body = client.get("/moves", params={"window": "5m", "limit": 1, "offset": 1}).json()
    assert [m["market_id"] for m in body["moves"]] == ["101"]
    body = client.get("/moves", params={"start_ts": T0 + 10 * MINUTE}).json()
    assert body["moves"] == []


def test_unknown_window_falls_back():
    assert pick_window_key("1m") == "5m"
    assert pick_window_key("bogus") == "5m"
    assert pick_window_key("24h") == "24h"


def test_markets_list(client):
    body = client.get("/markets", params={"limit": 1}).json()
    assert body["total"] == 2
    assert len(body["markets"]) == 1
    assert "raw" not in body["markets"][0]


def test_market_snapshots(client):
    body = client.get("/markets/101/snapshots").json()
    assert [p["prob_yes"] for p in body["series"]] == [0.6, 0.7]
    assert client.get("/markets/102/snapshots").json()["series"] == [{"ts": T0, "prob_yes": None}]
    resp = client.get("/markets/999/snapshots")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_platforms(client):
    body = client.get("/platforms").json()
    assert body["platforms"] == [
        {"platform_id": "kalshi", "name": "Kalshi"},
        {"platform_id": "polymarket", "name": "Polymarket"},
    ]


def test_market_moves_history(client):
    body = client.get("/markets/101/moves", params={"window": "1h"}).json()
    assert body["window"] == "1h"
    assert [(m["end_ts"], m["delta"]) for m in body["moves"]] == [(T0 + 5 * MINUTE, 0.5)]
    body = client.get("/markets/101/moves").json()
    assert body["window"] == "5m"
    assert [m["delta"] for m in body["moves"]] == [0.1]
    assert client.get("/markets/999/moves").json()["moves"] == []


def test_settings_loaded_once_at_startup(tmp_path, monkeypatch):
    db_path = (tmp_path / "api.duckdb").as_posix()
    (tmp_path / "default.toml").write_text(f'[storage]\ndb_path = "{db_path}"\n', encoding="utf-8")
    monkeypatch.setattr(api_main, "_config_dir", tmp_path)
    with TestClient(api_main.app) as c:
        assert api_main.app.state.settings.db_path == db_path
        # Later config edits do not affect a running app.
        (tmp_path / "default.toml").write_text("[storage\n", encoding="utf-8")
        assert c.get("/markets").json() == {"markets": [], "total": 0}


def test_invalid_config_fails_startup(tmp_path, monkeypatch):
    (tmp_path / "default.toml").write_text('[engine]\nwindows = ["7m"]\n', encoding="utf-8")
    monkeypatch.setattr(api_main, "_config_dir", tmp_path)
    with pytest.raises(ConfigError):
        with TestClient(api_main.app):
            pass

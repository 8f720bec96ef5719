"""Shared fixtures: temporary DuckDB with schema, fake market feed."""

import tempfile
from pathlib import Path

import pytest

from moveengine.storage.db import get_connection, init_schema

T0 = 1_700_000_000_000  # ms epoch
MINUTE = 60 * 1000


@pytest.fixture
def temp_db():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    yield conn
    conn.close()
    for p in Path(tmp).iterdir():
        p.unlink()
    Path(tmp).rmdir()


class FakeFeed:
    """In-memory MarketFeed; records can be swapped between runs."""

    platform_id = "polymarket"

    def __init__(self, records=None, error=None):
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    def fetch_markets(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def fake_feed():
    return FakeFeed()

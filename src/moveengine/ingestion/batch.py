"""Ingestion run - upstream records -> market rows + snapshot rows, written as one batch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from moveengine.ingestion.polymarket.gamma import parse_market
from moveengine.ingestion.polymarket.normalize import extract_probability
from moveengine.models import Market, Snapshot
from moveengine.storage.db import write_transaction
from moveengine.storage.markets import upsert_markets
from moveengine.storage.snapshots import upsert_snapshots

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from moveengine.ingestion.base import MarketFeed

log = structlog.get_logger(__name__)


@dataclass
class IngestionBatch:
    """Rows accumulated for one ingestion timestamp, written together."""

    platform_id: str
    ts: int
    markets: list[Market] = field(default_factory=list)
    snapshots: list[Snapshot] = field(default_factory=list)

    @property
    def prob_nonnull(self) -> int:
        return sum(1 for s in self.snapshots if s.prob_yes is not None)


def build_ingestion_batch(records: list[dict[str, Any]], platform_id: str, ts: int) -> IngestionBatch:
    """Normalize raw upstream records into a batch. Records without an id are skipped.

    Every market gets a snapshot row, with prob_yes None when the probability
    could not be extracted, so its existence at ts is still recorded.
    """
    batch = IngestionBatch(platform_id=platform_id, ts=ts)
    seen: set[str] = set()
    for record in records:
        market = parse_market(record, platform_id=platform_id, updated_at=ts)
        if market is None or market.market_id in seen:
            continue
        seen.add(market.market_id)
        batch.markets.append(market)
        batch.snapshots.append(
            Snapshot(
                platform_id=platform_id,
                market_id=market.market_id,
                ts=ts,
                prob_yes=extract_probability(record),
                raw={"source": platform_id},
            )
        )
    return batch


def write_ingestion_batch(conn: DuckDBPyConnection, batch: IngestionBatch) -> None:
    """Upsert markets and snapshots in one transaction; nothing is kept if either fails."""
    with write_transaction(conn, "ingestion write"):
        upsert_markets(conn, batch.markets)
        upsert_snapshots(conn, batch.snapshots)


def ingest(conn: DuckDBPyConnection, feed: MarketFeed, ts: int) -> IngestionBatch:
    """Fetch, normalize and persist one snapshot of the feed at ts."""
    records = feed.fetch_markets()
    batch = build_ingestion_batch(records, feed.platform_id, ts)
    write_ingestion_batch(conn, batch)
    log.info(
        "ingest_complete",
        platform=batch.platform_id,
        markets=len(batch.markets),
        snapshots=len(batch.snapshots),
        prob_nonnull=batch.prob_nonnull,
        ts=ts,
    )
    return batch

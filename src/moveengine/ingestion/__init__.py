"""Upstream market feeds and ingestion into the snapshot store."""

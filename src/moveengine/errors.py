"""Engine error taxonomy. Each error carries the category reported on failure."""

from __future__ import annotations


class EngineError(Exception):
    """Base for unrecoverable run failures."""

    category: str = "engine"


class ConfigError(EngineError):
    """Missing or invalid required configuration. Raised before any I/O."""

    category = "config"


class UpstreamFetchError(EngineError):
    """Upstream market feed returned a non-success status or a malformed body."""

    category = "upstream"


class StorageWriteError(EngineError):
    """A batch upsert failed; the surrounding transaction was rolled back."""

    category = "storage"

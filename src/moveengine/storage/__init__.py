"""DuckDB persistence for platforms, markets, snapshots and moves."""

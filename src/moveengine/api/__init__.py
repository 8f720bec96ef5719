"""Read-only HTTP API over stored moves."""

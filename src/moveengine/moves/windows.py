"""Fixed window keys and their lengths in milliseconds."""

from __future__ import annotations

_MINUTE_MS = 60 * 1000
_HOUR_MS = 60 * _MINUTE_MS

WINDOW_MS: dict[str, int] = {
    "1m": 1 * _MINUTE_MS,
    "5m": 5 * _MINUTE_MS,
    "1h": 1 * _HOUR_MS,
    "6h": 6 * _HOUR_MS,
    "24h": 24 * _HOUR_MS,
}

DEFAULT_WINDOWS: list[str] = list(WINDOW_MS)

# Extra history loaded beyond the window so the earliest "then" point is in range.
LOOKBACK_MARGIN_MS = 1 * _HOUR_MS


def window_to_ms(window_key: str) -> int:
    """Window length in ms. Raises ValueError for an unknown key."""
    try:
        return WINDOW_MS[window_key]
    except KeyError:
        raise ValueError(f"Unknown window key: {window_key!r}; expected one of {list(WINDOW_MS)}") from None


def effective_lookback_ms(window_key: str, lookback_ms: int) -> int:
    """Configured lookback, widened to at least window length plus margin."""
    return max(lookback_ms, window_to_ms(window_key) + LOOKBACK_MARGIN_MS)

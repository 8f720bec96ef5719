"""Point-in-time ("as-of") lookup over an ascending time series."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence
from typing import Protocol, TypeVar


class _Timestamped(Protocol):
    @property
    def ts(self) -> int: ...


P = TypeVar("P", bound=_Timestamped)


def latest_at_or_before(points: Sequence[P], target_ts: int) -> P | None:
    """Last point with ts <= target_ts, or None.

    points must be ascending by ts. This is the latest point not after the
    target, not the nearest one in absolute time; the boundary is inclusive.
    """
    idx = bisect_right(points, target_ts, key=lambda p: p.ts)
    if idx == 0:
        return None
    return points[idx - 1]

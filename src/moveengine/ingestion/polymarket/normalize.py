"""Upstream market record -> probability-of-yes in [0, 1] or None (unknown).

Upstream schemas have drifted over time, so the value is taken from an ordered
chain of extractors. Each extractor returns NO_MATCH when its fields are
absent, or a definite result (a probability, or None when the value it found
is unusable). The first definite result wins.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from typing import Any

DIRECT_KEYS = ("probability", "probabilityYes", "pYes", "yesProbability", "yesPrice")


class _NoMatch:
    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH: Any = _NoMatch()

Extractor = Callable[[Mapping[str, Any]], Any]


def normalize_probability(value: float) -> float | None:
    """Scale percentages (> 1) down by 100; reject anything still outside [0, 1]."""
    if not math.isfinite(value):
        return None
    if value > 1:
        value = value / 100
    if value < 0 or value > 1:
        return None
    return value


def _to_float(value: Any) -> float | None:
    """Finite float from a number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            result = float(value)
        elif isinstance(value, str):
            result = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return result if math.isfinite(result) else None


def _to_list(value: Any) -> list[Any] | None:
    """Accept a list or a JSON-encoded list string."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return None
        if isinstance(parsed, list):
            return parsed
    return None


def _outcome_prices(record: Mapping[str, Any]) -> list[Any] | None:
    prices = record.get("outcomePrices")
    if prices is None:
        prices = record.get("outcome_prices")
    return _to_list(prices)


def extract_direct(record: Mapping[str, Any]) -> Any:
    """First known probability field holding a number decides."""
    for key in DIRECT_KEYS:
        value = record.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            # A present number decides even when it is out of range.
            number = _to_float(value)
            return normalize_probability(number) if number is not None else None
        if isinstance(value, str):
            number = _to_float(value)
            if number is not None:
                return normalize_probability(number)
    return NO_MATCH


def extract_yes_outcome(record: Mapping[str, Any]) -> Any:
    """Price at the index whose outcome label is 'yes' (case-insensitive)."""
    outcomes = _to_list(record.get("outcomes"))
    prices = _outcome_prices(record)
    if outcomes is None or prices is None or len(outcomes) != len(prices):
        return NO_MATCH
    for label, price in zip(outcomes, prices):
        if str(label).lower() == "yes":
            number = _to_float(price)
            if number is None:
                return NO_MATCH
            return normalize_probability(number)
    return NO_MATCH


def extract_first_price(record: Mapping[str, Any]) -> Any:
    """Heuristic: first outcome price, valid only for yes-first binary markets."""
    prices = _outcome_prices(record)
    if not prices:
        return NO_MATCH
    number = _to_float(prices[0])
    if number is None:
        return NO_MATCH
    return normalize_probability(number)


EXTRACTORS: tuple[Extractor, ...] = (
    extract_direct,
    extract_yes_outcome,
    extract_first_price,
)


def extract_probability(
    record: Mapping[str, Any],
    extractors: tuple[Extractor, ...] = EXTRACTORS,
) -> float | None:
    """Probability-of-yes for one upstream market record, or None if unknown. Never raises."""
    if not isinstance(record, Mapping):
        return None
    for extractor in extractors:
        result = extractor(record)
        if result is not NO_MATCH:
            return result
    return None

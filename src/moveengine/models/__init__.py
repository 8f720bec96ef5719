"""Canonical schema (Pydantic) - Platform, Market, Snapshot, Move."""

from moveengine.models.market import DEFAULT_PLATFORMS, Market, Platform
from moveengine.models.move import DEFAULT_TRUST_SCORE, Move
from moveengine.models.snapshot import Snapshot

__all__ = [
    "Platform",
    "Market",
    "Snapshot",
    "Move",
    "DEFAULT_PLATFORMS",
    "DEFAULT_TRUST_SCORE",
]

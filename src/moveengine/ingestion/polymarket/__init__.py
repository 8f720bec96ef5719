"""Polymarket Gamma feed and probability normalization."""

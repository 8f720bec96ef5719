"""Windowed move computation: window keys, as-of lookup, delta calculator."""

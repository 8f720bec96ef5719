"""Configuration loading (TOML + profiles)."""

from moveengine.config.settings import Settings, configure_logging, get_settings

__all__ = ["Settings", "configure_logging", "get_settings"]

"""TOML settings: defaults, profile overlay and validation."""

import pytest

from moveengine.config import get_settings
from moveengine.config.settings import Settings
from moveengine.errors import ConfigError


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_files(tmp_path):
    s = get_settings(config_dir=tmp_path).validate()
    assert s.db_path == "data/moves.duckdb"
    assert s.windows == ["1m", "5m", "1h", "6h", "24h"]
    assert s.lookback_ms == 48 * 60 * 60 * 1000
    assert s.platform_id == "polymarket"
    assert s.page_size == 200
    assert s.max_markets == 300


def test_profile_overlay(tmp_path):
    _write(tmp_path / "default.toml", '[storage]\ndb_path = "a.duckdb"\n[engine]\nwindows = ["5m", "1h"]\n')
    _write(tmp_path / "dev.toml", '[storage]\ndb_path = "b.duckdb"\n[logging]\nlevel = "debug"\n')
    s = get_settings("dev", tmp_path)
    assert s.db_path == "b.duckdb"
    assert s.windows == ["5m", "1h"]
    assert s.logging_level == "DEBUG"


def test_missing_profile(tmp_path):
    with pytest.raises(ConfigError):
        get_settings("nope", tmp_path)


def test_invalid_toml(tmp_path):
    _write(tmp_path / "default.toml", "[storage\n")
    with pytest.raises(ConfigError):
        get_settings(config_dir=tmp_path)


@pytest.mark.parametrize(
    "raw",
    [
        {"storage": {"db_path": ""}},
        {"polymarket": {"gamma_api_base": ""}},
        {"polymarket": {"page_size": 0}},
        {"engine": {"windows": ["5m", "2h"]}},
        {"engine": {"lookback_hours": 24}},
    ],
)
def test_validation_errors(raw):
    with pytest.raises(ConfigError):
        Settings.from_dict(raw).validate()


def test_short_lookback_ok_for_short_windows():
    s = Settings.from_dict({"engine": {"windows": ["5m"], "lookback_hours": 1}}).validate()
    assert s.lookback_ms == 60 * 60 * 1000

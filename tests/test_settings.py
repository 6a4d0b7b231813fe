#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Tests for settings resolution."""

import json
from pathlib import Path

import pytest

from finder.models import DEFAULT_TICK_INTERVAL
from finder.settings import (
    FinderSettings,
    get_config_path,
    get_debug_level,
    get_state_dir,
    parse_debug_level,
    read_settings_file,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("FINDER_DEBUG", "FINDER_STATE", "FINDER_CONFIG", "XDG_CONFIG_HOME", "XDG_STATE_HOME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def config_file(tmp_path: Path):
    def write(data) -> Path:
        path = tmp_path / "settings.json"
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return path

    return write


class TestPaths:
    def test_config_path_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINDER_CONFIG", str(tmp_path / "custom.json"))
        assert get_config_path() == tmp_path / "custom.json"

    def test_config_path_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        assert get_config_path() == tmp_path / "cfg" / "finder" / "settings.json"

    def test_state_dir_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINDER_STATE", str(tmp_path / "state"))
        assert get_state_dir() == tmp_path / "state"

    def test_state_dir_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg"))
        assert get_state_dir() == tmp_path / "xdg" / "finder"


class TestReadSettingsFile:
    def test_missing_file(self, tmp_path):
        assert read_settings_file(tmp_path / "nope.json") == {}

    def test_invalid_json(self, config_file):
        assert read_settings_file(config_file("{not json")) == {}

    def test_non_object(self, config_file):
        assert read_settings_file(config_file("[1, 2]")) == {}

    def test_reads_object(self, config_file):
        assert read_settings_file(config_file({"debugLevel": 2})) == {"debugLevel": 2}


class TestDebugLevel:
    @pytest.mark.parametrize(
        "value,expected",
        [("0", 0), ("1", 1), ("3", 3), ("true", 1), ("YES", 1), ("on", 1), ("nonsense", 0)],
    )
    def test_parse(self, value, expected):
        assert parse_debug_level(value) == expected

    def test_env_wins_over_file(self, monkeypatch):
        monkeypatch.setenv("FINDER_DEBUG", "2")
        assert get_debug_level({"debugLevel": 3}) == 2

    def test_file_value(self):
        assert get_debug_level({"debugLevel": 3}) == 3
        assert get_debug_level({"debugLevel": "bad"}) == 0
        assert get_debug_level({}) == 0


class TestFinderSettings:
    def test_defaults(self, tmp_path):
        settings = FinderSettings.load(tmp_path / "missing.json")
        assert settings.tick_interval == DEFAULT_TICK_INTERVAL
        assert settings.debug_level == 0
        assert settings.exit_on_close is False
        assert settings.highlight_style == "bold green"

    def test_file_values(self, config_file):
        path = config_file(
            {
                "tickInterval": 0.25,
                "debugLevel": 1,
                "exitOnClose": True,
                "highlightStyle": "reverse",
            }
        )
        settings = FinderSettings.load(path)
        assert settings.tick_interval == 0.25
        assert settings.debug_level == 1
        assert settings.exit_on_close is True
        assert settings.highlight_style == "reverse"

    def test_bad_values_ignored(self, config_file):
        settings = FinderSettings.load(config_file({"tickInterval": -1, "exitOnClose": "yes"}))
        assert settings.tick_interval == DEFAULT_TICK_INTERVAL
        assert settings.exit_on_close is False

    def test_log_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINDER_STATE", str(tmp_path / "state"))
        settings = FinderSettings()
        assert settings.log_path == tmp_path / "state" / "debug.log"

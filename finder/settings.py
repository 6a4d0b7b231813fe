#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Settings for the line finder.

Resolved in order of precedence (highest first):
1. Command-line flags (applied by finder.cli)
2. Environment variables: FINDER_DEBUG, FINDER_STATE
3. Settings file: $FINDER_CONFIG, else $XDG_CONFIG_HOME/finder/settings.json
4. Defaults

Settings file example:
    {"tickInterval": 0.05, "debugLevel": 1, "exitOnClose": false,
     "highlightStyle": "bold green"}
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    from finder.models import DEFAULT_TICK_INTERVAL
except ImportError:
    from .models import DEFAULT_TICK_INTERVAL


CONFIG_ENV_VAR = "FINDER_CONFIG"
STATE_ENV_VAR = "FINDER_STATE"
DEBUG_ENV_VAR = "FINDER_DEBUG"
SETTINGS_FILE_NAME = "settings.json"
DEFAULT_HIGHLIGHT_STYLE = "bold green"


def get_config_path() -> Path:
    """Settings file location; FINDER_CONFIG overrides the XDG default."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    xdg_config = os.environ.get("XDG_CONFIG_HOME") or (Path.home() / ".config")
    return Path(xdg_config) / "finder" / SETTINGS_FILE_NAME


def get_state_dir() -> Path:
    """
    Directory for the debug log.

    Uses FINDER_STATE if set, otherwise $XDG_STATE_HOME/finder
    (~/.local/state/finder).
    """
    explicit_state = os.environ.get(STATE_ENV_VAR)
    if explicit_state:
        return Path(explicit_state)
    xdg_state = os.environ.get("XDG_STATE_HOME") or (Path.home() / ".local" / "state")
    return Path(xdg_state) / "finder"


def read_settings_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the settings file; missing or unreadable files give {}."""
    path = path or get_config_path()
    try:
        if not path.exists():
            return {}
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def parse_debug_level(value: str) -> int:
    """Parse a FINDER_DEBUG value; truthy words mean level 1."""
    try:
        return int(value)
    except ValueError:
        return 1 if value.lower() in ("true", "yes", "on") else 0


def get_debug_level(file_settings: Optional[Dict[str, Any]] = None) -> int:
    """
    Debug level from FINDER_DEBUG, else debugLevel in the settings file.

    Defaults to 0 (disabled).
    """
    env_level = os.environ.get(DEBUG_ENV_VAR)
    if env_level:
        return parse_debug_level(env_level)

    if file_settings is None:
        file_settings = read_settings_file()
    level = file_settings.get("debugLevel")
    if level is not None:
        try:
            return int(level)
        except (ValueError, TypeError):
            return 0
    return 0


@dataclass
class FinderSettings:
    """
    Runtime settings.

    Attributes:
        tick_interval: Seconds between render ticks
        debug_level: 0 disabled, 1 info, 2 debug (timings), 3 trace
        exit_on_close: End the session when the input stream closes
        highlight_style: Rich style for matched substrings
        initial_filter: Filter string the session starts with
        state_dir: Directory holding debug.log
    """

    tick_interval: float = DEFAULT_TICK_INTERVAL
    debug_level: int = 0
    exit_on_close: bool = False
    highlight_style: str = DEFAULT_HIGHLIGHT_STYLE
    initial_filter: str = ""
    state_dir: Path = field(default_factory=get_state_dir)

    @property
    def log_path(self) -> Path:
        return self.state_dir / "debug.log"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "FinderSettings":
        data = read_settings_file(config_path)
        settings = cls(debug_level=get_debug_level(data))

        tick = data.get("tickInterval")
        if isinstance(tick, (int, float)) and tick > 0:
            settings.tick_interval = float(tick)
        if isinstance(data.get("exitOnClose"), bool):
            settings.exit_on_close = data["exitOnClose"]
        if isinstance(data.get("highlightStyle"), str):
            settings.highlight_style = data["highlightStyle"]
        return settings

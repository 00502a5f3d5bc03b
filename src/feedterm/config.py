"""Configuration management.  Stores config at ~/.config/feedterm/config.json.

The file is JSON::

    {
      "tick_rate": 4,
      "feeds": [{"title": "Python Insider", "url": "https://..."}],
      "keybindings": {"home": {"ctrl+q": "Quit", "x": "Error(boom)"}}
    }

Keybinding actions use the textual action encoding.  User keybindings are
merged over the defaults of the same mode.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from feedterm.action import (
    Action,
    ActionField,
    HelpAction,
    QuitAction,
    RefreshAction,
    SuspendAction,
)
from feedterm.mode import Mode

__all__ = [
    "DEFAULT_KEYBINDINGS",
    "Config",
    "ConfigError",
    "FeedSource",
    "default_config_path",
    "load_config",
]

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FEEDTERM_CONFIG"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


def _global_bindings() -> dict[str, Action]:
    return {
        "q": QuitAction(),
        "ctrl+c": QuitAction(),
        "ctrl+d": QuitAction(),
        "ctrl+z": SuspendAction(),
        "r": RefreshAction(),
        "?": HelpAction(),
    }


DEFAULT_KEYBINDINGS: dict[Mode, dict[str, Action]] = {mode: _global_bindings() for mode in Mode}


# --- Schema ---


class FeedSource(BaseModel):
    """A subscribed feed as written in the config file."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class Config(BaseModel):
    """Immutable configuration snapshot shared with every component."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tick_rate: float = Field(default=4.0, gt=0)
    frame_rate: float = Field(default=60.0, gt=0)
    mouse: bool = False
    paste: bool = False
    feeds: list[FeedSource] = Field(default_factory=list)
    max_concurrent_fetches: int = Field(default=100, ge=1)
    keybindings: dict[Mode, dict[str, ActionField]] = Field(
        default_factory=lambda: {mode: dict(b) for mode, b in DEFAULT_KEYBINDINGS.items()}
    )

    def action_for(self, mode: Mode, key_id: str) -> Action | None:
        """Action bound to *key_id* in *mode*, if any."""
        return self.keybindings.get(mode, {}).get(key_id)


# --- Loading ---


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return Path.home() / ".config" / "feedterm" / "config.json"


def _merge_keybindings(data: dict[str, Any]) -> dict[str, Any]:
    user = data.get("keybindings")
    if user is None:
        return data
    if not isinstance(user, dict):
        raise ConfigError(f"keybindings: expected an object, got {type(user).__name__}")

    merged: dict[str, Any] = {str(mode): dict(b) for mode, b in DEFAULT_KEYBINDINGS.items()}
    for mode, bindings in user.items():
        if not isinstance(bindings, dict):
            raise ConfigError(f"keybindings.{mode}: expected an object, got {type(bindings).__name__}")
        merged.setdefault(mode, {}).update(bindings)
    return {**data, "keybindings": merged}


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error["loc"])
        parts.append(f"{loc}: {error['msg']}")
    return "; ".join(parts)


def load_config(path: str | Path | None = None) -> Config:
    """Load the configuration from *path*, ``$FEEDTERM_CONFIG`` or the default location.

    A missing file yields the defaults.  An unreadable or invalid file raises
    :class:`ConfigError`.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        logger.debug("no config file at %s; using defaults", config_path)
        return Config()

    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"{config_path}:{e.lineno}:{e.colno}: {e.msg}") from e
    except OSError as e:
        raise ConfigError(f"{config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be an object")

    try:
        config = Config.model_validate(_merge_keybindings(data))
    except ConfigError as e:
        raise ConfigError(f"{config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"{config_path}: {_format_errors(e)}") from e

    logger.debug("loaded config from %s", config_path)
    return config

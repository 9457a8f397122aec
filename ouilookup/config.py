from __future__ import annotations

import argparse
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ouilookup.log import get_logger

logger = get_logger("config")

DEFAULT_SOURCE = "https://standards-oui.ieee.org/oui/oui.csv"
SOURCE_ENV = "OUILOOKUP_SOURCE"


def load_config() -> Dict[str, Any]:
    """
    Load configuration from:
    1. ~/.ouilookup.toml
    2. ./ouilookup.toml

    The local file overrides the global one.
    """
    paths = [
        Path.home() / ".ouilookup.toml",
        Path("ouilookup.toml"),
    ]

    config: Dict[str, Any] = {}
    for path in paths:
        if path.exists():
            try:
                with path.open("rb") as f:
                    _deep_update(config, tomllib.load(f))
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("failed to load config %s: %s", path, e)

    return config


def _deep_update(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and key in target and isinstance(target[key], dict):
            _deep_update(target[key], value)
        else:
            target[key] = value


def _flatten(config: Dict[str, Any]) -> Dict[str, Any]:
    defaults: Dict[str, Any] = {}
    if isinstance(config.get("global"), dict):
        defaults.update(config["global"])
    for section, values in config.items():
        if section == "global":
            continue
        if isinstance(values, dict):
            defaults.update(values)
    return defaults


def apply_config(parser: argparse.ArgumentParser, config: Dict[str, Any]) -> None:
    """
    Apply configuration values to the argument parser defaults.

    Example config:
    [registry]
    source = "/var/lib/oui/oui.csv"

    [web]
    port = 8080

    Sections are flattened, so keys must match argument destinations.
    Sub-command parsers receive the same defaults, otherwise their own
    defaults would shadow the ones set on the main parser.
    """
    defaults = _flatten(config)
    if not defaults:
        return
    parser.set_defaults(**defaults)
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            for subparser in action.choices.values():
                subparser.set_defaults(**defaults)


def registry_source(config: Optional[Dict[str, Any]] = None) -> str:
    """Return the registry source: environment, then config, then the IEEE URL."""
    env = os.environ.get(SOURCE_ENV)
    if env:
        return env
    if config is None:
        config = load_config()
    return config.get("registry", {}).get("source") or DEFAULT_SOURCE

"""Logging setup for the ``ouilookup`` logger tree."""
from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LEVEL_NAMES = ("debug", "info", "warning", "error")


def parse_level(level: Union[int, str]) -> int:
    """Accept ``logging`` constants or names such as ``"info"`` from config files."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level}")
    return value


def setup_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """Attach a stderr handler to ``ouilookup`` and set its level.

    Calling again only changes the level, so the CLI and the web service
    can both call it without duplicating output.
    """
    logger = logging.getLogger("ouilookup")
    logger.setLevel(parse_level(level))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"ouilookup.{name}")

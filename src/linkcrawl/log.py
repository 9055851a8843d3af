"""
Logging configuration for the crawler.
"""
from __future__ import annotations

import logging
import os

import colorlog

log = logging.getLogger("linkcrawl")

LOG_COLORS = {
    "DEBUG":    "cyan",
    "INFO":     "green",
    "WARNING":  "yellow",
    "ERROR":    "red",
    "CRITICAL": "bold_red",
}


def debug_from_env() -> bool:
    """Return True when the ``DEBUG`` environment variable is set."""
    return bool(os.environ.get("DEBUG"))


def setup_logging(debug: bool = False) -> None:
    """Configure the package logger with a colour console handler."""
    log.setLevel(logging.DEBUG if debug else logging.INFO)
    log.handlers.clear()

    handler = colorlog.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s%(asctime)s [%(levelname)s]%(reset)s %(message)s",
        datefmt="%H:%M:%S",
        log_colors=LOG_COLORS,
    ))
    log.addHandler(handler)

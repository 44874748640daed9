"""Logging configuration helper."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_FILE = LOG_DIR / "apod.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(
    level: int = logging.INFO,
    max_bytes: int = 1_000_000,
    backups: int = 5,
    *,
    log_file: Path = LOG_FILE,
    console: bool = False,
) -> None:
    """Install a rotating file handler, plus stderr output when ``console`` is set.

    Calling this again replaces the handlers it installed earlier.
    """

    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_apod_handler", False):
            root.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [
        RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._apod_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)


__all__ = ["configure_logging", "LOG_FILE"]

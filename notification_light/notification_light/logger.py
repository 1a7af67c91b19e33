"""
Logging setup for the notification light runtime.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False
LOG_DIR = Path(
    os.environ.get(
        "NOTIFICATION_LIGHT_LOG_DIR",
        str(Path.home() / "Library" / "Logs" / "Notification Light"),
    )
)
DEFAULT_LOG_PATH = LOG_DIR / "core.log"
CONSOLE_LEVEL = os.environ.get("NOTIFICATION_LIGHT_LOG_LEVEL", "INFO").upper()

# Events hop between the Qt main thread, the matcher pool and the light worker.
_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure(log_path: Optional[Path] = None, *, console_level: Optional[str] = None) -> None:
    """
    Install the console and rotating file sinks.

    Only the first call has an effect, so modules may call ``get_logger`` at
    import time without reconfiguring sinks set up by the entry point.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = log_path or DEFAULT_LOG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level=console_level or CONSOLE_LEVEL, format=_FORMAT, enqueue=True)
    _logger.add(
        target,
        level="DEBUG",
        format=_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger

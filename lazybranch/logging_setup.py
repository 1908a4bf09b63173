"""Loguru sink configuration.

The TUI owns the terminal while running, so nothing is logged to stderr.
Records go to a rotating file under the platform log directory instead.
"""

from __future__ import annotations

import sys
from pathlib import Path

import platformdirs
from loguru import logger

APP_NAME = "lazybranch"
LOG_FILENAME = "lazybranch.log"


def default_log_dir() -> Path:
    return Path(platformdirs.user_log_dir(appname=APP_NAME, appauthor=False))


def configure_logging(
    level: str = "INFO",
    log_file: bool = True,
    log_dir: Path | None = None,
    stderr: bool = False,
) -> Path | None:
    """Replace loguru's default sink and return the log file path, if any."""
    logger.remove()
    if stderr:
        logger.add(sys.stderr, level=level)
    if not log_file:
        return None

    target_dir = log_dir if log_dir is not None else default_log_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / LOG_FILENAME
    logger.add(
        str(log_path),
        level=level,
        rotation="5 MB",
        retention="7 days",
        enqueue=True,
        format="{time:YYYY-MM-DDTHH:mm:ss.SSS} | {level: <8} | {name}:{function} - {message}",
    )
    return log_path

"""
Unified output system using Loguru.
Every message goes to the run log; console echo is optional (--silent).
"""

import threading
from pathlib import Path

from loguru import logger

from .console import get_console

_silent_mode = False
_silent_mode_lock = threading.Lock()

_LEVEL_STYLES = {
    "debug": "cyan",
    "info": None,
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """
    Configure loguru for file-only logging (console echo goes through log()).

    The log file is appended to across runs, so it keeps a timestamped
    history of every invocation for the device.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Rotate the file once it grows past this size
        backup_count: Number of rotated files to keep
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format="{time:YYYY-MM-DDTHH:mm:ssZZ} | {level: <8} | {thread.name} | {message}",
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_silent_mode(silent: bool) -> None:
    """Enable or disable console echo for log()."""
    global _silent_mode
    with _silent_mode_lock:
        _silent_mode = silent


def is_silent() -> bool:
    with _silent_mode_lock:
        return _silent_mode


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the run log AND echoes to the console.

    Use this instead of print() for progress and per-category outcomes.

    Args:
        message: User-facing message
        level: Log level (debug, info, success, warning, error)
    """
    logger.opt(depth=1).log(level.upper(), message)

    if level == "debug" or is_silent():
        return

    style = _LEVEL_STYLES.get(level)
    # markup=False: paths and category names may contain [brackets]
    get_console().print(message, style=style, markup=False, highlight=False)

"""
Filesystem primitives: durability barrier and free-space probing.
"""

import os
import shutil
from pathlib import Path

from loguru import logger


def flush_filesystem(reason: str = "") -> None:
    """Flush pending writes to stable storage.

    Removable and flash media can expose directory renames inconsistently
    until the kernel buffers are written out, so every phase that moves
    directories ends with this barrier.
    """
    logger.debug(f"Flushing filesystem buffers{f' ({reason})' if reason else ''}")
    if hasattr(os, "sync"):
        os.sync()


def free_space_gb(path: Path) -> int:
    """Free space at path in whole gigabytes."""
    return shutil.disk_usage(path).free // (1024 ** 3)

"""
Bulk transfer through rsync, one invocation per category.

Running rsync per category (instead of once for the whole tree) keeps
exclude lists per category and lets one category fail without taking the
others down with it.
"""

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from ...core.errors import FatalTransferError, PartialTransferWarning
from ..device.models import Category

RSYNC = "rsync"

# rsync exit statuses that mean "finished, but some files were not copied"
PARTIAL_EXIT_CODES = {
    23: "partial transfer due to error",
    24: "partial transfer due to vanished source files",
}

BIOS_FOLDER = "bios"


@dataclass(frozen=True)
class TransferResult:
    """Outcome of one rsync invocation."""

    category: str
    command: List[str]
    exit_code: int
    warning: Optional[PartialTransferWarning] = None

    @property
    def partial(self) -> bool:
        return self.warning is not None


def rsync_available() -> bool:
    return shutil.which(RSYNC) is not None


def category_excludes(
    exclude: Iterable[str], targeted: Iterable[str], include_bios: bool = False
) -> List[str]:
    """Folder names excluded inside a category's transfer.

    Configured excludes double as sub-folder filters (screenshots,
    titlescreens, ...); one that names a targeted category is dropped so
    asking for it explicitly still copies it.
    """
    targeted = set(targeted)
    names = [name for name in dict.fromkeys(exclude) if name not in targeted]
    if not include_bios and BIOS_FOLDER not in names:
        names.append(BIOS_FOLDER)
    return names


def build_rsync_command(
    source: Path,
    target_root: Path,
    options: str,
    excludes: Sequence[str] = (),
    purge: bool = False,
    dry_run: bool = False,
) -> List[str]:
    """Assemble the rsync argument list for one category.

    The source has no trailing slash so rsync creates/updates
    <target_root>/<category>. Excluded paths are neither copied nor
    deleted in purge mode (no --delete-excluded).
    """
    command = [RSYNC, *shlex.split(options)]
    if purge and "--delete" not in command:
        command.append("--delete")
    if dry_run:
        command.append("--dry-run")
    command.extend(f"--exclude={name}/" for name in excludes)
    command.append(str(source))
    command.append(f"{target_root}/")
    return command


def run_rsync(category: str, command: List[str]) -> TransferResult:
    """Run rsync and classify its exit status.

    Returns:
        TransferResult; partial transfers carry a PartialTransferWarning

    Raises:
        FatalTransferError: rsync could not start or failed outright
    """
    logger.info(f"[{category}] Running rsync: {shlex.join(command)}")
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise FatalTransferError(category, None, f"Could not start rsync: {e}") from e

    for line in completed.stdout.splitlines():
        logger.debug(f"[{category}] rsync: {line}")
    stderr_tail = " | ".join(completed.stderr.strip().splitlines()[-5:])

    if completed.returncode == 0:
        return TransferResult(category, command, 0)

    if completed.returncode in PARTIAL_EXIT_CODES:
        warning = PartialTransferWarning(
            category,
            completed.returncode,
            f"rsync exit {completed.returncode} "
            f"({PARTIAL_EXIT_CODES[completed.returncode]}): {stderr_tail}",
        )
        logger.warning(str(warning))
        return TransferResult(category, command, completed.returncode, warning)

    raise FatalTransferError(
        category,
        completed.returncode,
        f"rsync failed with exit code {completed.returncode}: {stderr_tail}",
    )


def transfer_category(
    category: Category,
    options: str,
    excludes: Sequence[str] = (),
    purge: bool = False,
    dry_run: bool = False,
) -> TransferResult:
    """Copy one category from the source tree into the canonical device folder."""
    if not category.source_path.is_dir():
        raise FatalTransferError(
            category.name, None, f"Source folder not found: {category.source_path}"
        )
    command = build_rsync_command(
        category.source_path,
        category.target_path.parent,
        options,
        excludes=excludes,
        purge=purge,
        dry_run=dry_run,
    )
    return run_rsync(category.name, command)


def copy_bios(category: Category, bios_target: Path) -> Optional[TransferResult]:
    """Copy <category>/bios/ contents into the device's shared BIOS folder.

    Returns:
        TransferResult, or None when the category has no bios folder

    Raises:
        FatalTransferError: The BIOS folder cannot be created or rsync failed
    """
    bios_source = category.source_path / BIOS_FOLDER
    if not bios_source.is_dir():
        logger.info(f"[{category.name}] No BIOS folder at {bios_source}, skipping")
        return None

    try:
        bios_target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FatalTransferError(
            category.name, None, f"Cannot create BIOS folder {bios_target}: {e.strerror or e}"
        ) from e
    command = [RSYNC, "-avhr", f"{bios_source}/", str(bios_target)]
    return run_rsync(category.name, command)


def count_items(source: Path, excludes: Iterable[str] = ()) -> int:
    """Files and directories under source, skipping excluded folder names."""
    excluded = set(excludes)
    total = 0
    for _root, dirs, files in os.walk(source):
        dirs[:] = [d for d in dirs if d not in excluded]
        total += len(dirs) + len(files)
    return total

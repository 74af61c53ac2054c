"""
Layout transforms between the canonical layout and a device layout.

Canonical layout (what the source tree looks like and what rsync expects):

    <target_root>/<category>/gamelist.xml
    <target_root>/<category>/<media folder>/

Device layout (what the device frontend expects), any subset of:

    <target_root>/<alias>/                            category folder renamed
    <media_root>/<alias or category>/<device folder>/ media relocated/renamed
    <metadata_root>/<alias or category>/<metadata filename>

Each step works from what is on disk, not from what the previous step
claimed to do, and is a no-op when there is nothing to move. Failures are
returned as LayoutTransformWarning values, never raised: a missed move
leaves data misplaced, not lost.
"""

import os
import shutil
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from loguru import logger

from ...core.config import DeviceConfig
from ...core.errors import CatalogDocumentError, LayoutTransformWarning
from ...core.storage import flush_filesystem
from ..catalog.document import CatalogDocument
from ..catalog.models import CATALOG_FILENAME
from ..device.models import Category

Step = Callable[[Category, DeviceConfig], List[LayoutTransformWarning]]


def category_folder(category: Category) -> Path:
    """Where the category folder currently is on the device.

    Canonical name if present, else the alias folder if present, else the
    canonical path (to be created).
    """
    if category.target_path.is_dir():
        return category.target_path
    if category.device_alias and category.device_path.is_dir():
        return category.device_path
    return category.target_path


def _move(
    src: Path, dst: Path, category: Category, step: str
) -> Optional[LayoutTransformWarning]:
    """Move src to dst unless dst is a directory already in the way.

    Files overwrite an existing destination file; directories never merge.
    """
    if not src.exists():
        logger.debug(f"[{category.name}] {step}: {src} not found, skipping")
        return None

    if dst.exists() and _same_entry(src, dst):
        return _case_rename(src, dst, category, step)

    if dst.is_dir():
        return _warn(category, step, src, f"destination {dst} already exists")

    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dst))
    except OSError as e:
        return _warn(category, step, src, e.strerror or str(e))

    logger.info(f"[{category.name}] {step}: moved '{src}' -> '{dst}'")
    return None


def _same_entry(src: Path, dst: Path) -> bool:
    try:
        return os.path.samefile(src, dst)
    except OSError:
        return False


def _case_rename(
    src: Path, dst: Path, category: Category, step: str
) -> Optional[LayoutTransformWarning]:
    """Rename that differs only in case, on a case-insensitive filesystem (FAT/exFAT)."""
    if src.name == dst.name:
        return None
    interim = src.with_name(f"{src.name}.romsync-rename")
    try:
        src.rename(interim)
        interim.rename(dst)
    except OSError as e:
        return _warn(category, step, src, e.strerror or str(e))
    logger.info(f"[{category.name}] {step}: renamed '{src}' -> '{dst}'")
    return None


def _warn(category: Category, step: str, path: Path, reason: str) -> LayoutTransformWarning:
    warning = LayoutTransformWarning(category.name, step, path, reason)
    logger.warning(str(warning))
    return warning


def _collect(*warnings: Optional[LayoutTransformWarning]) -> List[LayoutTransformWarning]:
    return [w for w in warnings if w is not None]


# --- Category folder rename ---


def unrename_to_canonical(
    category: Category, device: Optional[DeviceConfig] = None
) -> List[LayoutTransformWarning]:
    """Rename the category folder from its device alias back to its canonical name."""
    if not category.device_alias:
        return []
    return _collect(
        _move(category.device_path, category.target_path, category, "unrename")
    )


def rename_to_device(
    category: Category, device: Optional[DeviceConfig] = None
) -> List[LayoutTransformWarning]:
    """Rename the category folder from its canonical name to its device alias."""
    if not category.device_alias:
        return []
    return _collect(
        _move(category.target_path, category.device_path, category, "rename")
    )


# --- Auxiliary media relocation ---


def _media_pairs(category: Category, device: DeviceConfig):
    """(folder under category, folder under media root) for each media kind."""
    media_dir = Path(device.media_root) / category.effective_name
    folder = category_folder(category)
    for kind in device.media_folders:
        device_name = device.media_renames.get(kind, kind)
        yield folder / kind, media_dir / device_name


def reverse_relocate_auxiliary(
    category: Category, device: DeviceConfig
) -> List[LayoutTransformWarning]:
    """Move media folders from the device media root back under the category folder."""
    if not device.media_root or not device.media_folders:
        return []
    return _collect(
        *(
            _move(shared, local, category, "reverse media move")
            for local, shared in _media_pairs(category, device)
        )
    )


def relocate_auxiliary(
    category: Category, device: DeviceConfig
) -> List[LayoutTransformWarning]:
    """Move media folders from the category folder out to the device media root."""
    if not device.media_root or not device.media_folders:
        return []
    return _collect(
        *(
            _move(local, shared, category, "media move")
            for local, shared in _media_pairs(category, device)
        )
    )


# --- Metadata relocation ---


def _segregates_metadata(device: DeviceConfig) -> bool:
    return bool(device.metadata_root) or device.metadata_filename != CATALOG_FILENAME


def _device_catalog_path(category: Category, device: DeviceConfig) -> Path:
    if device.metadata_root:
        return Path(device.metadata_root) / category.effective_name / device.metadata_filename
    return category_folder(category) / device.metadata_filename


def reverse_relocate_metadata(
    category: Category, device: DeviceConfig
) -> List[LayoutTransformWarning]:
    """Move the device's catalog document back to <category>/gamelist.xml."""
    if not _segregates_metadata(device):
        return []
    src = _device_catalog_path(category, device)
    dst = category_folder(category) / CATALOG_FILENAME
    return _collect(_move(src, dst, category, "reverse metadata move"))


def relocate_metadata(
    category: Category, device: DeviceConfig
) -> List[LayoutTransformWarning]:
    """Move <category>/gamelist.xml to where the device frontend reads it."""
    warnings: List[LayoutTransformWarning] = []
    dst = _device_catalog_path(category, device)

    if _segregates_metadata(device):
        src = category_folder(category) / CATALOG_FILENAME
        warnings.extend(_collect(_move(src, dst, category, "metadata move")))

    if device.prune_placeholders and dst.is_file():
        try:
            document = CatalogDocument.load(dst)
            removed = document.prune_placeholders()
            if removed:
                document.save()
                logger.info(f"[{category.name}] Removed {removed} placeholder entries from {dst}")
        except CatalogDocumentError as e:
            warnings.append(_warn(category, "prune placeholders", dst, str(e)))

    return warnings


REVERSE_STEPS: Sequence[Step] = (
    unrename_to_canonical,
    reverse_relocate_auxiliary,
    reverse_relocate_metadata,
)
FORWARD_STEPS: Sequence[Step] = (
    rename_to_device,
    relocate_auxiliary,
    relocate_metadata,
)


def to_canonical_layout(
    categories: Iterable[Category], device: DeviceConfig
) -> Dict[str, List[LayoutTransformWarning]]:
    """Bring every category into the canonical layout before any transfer.

    Runs one step at a time across all categories, with a durability
    barrier after each step.

    Returns:
        Warnings per category name
    """
    categories = list(categories)
    warnings: Dict[str, List[LayoutTransformWarning]] = {c.name: [] for c in categories}
    for step in REVERSE_STEPS:
        for category in categories:
            warnings[category.name].extend(step(category, device))
        flush_filesystem(step.__name__)
    return warnings


def to_device_layout(
    category: Category, device: DeviceConfig
) -> List[LayoutTransformWarning]:
    """Put one transferred category back into the device layout."""
    warnings: List[LayoutTransformWarning] = []
    for step in FORWARD_STEPS:
        warnings.extend(step(category, device))
        flush_filesystem(f"{step.__name__} {category.name}")
    return warnings

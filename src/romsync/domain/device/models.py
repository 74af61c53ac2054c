"""
Device domain models.

Contains the per-run view of a category: where it lives in the source
tree and where it lives on the target device.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...core.config import Config, DeviceConfig
from ..catalog.models import CATALOG_FILENAME


@dataclass(frozen=True)
class Category:
    """A category (system folder) resolved against source and target roots.

    target_path is the canonical location on the device, the one transfer
    writes into; device_path is where the folder lives between runs.
    """

    name: str
    source_path: Path
    target_path: Path
    device_alias: Optional[str] = None

    @property
    def effective_name(self) -> str:
        return self.device_alias or self.name

    @property
    def device_path(self) -> Path:
        return self.target_path.parent / self.effective_name

    @property
    def source_catalog(self) -> Path:
        return self.source_path / CATALOG_FILENAME

    @property
    def target_catalog(self) -> Path:
        return self.target_path / CATALOG_FILENAME


def build_category(name: str, config: Config, device: DeviceConfig) -> Category:
    """Resolve a category name against the configured roots."""
    return Category(
        name=name,
        source_path=config.require_source_root() / name,
        target_path=Path(device.target_root) / name,
        device_alias=device.alias_for(name),
    )

"""
Configuration management for romsync
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigurationError

DEFAULT_RSYNC_OPTIONS = "-avh --progress --no-owner --no-group --checksum --inplace"

# Fields copied from a device catalog back into the source catalog
KNOWN_PRESERVED_FIELDS: Tuple[str, ...] = (
    "favorite",
    "hidden",
    "playcount",
    "crc32",
    "cheevosId",
    "cheevosHash",
)


@dataclass(frozen=True)
class SyncConfig:
    """Settings shared by every device."""

    source_root: Optional[str] = None
    rsync_options: str = DEFAULT_RSYNC_OPTIONS
    min_free_space_gb: int = 1
    preserved_fields: Tuple[str, ...] = KNOWN_PRESERVED_FIELDS


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_dir: Optional[str] = None  # default: ~/.local/share/romsync/logs
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass(frozen=True)
class DeviceConfig:
    """Layout rules and destination for one target device."""

    name: str
    target_root: str
    exclude: Tuple[str, ...] = ()
    aliases: Dict[str, str] = field(default_factory=dict)  # canonical -> device name
    bios_target: Optional[str] = None
    media_root: Optional[str] = None  # device-shared auxiliary media root
    media_folders: Tuple[str, ...] = ()
    media_renames: Dict[str, str] = field(default_factory=dict)  # canonical -> device folder
    metadata_root: Optional[str] = None  # device-shared metadata root
    metadata_filename: str = "gamelist.xml"
    prune_placeholders: bool = False

    def alias_for(self, category: str) -> Optional[str]:
        """Return the device folder name for a category, or None if not renamed."""
        alias = self.aliases.get(category)
        if alias and alias != category:
            return alias
        return None


@dataclass(frozen=True)
class Config:
    """Main configuration object."""

    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    devices: Dict[str, DeviceConfig] = field(default_factory=dict)

    def device(self, name: str) -> DeviceConfig:
        """Look up a device section.

        Raises:
            ConfigurationError: If the device is not configured
        """
        try:
            return self.devices[name]
        except KeyError:
            known = ", ".join(sorted(self.devices)) or "none"
            raise ConfigurationError(
                f"Unknown device '{name}' (configured devices: {known})"
            ) from None

    def require_source_root(self) -> Path:
        """Return the source root.

        Raises:
            ConfigurationError: If no source root is configured
        """
        if not self.sync.source_root:
            raise ConfigurationError(
                "[global] source_root is not set (or ROMSYNC_SOURCE_ROOT)"
            )
        return Path(self.sync.source_root)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "romsync"
    return Path.home() / ".config" / "romsync"


def _find_project_config() -> Optional[Path]:
    """Find romsync.toml in the project root by looking for pyproject.toml.

    Returns:
        Path to romsync.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "romsync.toml"
            if config_path.exists():
                return config_path
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for romsync.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/romsync (or ~/.config/romsync)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "romsync.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "romsync.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "romsync"
    return Path.home() / ".local" / "share" / "romsync"


def get_log_dir(config: Config) -> Path:
    """Directory holding the per-device run logs."""
    if config.logging.log_dir:
        return Path(config.logging.log_dir).expanduser()
    return get_data_dir() / "logs"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# romsync configuration

[global]
# Directory holding one folder per category (system), each with its gamelist.xml
# source_root = "/path/to/curated/roms"

# Options passed to rsync for every category
rsync_options = "-avh --progress --no-owner --no-group --checksum --inplace"

# Abort when the target has less free space than this (GB)
min_free_space_gb = 1

# Fields merged from the device gamelist back into the source gamelist
preserved_fields = ["favorite", "hidden", "playcount", "crc32", "cheevosId", "cheevosHash"]

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Directory for run logs (default: ~/.local/share/romsync/logs)
# log_dir = "/path/to/logs"

# Example device: uncomment and adapt
# [devices.rp4pro]
# target_root = "/media/rp4pro/roms"
# exclude = ["screenshots", "titlescreens", "gc"]
# bios_target = "/media/rp4pro/bios"
# media_root = "/media/rp4pro/tools/downloaded_media"
# media_folders = ["screenshots", "titlescreens", "videos", "Imgs", "box2dfront"]
# metadata_root = "/media/rp4pro/gamelists"
# metadata_filename = "gamelist.xml"
# prune_placeholders = false
#
# [devices.rp4pro.aliases]
# snes = "SFC"
#
# [devices.rp4pro.media_renames]
# Imgs = "miximages"
""".strip()


def _string_tuple(value: Any, setting: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{setting} must be a list of strings")
    return tuple(value)


def _string_map(value: Any, setting: str) -> Dict[str, str]:
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ConfigurationError(f"{setting} must be a table of strings")
    return dict(value)


def _optional_path(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return str(Path(value).expanduser())


def _parse_device(name: str, data: Dict[str, Any]) -> DeviceConfig:
    target_root = data.get("target_root")
    if not target_root:
        raise ConfigurationError(f"[devices.{name}] target_root is required")

    return DeviceConfig(
        name=name,
        target_root=str(Path(target_root).expanduser()),
        exclude=_string_tuple(data.get("exclude", []), f"[devices.{name}] exclude"),
        aliases=_string_map(data.get("aliases", {}), f"[devices.{name}.aliases]"),
        bios_target=_optional_path(data.get("bios_target")),
        media_root=_optional_path(data.get("media_root")),
        media_folders=_string_tuple(
            data.get("media_folders", []), f"[devices.{name}] media_folders"
        ),
        media_renames=_string_map(
            data.get("media_renames", {}), f"[devices.{name}.media_renames]"
        ),
        metadata_root=_optional_path(data.get("metadata_root")),
        metadata_filename=data.get("metadata_filename", "gamelist.xml"),
        prune_placeholders=bool(data.get("prune_placeholders", False)),
    )


def parse_config(toml_data: Dict[str, Any]) -> Config:
    """Build a Config from already-parsed TOML data.

    Raises:
        ConfigurationError: If a setting has the wrong shape
    """
    defaults = SyncConfig()
    global_data = toml_data.get("global", {})

    preserved = _string_tuple(
        global_data.get("preserved_fields", list(defaults.preserved_fields)),
        "[global] preserved_fields",
    )
    unknown = set(preserved) - set(KNOWN_PRESERVED_FIELDS)
    if unknown:
        raise ConfigurationError(
            f"Unknown preserved fields: {sorted(unknown)}. "
            f"Valid fields are: {list(KNOWN_PRESERVED_FIELDS)}"
        )

    min_free = global_data.get("min_free_space_gb", defaults.min_free_space_gb)
    if not isinstance(min_free, int) or min_free < 0:
        raise ConfigurationError("[global] min_free_space_gb must be a non-negative integer")

    source_root = os.environ.get("ROMSYNC_SOURCE_ROOT") or global_data.get("source_root")

    sync_config = SyncConfig(
        source_root=_optional_path(source_root),
        rsync_options=global_data.get("rsync_options", defaults.rsync_options),
        min_free_space_gb=min_free,
        preserved_fields=preserved,
    )

    logging_data = toml_data.get("logging", {})
    logging_defaults = LoggingConfig()
    logging_config = LoggingConfig(
        level=str(logging_data.get("level", logging_defaults.level)).upper(),
        log_dir=_optional_path(logging_data.get("log_dir")),
        max_file_size_mb=logging_data.get(
            "max_file_size_mb", logging_defaults.max_file_size_mb
        ),
        backup_count=logging_data.get("backup_count", logging_defaults.backup_count),
    )

    devices = {
        name: _parse_device(name, device_data)
        for name, device_data in toml_data.get("devices", {}).items()
    }

    return Config(sync=sync_config, logging=logging_config, devices=devices)


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - ROMSYNC_SOURCE_ROOT

    Args:
        config_path: Explicit config file; must exist when given

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
    else:
        config_path = get_config_path()
        if not config_path.exists():
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            print(f"Created default configuration at: {config_path}")

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Error loading configuration from {config_path}: {e}") from e

    return parse_config(toml_data)

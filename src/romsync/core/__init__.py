"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Exception types
- Logging and console output (Loguru, Rich)
- Filesystem durability barrier

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

from .config import (
    Config,
    DeviceConfig,
    LoggingConfig,
    SyncConfig,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_dir,
    load_config,
)
from .errors import (
    CatalogDocumentError,
    ConfigurationError,
    FatalTransferError,
    LayoutTransformWarning,
    PartialTransferWarning,
    PreconditionError,
    ReconciliationError,
    RomSyncError,
    TransferError,
)
from .storage import flush_filesystem, free_space_gb

__all__ = [
    "Config",
    "DeviceConfig",
    "LoggingConfig",
    "SyncConfig",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_dir",
    "load_config",
    "CatalogDocumentError",
    "ConfigurationError",
    "FatalTransferError",
    "LayoutTransformWarning",
    "PartialTransferWarning",
    "PreconditionError",
    "ReconciliationError",
    "RomSyncError",
    "TransferError",
    "flush_filesystem",
    "free_space_gb",
]

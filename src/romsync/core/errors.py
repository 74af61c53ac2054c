"""Exception types shared across romsync layers."""

from pathlib import Path
from typing import Optional


class RomSyncError(Exception):
    """Base exception for romsync operations."""

    pass


class ConfigurationError(RomSyncError):
    """Raised when a required setting is missing or invalid."""

    pass


class PreconditionError(RomSyncError):
    """Raised when the environment is not fit for a run (missing roots, low space)."""

    pass


class CatalogDocumentError(RomSyncError):
    """Raised when a catalog document cannot be parsed, edited or written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)


class ReconciliationError(RomSyncError):
    """Raised when merging device state into a source catalog fails."""

    def __init__(self, category: str, message: str):
        self.category = category
        super().__init__(f"[{category}] {message}")


class TransferError(RomSyncError):
    """Base exception for bulk-copy outcomes other than clean success."""

    def __init__(self, category: str, exit_code: Optional[int], message: str):
        self.category = category
        self.exit_code = exit_code
        super().__init__(f"[{category}] {message}")


class PartialTransferWarning(TransferError):
    """Transfer completed but some individual files could not be copied."""

    pass


class FatalTransferError(TransferError):
    """Transfer failed entirely for a category."""

    pass


class LayoutTransformWarning(RomSyncError):
    """A rename or move during a layout transform could not be performed.

    Never raised out of the layout pipeline; instances are collected and
    reported so the run can carry on.
    """

    def __init__(self, category: str, step: str, path: Path, reason: str):
        self.category = category
        self.step = step
        self.path = path
        self.reason = reason
        super().__init__(f"[{category}] {step}: {path}: {reason}")

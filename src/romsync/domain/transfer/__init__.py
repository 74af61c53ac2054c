"""Transfer domain - per-category rsync invocations."""

from .rsync import (
    PARTIAL_EXIT_CODES,
    TransferResult,
    build_rsync_command,
    category_excludes,
    copy_bios,
    count_items,
    rsync_available,
    run_rsync,
    transfer_category,
)

__all__ = [
    "PARTIAL_EXIT_CODES",
    "TransferResult",
    "build_rsync_command",
    "category_excludes",
    "copy_bios",
    "count_items",
    "rsync_available",
    "run_rsync",
    "transfer_category",
]

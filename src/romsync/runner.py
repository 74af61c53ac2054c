"""
Run orchestration for romsync

Phases, in order, each finishing across every category before the next
starts:

1. Preconditions (roots exist, free space, rsync installed)
2. Device layout -> canonical layout (renames, media, metadata), with a
   filesystem flush after each step
3. Reconciliation of device user state into source catalogs (parallel)
4. Per category: transfer, optional BIOS copy, canonical -> device layout

Configuration and precondition failures abort before any category is
touched. Everything after that is isolated per category.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.markup import escape
from rich.table import Table

from .core.config import Config, DeviceConfig
from .core.console import get_console
from .core.errors import (
    FatalTransferError,
    LayoutTransformWarning,
    PreconditionError,
    RomSyncError,
)
from .core.output import is_silent, log
from .core.storage import flush_filesystem, free_space_gb
from .dispatch import dispatch
from .domain.device import (
    Category,
    build_category,
    list_source_subdirectories,
    resolve_categories,
)
from .domain.layout import to_canonical_layout, to_device_layout
from .domain.reconcile import ReconcileResult, reconcile_category
from .domain.transfer import (
    TransferResult,
    category_excludes,
    copy_bios,
    count_items,
    rsync_available,
    transfer_category,
)

EXIT_OK = 0
EXIT_CATEGORY_FAILED = 1
EXIT_FATAL = 2


@dataclass(frozen=True)
class RunOptions:
    """What the user asked for on the command line."""

    device: str
    categories: Tuple[str, ...] = ()
    dry_run: bool = False
    skip_reconcile: bool = False
    purge: bool = False
    include_bios: bool = False


@dataclass
class CategoryOutcome:
    """Everything that happened to one category during a run."""

    name: str
    reconcile: Optional[ReconcileResult] = None
    transfer: Optional[TransferResult] = None
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def fail(self, error: Exception) -> None:
        # Keep the first failure; later ones are consequences
        if self.error is None:
            self.error = str(error)

    def add_warnings(self, warnings: List[LayoutTransformWarning]) -> None:
        self.warnings.extend(str(w) for w in warnings)


@dataclass
class RunSummary:
    """Per-category outcomes of a run."""

    device: str
    dry_run: bool = False
    outcomes: Dict[str, CategoryOutcome] = field(default_factory=dict)

    @property
    def succeeded(self) -> List[str]:
        return [name for name, o in self.outcomes.items() if o.succeeded]

    @property
    def failed(self) -> List[str]:
        return [name for name, o in self.outcomes.items() if not o.succeeded]

    @property
    def exit_code(self) -> int:
        return EXIT_CATEGORY_FAILED if self.failed else EXIT_OK


def check_preconditions(config: Config, device: DeviceConfig) -> None:
    """Verify the run can start without touching any category.

    Raises:
        PreconditionError: Missing roots, insufficient space or no rsync
    """
    source_root = config.require_source_root()
    target_root = Path(device.target_root)

    for label, directory in (("source", source_root), ("target", target_root)):
        log(f"Checking for {label} directory: {directory}", level="debug")
        if not directory.is_dir():
            raise PreconditionError(f"{label.capitalize()} directory '{directory}' not found")

    for label, root in (("media", device.media_root), ("metadata", device.metadata_root)):
        if not root:
            continue
        try:
            Path(root).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PreconditionError(
                f"Failed to create or find {label} root '{root}': {e.strerror}"
            ) from e

    available = free_space_gb(target_root)
    required = config.sync.min_free_space_gb
    log(f"Free space on '{target_root}': {available} GB, required: {required} GB", level="debug")
    if available < required:
        raise PreconditionError(
            f"Insufficient free space on '{target_root}'. "
            f"Required: {required} GB, Available: {available} GB"
        )

    if not rsync_available():
        raise PreconditionError("rsync not found on PATH")


def plan_categories(config: Config, device: DeviceConfig, options: RunOptions) -> List[Category]:
    """Resolve which categories this run processes."""
    source_root = config.require_source_root()
    if options.categories:
        log(f"Targeted update for: {' '.join(options.categories)}")
        subdirectories: List[str] = []
    else:
        log(f"Full sync from: {source_root}")
        if not source_root.is_dir():
            raise PreconditionError(f"Source directory '{source_root}' not found")
        subdirectories = list_source_subdirectories(source_root)

    names = resolve_categories(subdirectories, device.exclude, options.categories)
    return [build_category(name, config, device) for name in names]


def _reconcile_all(
    categories: List[Category],
    config: Config,
    outcomes: Dict[str, CategoryOutcome],
) -> None:
    log(f"Starting parallel gamelist synchronization for {len(categories)} categories")
    fields = config.sync.preserved_fields
    results = dispatch(
        categories,
        lambda category: reconcile_category(category, fields),
        key=lambda category: category.name,
    )
    for name, result in results.items():
        if result.ok:
            outcomes[name].reconcile = result.value
        else:
            log(f"Gamelist merge failed for {name}: {result.error}", level="error")
            outcomes[name].fail(result.error)
    if categories:
        flush_filesystem("reconciliation")


def _log_item_counts(categories: List[Category], excludes: List[str]) -> None:
    total = 0
    for category in categories:
        if not category.source_path.is_dir():
            continue
        items = count_items(category.source_path, excludes)
        total += items
        log(f"  - Category '{category.name}': {items} items.", level="debug")
    log(f"Total items (files and directories) to consider: {total}")


def _sync_category(
    category: Category,
    config: Config,
    device: DeviceConfig,
    options: RunOptions,
    excludes: List[str],
    outcome: CategoryOutcome,
) -> None:
    """Transfer one category and restore its device layout."""
    if outcome.succeeded:
        try:
            outcome.transfer = transfer_category(
                category,
                config.sync.rsync_options,
                excludes=excludes,
                purge=options.purge,
                dry_run=options.dry_run,
            )
        except FatalTransferError as e:
            log(f"{e}; skipping post-processing", level="error")
            outcome.fail(e)
            return

        if outcome.transfer.partial:
            outcome.warnings.append(str(outcome.transfer.warning))

        if options.include_bios and device.bios_target and not options.dry_run:
            try:
                copy_bios(category, Path(device.bios_target))
            except FatalTransferError as e:
                log(f"BIOS copy failed: {e}", level="error")
                outcome.fail(e)
    else:
        # Keep the device copy (and its user state) untouched when the merge failed
        log(f"[{category.name}] Skipping transfer: gamelist merge failed", level="warning")

    outcome.add_warnings(to_device_layout(category, device))


def run_sync(config: Config, options: RunOptions) -> RunSummary:
    """Run a full sync for one device.

    Raises:
        ConfigurationError: Missing or invalid configuration
        PreconditionError: Environment not fit for a run
    """
    device = config.device(options.device)
    summary = RunSummary(device=device.name, dry_run=options.dry_run)

    categories = plan_categories(config, device, options)
    log(f"Categories for this run: {' '.join(c.name for c in categories) or '(none)'}")
    check_preconditions(config, device)

    if options.dry_run:
        log("Dry run mode enabled: rsync will not make changes.", level="warning")

    outcomes = {c.name: CategoryOutcome(c.name) for c in categories}
    summary.outcomes = outcomes

    log(f"Restoring canonical layout on {device.name} (pre-transfer)...")
    for name, warnings in to_canonical_layout(categories, device).items():
        outcomes[name].add_warnings(warnings)

    if options.skip_reconcile:
        log("Skipping gamelist synchronization (--skip-reconcile)")
    else:
        _reconcile_all(categories, config, outcomes)

    excludes = category_excludes(
        device.exclude, [c.name for c in categories], include_bios=options.include_bios
    )
    _log_item_counts(categories, excludes)

    log("Syncing categories...")
    if options.purge:
        log("Purge mode enabled: rsync will delete extraneous files from target.")
    for category in categories:
        try:
            _sync_category(category, config, device, options, excludes, outcomes[category.name])
        except RomSyncError as e:
            log(str(e), level="error")
            outcomes[category.name].fail(e)

    log(f"{device.name} sync and modifications complete.")
    flush_filesystem("final")
    return summary


def print_summary(summary: RunSummary) -> None:
    """Log the per-category outcome and, unless silent, render a table."""
    for name, outcome in summary.outcomes.items():
        if outcome.succeeded:
            log(f"OK {name} ({len(outcome.warnings)} warnings)", level="success")
        else:
            log(f"FAILED {name}: {outcome.error}", level="error")
    log(
        f"Summary: {len(summary.succeeded)} succeeded, {len(summary.failed)} failed"
        f"{' (dry run)' if summary.dry_run else ''}"
    )

    if is_silent() or not summary.outcomes:
        return

    table = Table(title=f"romsync: {summary.device}")
    table.add_column("Category", style="bold")
    table.add_column("Merged fields", justify="right")
    table.add_column("Transfer")
    table.add_column("Warnings", justify="right")
    table.add_column("Result")

    for name, outcome in summary.outcomes.items():
        merged = str(outcome.reconcile.edits) if outcome.reconcile else "-"
        if outcome.transfer is None:
            transfer = "-"
        elif outcome.transfer.partial:
            transfer = f"partial ({outcome.transfer.exit_code})"
        else:
            transfer = "ok"
        result = "[green]ok[/green]" if outcome.succeeded else "[red]failed[/red]"
        table.add_row(escape(name), merged, transfer, str(len(outcome.warnings)), result)

    get_console().print(table)

"""
romsync CLI - Entry point

Synchronizes a curated ROM collection to a target device, merging the
device's favorites/play state back into the source gamelists first.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from romsync.core.config import get_log_dir, load_config
from romsync.core.errors import ConfigurationError, PreconditionError
from romsync.core.output import log, set_silent_mode, setup_loguru
from romsync.runner import EXIT_FATAL, RunOptions, print_summary, run_sync


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the romsync command."""
    parser = argparse.ArgumentParser(
        prog="romsync",
        description=(
            "Synchronizes ROMs from a source directory to a target device. "
            "If no CATEGORY is given, all non-excluded categories are synced."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Exit codes: 0 all categories succeeded, 1 one or more categories "
            "failed, 2 configuration or precondition error."
        ),
    )
    parser.add_argument("device", help="Device section in the config file (e.g. rp4pro)")
    parser.add_argument(
        "categories",
        nargs="*",
        metavar="CATEGORY",
        help="Only sync these categories (system folder names)",
    )
    parser.add_argument(
        "-s", "--silent",
        action="store_true",
        help="No console output, only the log file",
    )
    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Simulate the transfer (gamelist fields are still merged into the source)",
    )
    parser.add_argument(
        "--skip-reconcile",
        action="store_true",
        help="Skip merging device gamelist fields (favorites, preserved fields)",
    )
    parser.add_argument(
        "--purge",
        action="store_true",
        help="Delete files on the target that are not in the source",
    )
    parser.add_argument(
        "--bios",
        action="store_true",
        help="Also copy each category's bios folder to the device BIOS folder",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to romsync.toml (default: project root, cwd, then ~/.config/romsync)",
    )
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the sync and return the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        device = config.device(args.device)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FATAL

    setup_loguru(
        get_log_dir(config) / f"romsync_{device.name}.log",
        level=config.logging.level,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )
    set_silent_mode(args.silent)

    options = RunOptions(
        device=device.name,
        categories=tuple(args.categories),
        dry_run=args.dry_run,
        skip_reconcile=args.skip_reconcile,
        purge=args.purge,
        include_bios=args.bios,
    )
    logger.info(f"Run options: {options}")

    try:
        summary = run_sync(config, options)
    except (ConfigurationError, PreconditionError) as e:
        log(f"Error: {e}", level="error")
        if args.silent:
            print(f"romsync: {e}", file=sys.stderr)
        return EXIT_FATAL

    print_summary(summary)
    return summary.exit_code


def main() -> None:
    """Main entry point for the romsync command."""
    sys.exit(run())


if __name__ == "__main__":
    main()

"""
Category discovery.

Which categories a run touches is a pure function of the source listing,
the exclude set and the explicit targets; the listing itself is the only
filesystem access.
"""

from pathlib import Path
from typing import Iterable, List


def resolve_categories(
    source_subdirectories: Iterable[str],
    exclude: Iterable[str],
    explicit_targets: Iterable[str] = (),
) -> List[str]:
    """Decide which categories a run processes.

    Explicit targets win outright (even excluded ones), in the order given
    with repeats dropped. Otherwise every source subdirectory not excluded,
    sorted by name.

    Args:
        source_subdirectories: Folder names found under the source root
        exclude: Category names never synced by default
        explicit_targets: Categories named on the command line

    Returns:
        Category names to process
    """
    targets = list(dict.fromkeys(t for t in explicit_targets if t))
    if targets:
        return targets

    excluded = set(exclude)
    return sorted(
        name
        for name in set(source_subdirectories)
        if name and name not in excluded and not name.startswith(".")
    )


def list_source_subdirectories(source_root: Path) -> List[str]:
    """Names of the immediate subdirectories of the source root."""
    return [entry.name for entry in source_root.iterdir() if entry.is_dir()]

"""Centralized Rich Console management.

Provides a singleton Rich Console shared by log() console echo and the
end-of-run category summary table, so both write to one terminal.
"""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Get or create the global Rich Console instance.

    Returns:
        Console: The global Rich Console instance
    """
    global _console
    if _console is None:
        _console = Console()
    return _console

"""
Parallel fan-out of per-category work.

Each task touches only its own category's files, so categories run on a
thread pool bounded by the processor count. A failing task is recorded
against its category and never cancels the others.
"""

import concurrent.futures
import os
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional, TypeVar

from loguru import logger

T = TypeVar("T")
R = TypeVar("R")


class TaskOutcome(NamedTuple):
    """Result of one task: either a value or the exception it raised."""

    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def default_workers() -> int:
    return os.cpu_count() or 1


def dispatch(
    items: Iterable[T],
    task: Callable[[T], R],
    key: Callable[[T], str] = str,
    max_workers: Optional[int] = None,
) -> Dict[str, TaskOutcome]:
    """Run task over items concurrently and collect outcomes by key.

    Args:
        items: Work items (one per category)
        task: Callable applied to each item
        key: Maps an item to its outcome key (category name)
        max_workers: Pool size; defaults to the processor count

    Returns:
        Outcome per key, in the order items were given
    """
    items = list(items)
    if not items:
        return {}

    workers = min(max_workers or default_workers(), len(items))
    outcomes: Dict[str, TaskOutcome] = {key(item): TaskOutcome() for item in items}

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="romsync"
    ) as executor:
        future_to_key = {executor.submit(task, item): key(item) for item in items}

        for future in concurrent.futures.as_completed(future_to_key):
            name = future_to_key[future]
            try:
                outcomes[name] = TaskOutcome(value=future.result())
            except Exception as e:
                logger.opt(exception=e).debug(f"Task for {name} failed")
                outcomes[name] = TaskOutcome(error=e)

    return outcomes

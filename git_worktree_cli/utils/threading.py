"""Worker pool sizing for the pull request fan-out."""

import os
import sys
from typing import Optional


def is_free_threading_enabled() -> bool:
    """True on a free-threaded (GIL disabled) interpreter, Python 3.13+."""
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    if is_gil_enabled is None:
        return False
    return not is_gil_enabled()


def get_optimal_worker_count(task_count: Optional[int] = None, cap: Optional[int] = None) -> int:
    """Number of threads for I/O-bound work.

    Args:
        task_count: Number of tasks to run; no point in more workers than tasks
        cap: Upper bound, e.g. to stay friendly with API rate limits

    Returns:
        At least 1
    """
    cpu_count = os.cpu_count() or 1
    if is_free_threading_enabled():
        workers = min(64, cpu_count * 2)
    else:
        # CPU_count + 4 is the usual heuristic for I/O-bound pools
        workers = min(32, cpu_count + 4)

    if cap is not None:
        workers = min(workers, cap)
    if task_count is not None:
        workers = min(workers, task_count)
    return max(1, workers)

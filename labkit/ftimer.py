"""Wall-clock estimates of the average running time of a function."""

from __future__ import annotations

import time
from typing import Any, Callable


def _check_runs(n: int) -> None:
    if n < 1:
        raise ValueError(f"number of runs must be positive, got {n}")


def ftimer_itimer(f: Callable[[Any], object], argp: Any, n: int) -> float:
    """Average seconds per call of ``f(argp)`` over ``n`` runs, from a monotonic interval clock."""
    _check_runs(n)
    start = time.monotonic()
    for _ in range(n):
        f(argp)
    return (time.monotonic() - start) / n


def ftimer_gettod(f: Callable[[Any], object], argp: Any, n: int) -> float:
    """Average seconds per call of ``f(argp)`` over ``n`` runs, from the time of day."""
    _check_runs(n)
    start = time.time()
    for _ in range(n):
        f(argp)
    return (time.time() - start) / n
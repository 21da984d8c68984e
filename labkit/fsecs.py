"""High-level timing of a function in seconds."""

from __future__ import annotations

import sys
from typing import Any, Callable

from labkit.ftimer import ftimer_gettod


class Timer:
    """Measures running time with the time of day, averaging over several runs."""

    runs = 10

    def __init__(self, verbose: int = 0) -> None:
        self.verbose = verbose
        if verbose:
            sys.stdout.write("Measuring performance with gettimeofday().\n")

    def fsecs(self, f: Callable[[Any], object], argp: Any) -> float:
        """Return the running time of ``f(argp)`` in seconds."""
        return ftimer_gettod(f, argp, self.runs)
"""A cycle counter with overhead, clock-rate and timer-interrupt compensation helpers."""

from __future__ import annotations

import os
import sys
import time
from typing import Callable


def _user_ticks() -> int:
    """User CPU time of this process, in clock ticks."""
    try:
        hz = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        hz = 100
    return int(os.times().user * hz)


class CycleCounter:
    """Counts elapsed "cycles" of a monotonic integer clock since the last start.

    ``clock`` returns the current cycle count, ``user_ticks`` the process's
    user time in clock ticks, and ``sleep`` pauses for a number of seconds.
    """

    NEVENT = 100
    THRESHOLD = 1000
    RECORDTHRESH = 3000

    def __init__(
        self,
        clock: Callable[[], int] = time.perf_counter_ns,
        user_ticks: Callable[[], int] = _user_ticks,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self._clock = clock
        self._user_ticks = user_ticks
        self._sleep = sleep
        self._start = 0
        self._start_tick = 0
        self.cyc_per_tick = 0.0

    def start(self) -> None:
        """Record the current value of the counter."""
        self._start = self._clock()

    def get(self) -> float:
        """Cycles elapsed since the last call to start."""
        result = float(self._clock() - self._start)
        if result < 0:
            sys.stderr.write(f"Error: counter returns neg value: {result:.0f}\n")
        return result

    def overhead(self) -> float:
        """Cycles taken by a start/get pair, measured twice to warm caches."""
        result = 0.0
        for _ in range(2):
            self.start()
            result = self.get()
        return result

    def mhz_full(self, verbose: bool, sleeptime: int) -> float:
        """Estimate the clock rate by counting cycles while sleeping ``sleeptime`` seconds."""
        if sleeptime <= 0:
            raise ValueError(f"sleep time must be positive, got {sleeptime}")
        self.start()
        self._sleep(sleeptime)
        rate = self.get() / (1e6 * sleeptime)
        if verbose:
            sys.stdout.write(f"Processor clock rate ~= {rate:.1f} MHz\n")
        return rate

    def mhz(self, verbose: bool) -> float:
        """Estimate the clock rate using the default two-second sleep."""
        return self.mhz_full(verbose, 2)

    def _calibrate(self, verbose: bool = False) -> None:
        """Estimate how many cycles each timer tick costs."""
        oldc = self._user_ticks()
        self.start()
        oldt = self.get()
        events = 0
        while events < self.NEVENT:
            newt = self.get()
            if newt - oldt >= self.THRESHOLD:
                newc = self._user_ticks()
                if newc > oldc:
                    cpt = (newt - oldt) / (newc - oldc)
                    if (self.cyc_per_tick == 0.0 or self.cyc_per_tick > cpt) and cpt > self.RECORDTHRESH:
                        self.cyc_per_tick = cpt
                    events += 1
                    oldc = newc
                oldt = newt
        if verbose:
            sys.stdout.write(f"Setting cyc_per_tick to {self.cyc_per_tick:f}\n")

    def start_compensated(self) -> None:
        """Start a measurement that subtracts timer-interrupt time, calibrating first if needed."""
        if self.cyc_per_tick == 0.0:
            self._calibrate(False)
        self._start_tick = self._user_ticks()
        self.start()

    def get_compensated(self) -> float:
        """Cycles since start_compensated, less the estimated cost of the ticks seen."""
        elapsed = self.get()
        ticks = self._user_ticks() - self._start_tick
        return elapsed - ticks * self.cyc_per_tick
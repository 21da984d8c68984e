"""K-best estimation of the number of cycles a function takes."""

from __future__ import annotations

from typing import Any, Callable

from labkit.cycles import CycleCounter

K = 3
MAXSAMPLES = 20
EPSILON = 0.01
CACHE_BYTES = 1 << 19
CACHE_BLOCK = 32


class KBestSampler:
    """Keeps the ``k`` smallest samples seen, in ascending order."""

    def __init__(self, k: int = K, epsilon: float = EPSILON) -> None:
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.epsilon = epsilon
        self._values: list[float] = []
        self.samplecount = 0

    @property
    def values(self) -> list[float]:
        """The smallest samples so far, smallest first."""
        return list(self._values)

    def add(self, value: float) -> None:
        """Record one sample."""
        if len(self._values) < self.k:
            self._values.append(value)
        elif value < self._values[-1]:
            self._values[-1] = value
        pos = len(self._values) - 1
        while pos > 0 and self._values[pos - 1] > self._values[pos]:
            self._values[pos - 1], self._values[pos] = self._values[pos], self._values[pos - 1]
            pos -= 1
        self.samplecount += 1

    def has_converged(self) -> bool:
        """True once the k smallest samples lie within epsilon of each other."""
        return (
            self.samplecount >= self.k
            and (1 + self.epsilon) * self._values[0] >= self._values[self.k - 1]
        )

    def best(self) -> float:
        """The smallest sample; ValueError if there is none."""
        if not self._values:
            raise ValueError("no samples recorded")
        return self._values[0]


class Fcyc:
    """Measures a function repeatedly until its k best times agree, or samples run out."""

    def __init__(
        self,
        counter: CycleCounter | None = None,
        k: int = K,
        maxsamples: int = MAXSAMPLES,
        epsilon: float = EPSILON,
        compensate: bool = False,
        clear_cache: bool = False,
        cache_bytes: int = CACHE_BYTES,
        cache_block: int = CACHE_BLOCK,
    ) -> None:
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        if cache_block < 1:
            raise ValueError(f"cache block must be positive, got {cache_block}")
        self.counter = counter if counter is not None else CycleCounter()
        self.k = k
        self.maxsamples = maxsamples
        self.epsilon = epsilon
        self.compensate = compensate
        self.clear_cache = clear_cache
        self.cache_bytes = cache_bytes
        self.cache_block = cache_block
        self._cache_buf: bytearray | None = None
        self._sink = 0

    def set_cache_size(self, nbytes: int) -> None:
        """Change the size of the buffer swept to clear the cache."""
        if nbytes != self.cache_bytes:
            self.cache_bytes = nbytes
            self._cache_buf = None

    def _clear(self) -> None:
        if self._cache_buf is None:
            self._cache_buf = bytearray(self.cache_bytes)
        self._sink += sum(self._cache_buf[:: self.cache_block])

    def measure(self, f: Callable[..., Any], *args: Any) -> float:
        """Return the best cycle count observed for ``f(*args)``."""
        sampler = KBestSampler(self.k, self.epsilon)
        if self.compensate:
            start, get = self.counter.start_compensated, self.counter.get_compensated
        else:
            start, get = self.counter.start, self.counter.get
        while True:
            if self.clear_cache:
                self._clear()
            start()
            f(*args)
            sampler.add(get())
            if sampler.has_converged() or sampler.samplecount >= self.maxsamples:
                break
        return sampler.best()
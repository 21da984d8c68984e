"""A simulated memory system with a brk-style heap that can only grow."""

from __future__ import annotations

import mmap

MAX_HEAP = 20 * (1 << 20)


class OutOfMemory(MemoryError):
    """Raised when the simulated heap cannot be extended."""


class SimulatedHeap:
    """A fixed block of storage modelling the heap, addressed from 0.

    ``sbrk`` hands out consecutive regions; the heap is reset, never shrunk.
    """

    def __init__(self, max_heap: int = MAX_HEAP) -> None:
        if max_heap < 0:
            raise ValueError(f"heap size must not be negative, got {max_heap}")
        self.max_heap = max_heap
        self._mem = bytearray(max_heap)
        self._brk = 0

    def reset_brk(self) -> None:
        """Make the heap empty again."""
        self._brk = 0

    def sbrk(self, incr: int) -> int:
        """Extend the heap by ``incr`` bytes and return the start of the new area."""
        if incr < 0 or self._brk + incr > self.max_heap:
            raise OutOfMemory("ERROR: mem_sbrk failed. Ran out of memory...")
        old_brk = self._brk
        self._brk += incr
        return old_brk

    def heap_lo(self) -> int:
        """Address of the first heap byte."""
        return 0

    def heap_hi(self) -> int:
        """Address of the last heap byte."""
        return self._brk - 1

    def heapsize(self) -> int:
        """Current heap size in bytes."""
        return self._brk

    def pagesize(self) -> int:
        """Page size of the system."""
        return mmap.PAGESIZE

    def _check(self, addr: int, size: int) -> None:
        if size < 0 or addr < 0 or addr + size > self._brk:
            raise IndexError(
                f"access of {size} bytes at {addr:#x} lies outside the heap (size {self._brk})"
            )

    def read(self, addr: int, size: int) -> bytes:
        """Return ``size`` bytes starting at ``addr``."""
        self._check(addr, size)
        return bytes(self._mem[addr : addr + size])

    def write(self, addr: int, data: bytes) -> None:
        """Store ``data`` starting at ``addr``."""
        self._check(addr, len(data))
        self._mem[addr : addr + len(data)] = data

    def fill(self, addr: int, value: int, size: int) -> None:
        """Set ``size`` bytes starting at ``addr`` to the low byte of ``value``."""
        self._check(addr, size)
        self._mem[addr : addr + size] = bytes([value & 0xFF]) * size
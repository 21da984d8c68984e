"""A naive allocator: blocks are carved off the top of the heap and never reused."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from labkit.memlib import SimulatedHeap

ALIGNMENT = 8
_HEADER = struct.Struct("<I")


def align(size: int) -> int:
    """Round ``size`` up to a multiple of ALIGNMENT."""
    return (size + (ALIGNMENT - 1)) & ~0x7


SIZE_T_SIZE = align(_HEADER.size)


@dataclass
class Team:
    """The team that wrote an allocator: a name and one or two members."""

    teamname: str = "ateam"
    name1: str = "Harry Bovik"
    id1: str = "bovik@example.com"
    name2: str = ""
    id2: str = ""

    def validate(self) -> None:
        """Raise ValueError if the team information is incomplete."""
        if not self.teamname:
            raise ValueError("Please provide the information about your team.")
        if not self.name1 or not self.id1:
            raise ValueError("You must fill in all team member 1 fields!")
        if bool(self.name2) != bool(self.id2):
            raise ValueError("You must fill in all or none of the team member 2 ID fields!")


class NaiveAllocator:
    """Allocates by bumping the brk pointer; each block has a size header before its payload."""

    def __init__(self, heap: SimulatedHeap) -> None:
        self.heap = heap

    def init(self) -> None:
        """Prepare the allocator; nothing is needed."""

    def malloc(self, size: int) -> int:
        """Return the address of a new payload of ``size`` bytes.

        Raises OutOfMemory when the heap cannot grow.
        """
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        p = self.heap.sbrk(align(size + SIZE_T_SIZE))
        self.heap.write(p, _HEADER.pack(size))
        return p + SIZE_T_SIZE

    def free(self, ptr: int | None) -> None:
        """Freeing does nothing."""

    def realloc(self, ptr: int | None, size: int) -> int:
        """Allocate a new block, copy over as much of the old payload as fits, free the old one."""
        newptr = self.malloc(size)
        if ptr is None:
            return newptr
        (old_size,) = _HEADER.unpack(self.heap.read(ptr - SIZE_T_SIZE, _HEADER.size))
        copy_size = min(size, old_size)
        self.heap.write(newptr, self.heap.read(ptr, copy_size))
        self.free(ptr)
        return newptr
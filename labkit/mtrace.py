"""Allocator trace files and the routines that replay them for correctness, utilization and speed."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from typing import Any, Iterator

from labkit.memlib import SimulatedHeap
from labkit.mm import ALIGNMENT

HDRLINES = 4


class OpType(enum.Enum):
    ALLOC = "a"
    FREE = "f"
    REALLOC = "r"


@dataclass(frozen=True)
class TraceOp:
    """One allocator request: the block id it concerns and, for alloc/realloc, a size."""

    type: OpType
    index: int
    size: int = 0


@dataclass
class Trace:
    """A parsed trace, with room to remember each block's address and payload size."""

    sugg_heapsize: int
    num_ids: int
    num_ops: int
    weight: int
    ops: list[TraceOp]
    blocks: list[Any] = field(init=False)
    block_sizes: list[int] = field(init=False)

    def __post_init__(self) -> None:
        self.blocks = [None] * self.num_ids
        self.block_sizes = [0] * self.num_ids


class TraceFormatError(ValueError):
    """Raised for a malformed trace file."""


class MallocError(Exception):
    """An allocator misbehaved on request ``opnum`` of trace ``tracenum``."""

    def __init__(self, message: str, opnum: int = 0, tracenum: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.opnum = opnum
        self.tracenum = tracenum

    @property
    def line(self) -> int:
        """Line of the trace file holding the failing request."""
        return self.opnum + HDRLINES + 1

    def __str__(self) -> str:
        return f"ERROR [trace {self.tracenum}, line {self.line}]: {self.message}"


def _ptr(addr: int) -> str:
    return f"0x{addr & 0xFFFFFFFF:x}"


class RangeList:
    """The payload extents of all currently allocated blocks, most recent first."""

    def __init__(self) -> None:
        self._ranges: list[tuple[int, int]] = []

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return reversed(self._ranges)

    def add(self, lo: int, size: int, heap: SimulatedHeap) -> None:
        """Check a new payload and remember it; raise MallocError if it is misplaced."""
        if size <= 0:
            raise ValueError(f"payload size must be positive, got {size}")
        hi = lo + size - 1
        if lo % ALIGNMENT:
            raise MallocError(f"Payload address ({_ptr(lo)}) not aligned to {ALIGNMENT} bytes")
        heap_lo, heap_hi = heap.heap_lo(), heap.heap_hi()
        if lo < heap_lo or lo > heap_hi or hi < heap_lo or hi > heap_hi:
            raise MallocError(
                f"Payload ({_ptr(lo)}:{_ptr(hi)}) lies outside heap ({_ptr(heap_lo)}:{_ptr(heap_hi)})"
            )
        for plo, phi in self:
            if plo <= lo <= phi or plo <= hi <= phi:
                raise MallocError(
                    f"Payload ({_ptr(lo)}:{_ptr(hi)}) overlaps another payload ({_ptr(plo)}:{_ptr(phi)})"
                )
        self._ranges.append((lo, hi))

    def remove(self, lo: int) -> None:
        """Forget the most recent payload that starts at ``lo``, if any."""
        for pos in range(len(self._ranges) - 1, -1, -1):
            if self._ranges[pos][0] == lo:
                del self._ranges[pos]
                return

    def clear(self) -> None:
        self._ranges.clear()


def parse_trace(text: str) -> Trace:
    """Parse the text of a trace file."""
    tokens = iter(text.split())

    def next_int(what: str) -> int:
        tok = next(tokens, None)
        if tok is None:
            raise TraceFormatError(f"unexpected end of trace while reading {what}")
        try:
            return int(tok)
        except ValueError:
            raise TraceFormatError(f"bad {what}: {tok!r}") from None

    sugg_heapsize = next_int("suggested heap size")
    num_ids = next_int("number of ids")
    num_ops = next_int("number of ops")
    weight = next_int("weight")

    ops: list[TraceOp] = []
    max_index = 0
    for tok in tokens:
        kind = tok[0]
        if kind in "ar":
            index = next_int("block index")
            size = next_int("block size")
            if size < 0:
                raise TraceFormatError(f"negative block size {size}")
            op_type = OpType.ALLOC if kind == "a" else OpType.REALLOC
            ops.append(TraceOp(op_type, index, size))
            max_index = max(max_index, index)
        elif kind == "f":
            index = next_int("block index")
            if index >= num_ids:
                raise TraceFormatError(f"free of unknown block {index}")
            ops.append(TraceOp(OpType.FREE, index))
        else:
            raise TraceFormatError(f"Bogus type character ({kind})")
        if index < 0:
            raise TraceFormatError(f"negative block index {index}")

    if max_index != num_ids - 1:
        raise TraceFormatError(f"largest block index {max_index} does not match {num_ids} ids")
    if num_ops != len(ops):
        raise TraceFormatError(f"header gives {num_ops} ops but the trace holds {len(ops)}")
    return Trace(sugg_heapsize, num_ids, num_ops, weight, ops)


def read_trace(tracedir: str, filename: str) -> Trace:
    """Read and parse the trace file ``filename`` in ``tracedir``."""
    path = os.path.join(tracedir, filename)
    with open(path, encoding="ascii") as f:
        text = f.read()
    try:
        return parse_trace(text)
    except TraceFormatError as err:
        raise TraceFormatError(f"{err} in tracefile {path}") from None


def _try(func, *args):
    try:
        return func(*args)
    except MemoryError:
        return None


def eval_mm_valid(trace: Trace, allocator, heap: SimulatedHeap, ranges: RangeList) -> None:
    """Replay the trace, checking every block; raise MallocError at the first fault."""
    heap.reset_brk()
    ranges.clear()
    try:
        allocator.init()
    except Exception as err:
        raise MallocError("mm_init failed.", 0) from err

    for i, op in enumerate(trace.ops):
        index, size = op.index, op.size
        tag = index & 0xFF
        try:
            if op.type is OpType.ALLOC:
                p = _try(allocator.malloc, size)
                if p is None:
                    raise MallocError("mm_malloc failed.")
                ranges.add(p, size, heap)
                heap.fill(p, tag, size)
                trace.blocks[index] = p
                trace.block_sizes[index] = size
            elif op.type is OpType.REALLOC:
                oldp = trace.blocks[index]
                newp = _try(allocator.realloc, oldp, size)
                if newp is None:
                    raise MallocError("mm_realloc failed.")
                ranges.remove(oldp)
                ranges.add(newp, size, heap)
                oldsize = min(trace.block_sizes[index], size)
                if any(b != tag for b in heap.read(newp, oldsize)):
                    raise MallocError("mm_realloc did not preserve the data from old block")
                heap.fill(newp, tag, size)
                trace.blocks[index] = newp
                trace.block_sizes[index] = size
            else:
                p = trace.blocks[index]
                ranges.remove(p)
                allocator.free(p)
        except MallocError as err:
            err.opnum = i
            raise


def eval_mm_util(trace: Trace, allocator, heap: SimulatedHeap) -> float:
    """Peak total payload divided by the final heap size."""
    heap.reset_brk()
    try:
        allocator.init()
    except Exception as err:
        raise RuntimeError("mm_init failed in eval_mm_util") from err

    total = peak = 0
    for op in trace.ops:
        index = op.index
        if op.type is OpType.ALLOC:
            p = _try(allocator.malloc, op.size)
            if p is None:
                raise RuntimeError("mm_malloc failed in eval_mm_util")
            trace.blocks[index] = p
            trace.block_sizes[index] = op.size
            total += op.size
            peak = max(peak, total)
        elif op.type is OpType.REALLOC:
            oldsize = trace.block_sizes[index]
            newp = _try(allocator.realloc, trace.blocks[index], op.size)
            if newp is None:
                raise RuntimeError("mm_realloc failed in eval_mm_util")
            trace.blocks[index] = newp
            trace.block_sizes[index] = op.size
            total += op.size - oldsize
            peak = max(peak, total)
        else:
            allocator.free(trace.blocks[index])
            total -= trace.block_sizes[index]

    heapsize = heap.heapsize()
    return peak / heapsize if heapsize else 0.0


def eval_mm_speed(trace: Trace, allocator, heap: SimulatedHeap) -> None:
    """Replay the trace on the allocator without checks, for timing."""
    heap.reset_brk()
    try:
        allocator.init()
    except Exception as err:
        raise RuntimeError("mm_init failed in eval_mm_speed") from err

    for op in trace.ops:
        if op.type is OpType.ALLOC:
            p = _try(allocator.malloc, op.size)
            if p is None:
                raise RuntimeError("mm_malloc error in eval_mm_speed")
            trace.blocks[op.index] = p
        elif op.type is OpType.REALLOC:
            newp = _try(allocator.realloc, trace.blocks[op.index], op.size)
            if newp is None:
                raise RuntimeError("mm_realloc error in eval_mm_speed")
            trace.blocks[op.index] = newp
        else:
            allocator.free(trace.blocks[op.index])


def _libc_realloc(old: bytearray | None, size: int) -> bytearray:
    new = bytearray(size)
    if old is not None:
        keep = min(size, len(old))
        new[:keep] = old[:keep]
    return new


def eval_libc_valid(trace: Trace) -> None:
    """Replay the trace with the runtime's own allocation; raise MallocError if it fails."""
    for i, op in enumerate(trace.ops):
        try:
            if op.type is OpType.ALLOC:
                trace.blocks[op.index] = bytearray(op.size)
            elif op.type is OpType.REALLOC:
                trace.blocks[op.index] = _libc_realloc(trace.blocks[op.index], op.size)
            else:
                trace.blocks[op.index] = None
        except MemoryError as err:
            what = "malloc" if op.type is OpType.ALLOC else "realloc"
            raise MallocError(f"libc {what} failed", i) from err


def eval_libc_speed(trace: Trace) -> None:
    """Replay the trace with the runtime's own allocation, for timing."""
    for op in trace.ops:
        if op.type is OpType.ALLOC:
            trace.blocks[op.index] = bytearray(op.size)
        elif op.type is OpType.REALLOC:
            trace.blocks[op.index] = _libc_realloc(trace.blocks[op.index], op.size)
        else:
            trace.blocks[op.index] = None
import pytest

from labkit.memlib import OutOfMemory, SimulatedHeap
from labkit.mm import ALIGNMENT, SIZE_T_SIZE, NaiveAllocator, Team


@pytest.fixture
def alloc():
    allocator = NaiveAllocator(SimulatedHeap(4096))
    allocator.init()
    return allocator


def test_malloc_aligned_and_inside_heap(alloc):
    p = alloc.malloc(13)
    assert p % ALIGNMENT == 0
    assert p >= alloc.heap.heap_lo()
    assert p + 13 - 1 <= alloc.heap.heap_hi()


def test_malloc_one_byte_grows_heap_by_two_words(alloc):
    alloc.malloc(1)
    assert alloc.heap.heapsize() == 16


def test_heap_growth_invariant(alloc):
    for size in (0, 1, 7, 8, 9, 100):
        before = alloc.heap.heapsize()
        alloc.malloc(size)
        grown = alloc.heap.heapsize() - before
        assert grown % ALIGNMENT == 0
        assert grown >= size + SIZE_T_SIZE


def test_blocks_do_not_overlap(alloc):
    a = alloc.malloc(24)
    b = alloc.malloc(24)
    assert b >= a + 24


def test_realloc_grow_preserves_data(alloc):
    p = alloc.malloc(5)
    alloc.heap.write(p, b"abcde")
    q = alloc.realloc(p, 50)
    assert q != p
    assert alloc.heap.read(q, 5) == b"abcde"


def test_realloc_shrink_keeps_prefix(alloc):
    p = alloc.malloc(8)
    alloc.heap.write(p, b"12345678")
    q = alloc.realloc(p, 3)
    assert alloc.heap.read(q, 3) == b"123"


def test_realloc_of_none_allocates(alloc):
    q = alloc.realloc(None, 10)
    assert q % ALIGNMENT == 0
    assert q + 10 - 1 <= alloc.heap.heap_hi()


def test_free_leaves_data(alloc):
    p = alloc.malloc(4)
    alloc.heap.write(p, b"keep")
    size = alloc.heap.heapsize()
    alloc.free(p)
    assert alloc.heap.heapsize() == size
    assert alloc.heap.read(p, 4) == b"keep"


def test_out_of_memory():
    allocator = NaiveAllocator(SimulatedHeap(32))
    with pytest.raises(OutOfMemory):
        allocator.malloc(100)


def test_negative_size_rejected(alloc):
    with pytest.raises(ValueError):
        alloc.malloc(-1)


def test_team_without_name_rejected():
    with pytest.raises(ValueError, match="information about your team"):
        Team(teamname="").validate()


def test_team_member_one_incomplete():
    with pytest.raises(ValueError, match="member 1"):
        Team(id1="").validate()


def test_team_member_two_half_filled():
    with pytest.raises(ValueError, match="member 2"):
        Team(name2="Second Person").validate()
import pytest

from xvkit.umalloc import HEADER_SIZE, MIN_GROWTH_UNITS, Allocator


def test_first_allocation_grows_heap_by_minimum():
    heap = Allocator(1 << 20)
    addr = heap.malloc(1)
    assert addr % HEADER_SIZE == 0
    assert heap.heap_size == MIN_GROWTH_UNITS * HEADER_SIZE
    assert 0 < addr < heap.heap_size


def test_allocations_do_not_overlap():
    heap = Allocator(1 << 20)
    sizes = [1, 7, 8, 100, 513, 4000]
    spans = sorted((heap.malloc(n), n) for n in sizes)
    for (a, n), (b, _) in zip(spans, spans[1:]):
        assert a + n <= b - HEADER_SIZE
    for addr, n in spans:
        assert addr + n <= heap.heap_size


def test_free_all_coalesces_to_one_block():
    heap = Allocator(1 << 20)
    addrs = [heap.malloc(n) for n in (10, 200, 30, 4096, 5)]
    for addr in addrs[::2] + addrs[1::2]:
        heap.free(addr)
    assert heap.free_blocks() == [(0, heap.heap_size)]


def test_freed_block_is_reused():
    heap = Allocator(1 << 20)
    addr = heap.malloc(64)
    heap.free(addr)
    assert heap.malloc(64) == addr


def test_free_space_accounting():
    heap = Allocator(1 << 20)
    sizes = [24, 1000, 3]
    for n in sizes:
        heap.malloc(n)
    used = sum(((n + HEADER_SIZE - 1) // HEADER_SIZE + 1) * HEADER_SIZE for n in sizes)
    free = sum(length for _, length in heap.free_blocks())
    assert free + used == heap.heap_size


def test_large_request_grows_beyond_minimum():
    heap = Allocator(1 << 20)
    request = MIN_GROWTH_UNITS * HEADER_SIZE
    addr = heap.malloc(request)
    assert heap.heap_size >= request + HEADER_SIZE
    assert addr + request <= heap.heap_size


def test_out_of_memory_raises():
    heap = Allocator(HEADER_SIZE * 10)
    with pytest.raises(MemoryError):
        heap.malloc(1)
    assert heap.heap_size == 0


def test_failed_growth_leaves_heap_usable():
    heap = Allocator(MIN_GROWTH_UNITS * HEADER_SIZE)
    first = heap.malloc(100)
    with pytest.raises(MemoryError):
        heap.malloc(MIN_GROWTH_UNITS * HEADER_SIZE)
    second = heap.malloc(100)
    assert second != first
    assert heap.heap_size == MIN_GROWTH_UNITS * HEADER_SIZE


def test_exhaust_then_free_allows_allocation():
    heap = Allocator(200_000)
    blocks = []
    with pytest.raises(MemoryError):
        while True:
            blocks.append(heap.malloc(10001))
    assert blocks
    for addr in blocks:
        heap.free(addr)
    addr = heap.malloc(1024 * 20)
    assert addr + 1024 * 20 <= heap.heap_size


def test_free_unknown_address_raises():
    heap = Allocator(1 << 20)
    heap.malloc(16)
    with pytest.raises(ValueError):
        heap.free(12345)


def test_double_free_raises():
    heap = Allocator(1 << 20)
    addr = heap.malloc(16)
    heap.free(addr)
    with pytest.raises(ValueError):
        heap.free(addr)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Allocator(1 << 20).malloc(-1)


def test_free_blocks_empty_before_use():
    assert Allocator(1 << 20).free_blocks() == []
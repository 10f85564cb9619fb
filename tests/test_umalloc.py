import pytest

from xvsim.umalloc import HEADER_SIZE, Allocator


def test_addresses_are_aligned_and_disjoint():
    alloc = Allocator(1 << 20)
    sizes = [1, 7, 8, 100, 4000, 33]
    blocks = [(alloc.malloc(n), n) for n in sizes]
    for addr, _ in blocks:
        assert addr % HEADER_SIZE == 0
    spans = sorted((a, a + n) for a, n in blocks)
    for (_, end), (start, _) in zip(spans, spans[1:]):
        assert end <= start
    for start, end in spans:
        assert start >= HEADER_SIZE
        assert end <= HEADER_SIZE + alloc.heap_size


def test_free_then_malloc_reuses_block():
    alloc = Allocator(1 << 20)
    a = alloc.malloc(50)
    alloc.free(a)
    assert alloc.malloc(50) == a


def test_freeing_everything_coalesces_into_one_block():
    alloc = Allocator(1 << 20)
    addrs = [alloc.malloc(n) for n in (10, 200, 3000, 5, 999)]
    for addr in addrs[::2] + addrs[1::2]:
        alloc.free(addr)
    blocks = alloc.free_blocks()
    assert len(blocks) == 1
    assert blocks[0][1] == alloc.heap_size


def test_heap_grows_in_large_steps():
    alloc = Allocator(1 << 20)
    alloc.malloc(1)
    assert alloc.heap_size == 4096 * HEADER_SIZE


def test_limit_too_small_raises_memory_error():
    alloc = Allocator(1000)
    with pytest.raises(MemoryError):
        alloc.malloc(1)


def test_exhaust_free_and_allocate_again():
    alloc = Allocator(1 << 20)
    held = []
    with pytest.raises(MemoryError):
        while True:
            held.append(alloc.malloc(10001))
    assert held
    for addr in held:
        alloc.free(addr)
    addr = alloc.malloc(1024 * 20)
    assert addr >= HEADER_SIZE


def test_double_free_rejected():
    alloc = Allocator(1 << 20)
    a = alloc.malloc(16)
    alloc.free(a)
    with pytest.raises(ValueError):
        alloc.free(a)


def test_free_of_unknown_address_rejected():
    alloc = Allocator(1 << 20)
    alloc.malloc(16)
    with pytest.raises(ValueError):
        alloc.free(3)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Allocator(1 << 20).malloc(-1)
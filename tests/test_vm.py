import pytest

from xvsim.mmu import PGSIZE
from xvsim.params import EXTMEM, KERNBASE
from xvsim.vm import OutOfMemory, PageTable, PhysicalMemory


@pytest.fixture
def mem():
    return PhysicalMemory(64)


def test_kalloc_pages_are_aligned_distinct_and_in_range(mem):
    pages = [mem.kalloc() for _ in range(10)]
    assert len(set(pages)) == 10
    for pa in pages:
        assert pa % PGSIZE == 0
        assert EXTMEM <= pa < EXTMEM + 64 * PGSIZE
    assert mem.free_pages == 54


def test_kalloc_exhaustion_raises():
    small = PhysicalMemory(2)
    small.kalloc()
    small.kalloc()
    with pytest.raises(OutOfMemory):
        small.kalloc()


def test_kfree_rejects_bad_addresses(mem):
    pa = mem.kalloc()
    with pytest.raises(ValueError):
        mem.kfree(pa + 1)
    mem.kfree(pa)
    with pytest.raises(ValueError):
        mem.kfree(pa)


def test_memory_beyond_phystop_rejected():
    with pytest.raises(ValueError):
        PhysicalMemory(1 << 20)


def test_read_write_roundtrip_and_bounds(mem):
    pa = mem.kalloc()
    mem.write(pa + 10, b"data")
    assert mem.read(pa + 10, 4) == b"data"
    with pytest.raises(ValueError):
        mem.read(EXTMEM + 64 * PGSIZE, 1)


def test_walk_without_alloc_returns_none(mem):
    pt = PageTable(mem)
    assert pt.walk(0x1000, False) is None
    assert pt.walk(0x1000, True) is not None
    assert pt.walk(0x1000, False) == pt.walk(0x1000, True)


def test_init_uvm_places_code_at_zero(mem):
    pt = PageTable(mem)
    pt.init_uvm(b"hello")
    pa = pt.uva2ka(0)
    assert mem.read(pa, 5) == b"hello"
    assert mem.read(pa + 5, PGSIZE - 5) == bytes(PGSIZE - 5)


def test_init_uvm_rejects_a_full_page(mem):
    pt = PageTable(mem)
    with pytest.raises(ValueError):
        pt.init_uvm(bytes(PGSIZE))


def test_alloc_uvm_maps_zeroed_pages(mem):
    pt = PageTable(mem)
    assert pt.alloc_uvm(0, 3 * PGSIZE) == 3 * PGSIZE
    for va in range(0, 3 * PGSIZE, PGSIZE):
        pa = pt.uva2ka(va)
        assert mem.read(pa, PGSIZE) == bytes(PGSIZE)
    assert pt.uva2ka(3 * PGSIZE) is None


def test_alloc_uvm_shrink_is_noop_and_kernel_limit(mem):
    pt = PageTable(mem)
    assert pt.alloc_uvm(2 * PGSIZE, PGSIZE) == 2 * PGSIZE
    with pytest.raises(OutOfMemory):
        pt.alloc_uvm(0, KERNBASE)


def test_alloc_uvm_failure_unmaps_new_pages():
    small = PhysicalMemory(4)
    pt = PageTable(small)
    with pytest.raises(OutOfMemory):
        pt.alloc_uvm(0, 10 * PGSIZE)
    assert pt.uva2ka(0) is None
    pt.free()
    assert small.free_pages == 4


def test_dealloc_uvm_frees_pages(mem):
    pt = PageTable(mem)
    pt.alloc_uvm(0, 4 * PGSIZE)
    before = mem.free_pages
    assert pt.dealloc_uvm(4 * PGSIZE, PGSIZE) == PGSIZE
    assert mem.free_pages == before + 3
    assert pt.uva2ka(0) is not None
    assert pt.uva2ka(PGSIZE) is None
    assert pt.dealloc_uvm(PGSIZE, 2 * PGSIZE) == PGSIZE


def test_copy_is_an_independent_duplicate(mem):
    parent = PageTable(mem)
    parent.alloc_uvm(0, 2 * PGSIZE)
    parent.copyout(100, b"abc")
    child = parent.copy(2 * PGSIZE)
    assert child.uva2ka(0) != parent.uva2ka(0)
    assert mem.read(child.uva2ka(0) + 100, 3) == b"abc"
    parent.copyout(100, b"xyz")
    assert mem.read(child.uva2ka(0) + 100, 3) == b"abc"
    assert mem.read(parent.uva2ka(0) + 100, 3) == b"xyz"


def test_copy_of_unmapped_space_raises_and_leaks_nothing(mem):
    parent = PageTable(mem)
    before = mem.free_pages
    with pytest.raises(ValueError):
        parent.copy(PGSIZE)
    assert mem.free_pages == before


def test_clear_pte_u_hides_page_from_user(mem):
    pt = PageTable(mem)
    pt.alloc_uvm(0, 2 * PGSIZE)
    pt.clear_pte_u(0)
    assert pt.uva2ka(0) is None
    assert pt.uva2ka(PGSIZE) is not None
    with pytest.raises(ValueError):
        pt.clear_pte_u(1 << 22)


def test_copyout_across_a_page_boundary(mem):
    pt = PageTable(mem)
    pt.alloc_uvm(0, 2 * PGSIZE)
    pt.copyout(PGSIZE - 2, b"wxyz")
    assert mem.read(pt.uva2ka(0) + PGSIZE - 2, 2) == b"wx"
    assert mem.read(pt.uva2ka(PGSIZE), 2) == b"yz"


def test_copyout_to_unmapped_address_raises(mem):
    pt = PageTable(mem)
    pt.alloc_uvm(0, PGSIZE)
    with pytest.raises(ValueError):
        pt.copyout(PGSIZE - 1, b"ab")


def test_map_pages_remap_and_empty_range(mem):
    pt = PageTable(mem)
    pa = mem.kalloc()
    pt.map_pages(0, PGSIZE, pa, 0)
    with pytest.raises(ValueError):
        pt.map_pages(0, PGSIZE, pa, 0)
    with pytest.raises(ValueError):
        pt.map_pages(PGSIZE, 0, pa, 0)
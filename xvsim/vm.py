"""Two-level x86 page tables over a simulated pool of physical pages."""

from __future__ import annotations

from xvsim.mmu import (
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pdx,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
)
from xvsim.params import EXTMEM, KERNBASE, PHYSTOP

_PTE_SIZE = 4


class OutOfMemory(MemoryError):
    """No physical page is left, or the request exceeds the user address space."""


class PhysicalMemory:
    """A pool of physical pages starting at EXTMEM, handed out one at a time."""

    def __init__(self, npages: int) -> None:
        if npages < 0:
            raise ValueError("npages must be non-negative")
        if EXTMEM + npages * PGSIZE > PHYSTOP:
            raise ValueError("PHYSTOP too high")
        self.base = EXTMEM
        self.size = npages * PGSIZE
        self._data = bytearray(self.size)
        self._free = [self.base + i * PGSIZE for i in range(npages)]
        self._allocated: set[int] = set()

    @property
    def free_pages(self) -> int:
        """Number of pages currently available to kalloc."""
        return len(self._free)

    def kalloc(self) -> int:
        """Take one page and return its physical address."""
        if not self._free:
            raise OutOfMemory("out of physical pages")
        pa = self._free.pop()
        self._allocated.add(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Give back a page obtained from kalloc."""
        if pa % PGSIZE or pa not in self._allocated:
            raise ValueError(f"kfree: {pa:#x} is not an allocated page")
        self._allocated.remove(pa)
        self._free.append(pa)

    def _offset(self, pa: int, n: int) -> int:
        off = pa - self.base
        if n < 0 or off < 0 or off + n > self.size:
            raise ValueError(f"physical range {pa:#x}+{n} is outside memory")
        return off

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes at a physical address."""
        off = self._offset(pa, n)
        return bytes(self._data[off:off + n])

    def write(self, pa: int, data: bytes) -> None:
        """Write bytes at a physical address."""
        data = bytes(data)
        off = self._offset(pa, len(data))
        self._data[off:off + len(data)] = data


class PageTable:
    """A process page directory whose entries live in simulated physical memory."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.pgdir = memory.kalloc()
        memory.write(self.pgdir, bytes(PGSIZE))
        self._freed = False

    def _live(self) -> None:
        if self._freed:
            raise ValueError("freevm: no pgdir")

    def _get(self, addr: int) -> int:
        return int.from_bytes(self.memory.read(addr, _PTE_SIZE), "little")

    def _set(self, addr: int, value: int) -> None:
        self.memory.write(addr, value.to_bytes(_PTE_SIZE, "little"))

    def walk(self, va: int, alloc: bool) -> int | None:
        """Physical address of the PTE for va; build the page table if alloc."""
        self._live()
        pde_at = self.pgdir + _PTE_SIZE * pdx(va)
        pde = self._get(pde_at)
        if pde & PTE_P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = self.memory.kalloc()
            self.memory.write(pgtab, bytes(PGSIZE))
            self._set(pde_at, pgtab | PTE_P | PTE_W | PTE_U)
        return pgtab + _PTE_SIZE * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) to consecutive pages from pa."""
        if size <= 0:
            raise ValueError("mapping size must be positive")
        a = pgrounddown(va)
        last = pgrounddown(va + size - 1)
        while True:
            pte_at = self.walk(a, True)
            if self._get(pte_at) & PTE_P:
                raise ValueError(f"remap of {a:#x}")
            self._set(pte_at, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_uvm(self, init: bytes) -> None:
        """Load a program smaller than a page at virtual address 0."""
        init = bytes(init)
        if len(init) >= PGSIZE:
            raise ValueError("inituvm: more than a page")
        mem = self.memory.kalloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, init)

    def alloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Grow the user space from oldsz to newsz with zeroed pages."""
        if newsz >= KERNBASE:
            raise OutOfMemory("size reaches the kernel address space")
        if newsz < oldsz:
            return oldsz
        a = pgroundup(oldsz)
        while a < newsz:
            try:
                mem = self.memory.kalloc()
            except OutOfMemory:
                self.dealloc_uvm(newsz, oldsz)
                raise
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except OutOfMemory:
                self.dealloc_uvm(newsz, oldsz)
                self.memory.kfree(mem)
                raise
            a += PGSIZE
        return newsz

    def dealloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Shrink the user space from oldsz to newsz, freeing whole pages."""
        if newsz >= oldsz:
            return oldsz
        a = pgroundup(newsz)
        while a < oldsz:
            pte_at = self.walk(a, False)
            if pte_at is None:
                a = (pdx(a) + 1) << PDXSHIFT
                continue
            pte = self._get(pte_at)
            if pte & PTE_P:
                pa = pte_addr(pte)
                if pa == 0:
                    raise ValueError("kfree")
                self.memory.kfree(pa)
                self._set(pte_at, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release all user pages, the page tables and the directory."""
        self._live()
        self.dealloc_uvm(KERNBASE, 0)
        for i in range(NPDENTRIES):
            pde = self._get(self.pgdir + _PTE_SIZE * i)
            if pde & PTE_P:
                self.memory.kfree(pte_addr(pde))
        self.memory.kfree(self.pgdir)
        self._freed = True

    def clear_pte_u(self, uva: int) -> None:
        """Make a page inaccessible to user code."""
        pte_at = self.walk(uva, False)
        if pte_at is None:
            raise ValueError("clearpteu")
        self._set(pte_at, self._get(pte_at) & ~PTE_U)

    def copy(self, sz: int) -> PageTable:
        """A new page table holding a copy of the first sz bytes of user memory."""
        self._live()
        child = PageTable(self.memory)
        try:
            for i in range(0, sz, PGSIZE):
                pte_at = self.walk(i, False)
                if pte_at is None:
                    raise ValueError("copyuvm: pte should exist")
                pte = self._get(pte_at)
                if not pte & PTE_P:
                    raise ValueError("copyuvm: page not present")
                mem = self.memory.kalloc()
                self.memory.write(mem, self.memory.read(pte_addr(pte), PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, mem, pte_flags(pte))
                except Exception:
                    self.memory.kfree(mem)
                    raise
        except Exception:
            child.free()
            raise
        return child

    def uva2ka(self, uva: int) -> int | None:
        """Physical page backing a user page, or None if absent or not user."""
        pte_at = self.walk(uva, False)
        if pte_at is None:
            return None
        pte = self._get(pte_at)
        if not pte & PTE_P or not pte & PTE_U:
            return None
        return pte_addr(pte)

    def copyout(self, va: int, data: bytes) -> None:
        """Copy bytes to a user virtual address, page by page."""
        view = memoryview(bytes(data))
        while view:
            va0 = pgrounddown(va)
            pa0 = self.uva2ka(va0)
            if pa0 is None:
                raise ValueError(f"user address {va:#x} is not mapped")
            n = min(PGSIZE - (va - va0), len(view))
            self.memory.write(pa0 + (va - va0), view[:n])
            view = view[n:]
            va = va0 + PGSIZE
"""A first-fit free-list allocator over a simulated, growable heap."""

from __future__ import annotations

HEADER_SIZE = 8  # one block header: next pointer and size, in bytes
MIN_CORE_UNITS = 4096  # smallest heap growth, in header units

_BASE = 0  # the empty sentinel block lives at unit 0; the heap follows it


class Allocator:
    """Circular, address-ordered free list with coalescing on free.

    Addresses are byte offsets in a simulated address space; the heap grows
    upward from HEADER_SIZE and may grow to at most ``limit`` bytes.
    """

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError("limit must be non-negative")
        self._limit = limit
        self._brk = 1  # in units; unit 0 is the sentinel
        # free-list headers: unit -> [next unit, size in units]
        self._free = {_BASE: [_BASE, 0]}
        self._freep = _BASE
        self._allocated: dict[int, int] = {}

    @property
    def heap_size(self) -> int:
        """Bytes obtained from the heap so far."""
        return (self._brk - 1) * HEADER_SIZE

    def _sbrk(self, nbytes: int) -> int | None:
        if self.heap_size + nbytes > self._limit:
            return None
        old = self._brk
        self._brk += nbytes // HEADER_SIZE
        return old

    def _morecore(self, nu: int) -> int | None:
        nu = max(nu, MIN_CORE_UNITS)
        hp = self._sbrk(nu * HEADER_SIZE)
        if hp is None:
            return None
        self._free[hp] = [hp, nu]
        self._release(hp)
        return self._freep

    def _release(self, bp: int) -> None:
        free = self._free
        p = self._freep
        while not (p < bp < free[p][0]):
            nxt = free[p][0]
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        nxt = free[p][0]
        if bp + free[bp][1] == nxt:
            free[bp][1] += free[nxt][1]
            free[bp][0] = free[nxt][0]
            del free[nxt]
        else:
            free[bp][0] = nxt
        if p + free[p][1] == bp:
            free[p][1] += free[bp][1]
            free[p][0] = free[bp][0]
            del free[bp]
        else:
            free[p][0] = bp
        self._freep = p

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address; MemoryError if the heap is full."""
        if nbytes < 0:
            raise ValueError("cannot allocate a negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        free = self._free
        prevp = self._freep
        p = free[prevp][0]
        while True:
            size = free[p][1]
            if size >= nunits:
                if size == nunits:
                    free[prevp][0] = free[p][0]
                    del free[p]
                else:
                    free[p][1] -= nunits
                    p += free[p][1]
                self._allocated[p] = nunits
                self._freep = prevp
                return (p + 1) * HEADER_SIZE
            if p == self._freep:
                grown = self._morecore(nunits)
                if grown is None:
                    raise MemoryError(f"cannot allocate {nbytes} bytes")
                p = grown
            prevp = p
            p = free[p][0]

    def free(self, addr: int) -> None:
        """Return a block obtained from malloc to the free list."""
        if addr % HEADER_SIZE:
            raise ValueError(f"address {addr:#x} was not returned by malloc")
        bp = addr // HEADER_SIZE - 1
        nunits = self._allocated.pop(bp, None)
        if nunits is None:
            raise ValueError(f"address {addr:#x} is not an allocated block")
        self._free[bp] = [bp, nunits]
        self._release(bp)

    def free_blocks(self) -> list[tuple[int, int]]:
        """Free blocks as (header address, size in bytes), in address order."""
        blocks = []
        p = self._free[_BASE][0]
        while p != _BASE:
            blocks.append((p * HEADER_SIZE, self._free[p][1] * HEADER_SIZE))
            p = self._free[p][0]
        return sorted(blocks)
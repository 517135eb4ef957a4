"""A first-fit free-list allocator over a simulated, growable heap.

Blocks are measured in header-sized units; every block carries one
header unit in front of the address handed to the caller.  Freed
blocks are kept in an address-ordered circular list and coalesced with
their neighbours.
"""

from __future__ import annotations

from dataclasses import dataclass

HEADER_SIZE = 8
MIN_GROWTH_UNITS = 4096

_BASE = -1  # sentinel list head, below every heap address


@dataclass
class _Header:
    ptr: int
    size: int


class Allocator:
    """Heap allocator whose heap may grow up to ``heap_limit`` bytes."""

    def __init__(self, heap_limit: int) -> None:
        if heap_limit < 0:
            raise ValueError("heap_limit must not be negative")
        self.heap_limit = heap_limit
        self._brk = 0
        self._headers: dict[int, _Header] = {}
        self._freep: int | None = None
        self._allocated: set[int] = set()

    @property
    def heap_size(self) -> int:
        """Bytes obtained for the heap so far."""
        return self._brk * HEADER_SIZE

    def malloc(self, nbytes: int) -> int:
        """Allocate ``nbytes`` and return the block's address.

        Raises MemoryError when the heap cannot grow far enough.
        """
        if nbytes < 0:
            raise ValueError("cannot allocate a negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        headers = self._headers
        if self._freep is None:
            headers[_BASE] = _Header(_BASE, 0)
            self._freep = _BASE
        prevp = self._freep
        p = headers[prevp].ptr
        while True:
            block = headers[p]
            if block.size >= nunits:
                if block.size == nunits:
                    headers[prevp].ptr = block.ptr
                else:
                    block.size -= nunits
                    p += block.size
                    headers[p] = _Header(0, nunits)
                self._freep = prevp
                self._allocated.add(p)
                return (p + 1) * HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, headers[p].ptr

    def free(self, addr: int) -> None:
        """Return a block obtained from :meth:`malloc` to the free list."""
        unit, rem = divmod(addr, HEADER_SIZE)
        bp = unit - 1
        if rem or bp not in self._allocated:
            raise ValueError(f"free of unallocated address {addr:#x}")
        self._allocated.remove(bp)
        self._release(bp)

    def free_blocks(self) -> list[tuple[int, int]]:
        """Free spans as ``(start, length)`` pairs in address order."""
        if self._freep is None:
            return []
        blocks = []
        p = self._headers[_BASE].ptr
        while p != _BASE:
            block = self._headers[p]
            blocks.append((p * HEADER_SIZE, block.size * HEADER_SIZE))
            p = block.ptr
        return blocks

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_GROWTH_UNITS)
        if (self._brk + nunits) * HEADER_SIZE > self.heap_limit:
            raise MemoryError(f"heap limit of {self.heap_limit} bytes reached")
        hp = self._brk
        self._brk += nunits
        self._headers[hp] = _Header(0, nunits)
        self._release(hp)
        assert self._freep is not None
        return self._freep

    def _release(self, bp: int) -> None:
        headers = self._headers
        assert self._freep is not None
        p = self._freep
        while not (p < bp < headers[p].ptr):
            nxt = headers[p].ptr
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        block = headers[bp]
        after = headers[p].ptr
        if bp + block.size == after:
            block.size += headers[after].size
            block.ptr = headers[after].ptr
            del headers[after]
        else:
            block.ptr = after
        before = headers[p]
        if p + before.size == bp:
            before.size += block.size
            before.ptr = block.ptr
            del headers[bp]
        else:
            before.ptr = bp
        self._freep = p
"""Two-level x86 page tables over a simulated pool of physical frames.

Page directories and page tables live in the simulated memory itself,
as arrays of little-endian 32-bit entries.
"""

from __future__ import annotations

import struct
from typing import Callable

from xvkit.mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    p2v,
    pdx,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

# System parameters
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

POOL_BASE = 0x400000
"""Physical address of the first frame handed out by the allocator."""

_U32 = 0xFFFFFFFF
_ENTRY = struct.Struct("<I")


class KernelPanic(RuntimeError):
    """An invariant of the kernel was violated."""


class OutOfMemory(MemoryError):
    """No physical frame is left."""


class PhysicalMemory:
    """A pool of page-sized physical frames starting at ``POOL_BASE``."""

    def __init__(self, frames: int) -> None:
        if frames < 0:
            raise ValueError("frame count must not be negative")
        if POOL_BASE + frames * PGSIZE > PHYSTOP:
            raise ValueError("frame pool would extend past PHYSTOP")
        self.base = POOL_BASE
        self.end = POOL_BASE + frames * PGSIZE
        self._data = bytearray(frames * PGSIZE)
        self._free = [self.base + i * PGSIZE for i in reversed(range(frames))]
        self._free_set = set(self._free)

    @property
    def free_count(self) -> int:
        """Number of frames available to :meth:`kalloc`."""
        return len(self._free)

    def kalloc(self) -> int:
        """Take one frame and return its physical address."""
        if not self._free:
            raise OutOfMemory("no free physical frames")
        pa = self._free.pop()
        self._free_set.remove(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Give the frame at ``pa`` back to the pool."""
        if pa % PGSIZE or not self.base <= pa < self.end:
            raise KernelPanic("kfree")
        if pa in self._free_set:
            raise KernelPanic("kfree: frame already free")
        self._free.append(pa)
        self._free_set.add(pa)

    def _offset(self, pa: int, n: int) -> int:
        if n < 0 or pa < self.base or pa + n > self.end:
            raise ValueError(f"physical range {pa:#x}+{n} outside memory")
        return pa - self.base

    def read(self, pa: int, n: int) -> bytes:
        """Bytes ``[pa, pa + n)`` of physical memory."""
        off = self._offset(pa, n)
        return bytes(self._data[off:off + n])

    def write(self, pa: int, data: bytes) -> None:
        """Store ``data`` at physical address ``pa``."""
        off = self._offset(pa, len(data))
        self._data[off:off + len(data)] = data


class PageDirectory:
    """A page directory and the page tables hanging off it."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        root = memory.kalloc()
        memory.write(root, bytes(PGSIZE))
        self._root: int | None = root
        self.kernel_data_addr: int | None = None

    @property
    def address(self) -> int:
        """Physical address of the directory page."""
        if self._root is None:
            raise KernelPanic("no pgdir")
        return self._root

    def _load(self, pa: int) -> int:
        return _ENTRY.unpack(self.memory.read(pa, 4))[0]

    def _store(self, pa: int, value: int) -> None:
        self.memory.write(pa, _ENTRY.pack(value & _U32))

    def entry(self, pte: int) -> int:
        """The value of the entry at physical address ``pte``."""
        return self._load(pte)

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the PTE for ``va``.

        With ``alloc`` a missing page table is created; otherwise None is
        returned for it.
        """
        pde = self.address + 4 * pdx(va)
        value = self._load(pde)
        if value & PTE_P:
            table = pte_addr(value)
        else:
            if not alloc:
                return None
            table = self.memory.kalloc()
            self.memory.write(table, bytes(PGSIZE))
            self._store(pde, table | PTE_P | PTE_W | PTE_U)
        return table + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map ``[va, va + size)`` to physical memory starting at ``pa``."""
        if size <= 0:
            raise ValueError("mapping size must be positive")
        a = pgrounddown(va)
        last = pgrounddown(va + size - 1)
        pa &= _U32
        while True:
            pte = self.walk(a, True)
            assert pte is not None
            if self._load(pte) & PTE_P:
                raise KernelPanic("remap")
            self._store(pte, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_user(self, code: bytes) -> None:
        """Load ``code`` (less than a page) at user address 0."""
        if len(code) >= PGSIZE:
            raise KernelPanic("inituvm: more than a page")
        mem = self.memory.kalloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, bytes(code))

    def load_user(
        self,
        addr: int,
        reader: Callable[[int, int], bytes],
        offset: int,
        sz: int,
    ) -> None:
        """Fill already-mapped pages from ``addr`` with ``sz`` bytes.

        ``reader(offset, n)`` supplies the bytes; a short read raises EOFError.
        """
        if addr % PGSIZE:
            raise KernelPanic("loaduvm: addr must be page aligned")
        for i in range(0, sz, PGSIZE):
            pte = self.walk(addr + i, False)
            if pte is None:
                raise KernelPanic("loaduvm: address should exist")
            pa = pte_addr(self._load(pte))
            n = min(sz - i, PGSIZE)
            chunk = reader(offset + i, n)
            if len(chunk) != n:
                raise EOFError("short read while loading segment")
            self.memory.write(pa, chunk)

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow the user space from ``oldsz`` to ``newsz``; return the new size."""
        if newsz >= KERNBASE:
            raise ValueError("user space would reach into the kernel")
        if newsz < oldsz:
            return oldsz
        a = pgroundup(oldsz)
        while a < newsz:
            try:
                mem = self.memory.kalloc()
            except OutOfMemory:
                self.dealloc_user(newsz, oldsz)
                raise
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except OutOfMemory:
                self.dealloc_user(newsz, oldsz)
                self.memory.kfree(mem)
                raise
            a += PGSIZE
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Shrink the user space from ``oldsz`` to ``newsz``; return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pgroundup(newsz)
        while a < oldsz:
            pte = self.walk(a, False)
            if pte is None:
                a = (pdx(a) + 1) << PDXSHIFT
                continue
            value = self._load(pte)
            if value & PTE_P:
                pa = pte_addr(value)
                if pa == 0:
                    raise KernelPanic("kfree")
                self.memory.kfree(pa)
                self._store(pte, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release all user pages, every page table and the directory."""
        if self._root is None:
            raise KernelPanic("freevm: no pgdir")
        self.dealloc_user(KERNBASE, 0)
        root = self._root
        for (value,) in _ENTRY.iter_unpack(self.memory.read(root, NPDENTRIES * 4)):
            if value & PTE_P:
                self.memory.kfree(pte_addr(value))
        self.memory.kfree(root)
        self._root = None

    def clear_user(self, uva: int) -> None:
        """Make the page at ``uva`` inaccessible to user code."""
        pte = self.walk(uva, False)
        if pte is None:
            raise KernelPanic("clearpteu")
        self._store(pte, self._load(pte) & ~PTE_U)

    def copy(self, sz: int) -> "PageDirectory":
        """A new directory holding a copy of the first ``sz`` bytes of user space."""
        if self.kernel_data_addr is not None:
            child = setup_kernel_vm(self.memory, self.kernel_data_addr)
        else:
            child = PageDirectory(self.memory)
        try:
            for i in range(0, sz, PGSIZE):
                pte = self.walk(i, False)
                if pte is None:
                    raise KernelPanic("copyuvm: pte should exist")
                value = self._load(pte)
                if not value & PTE_P:
                    raise KernelPanic("copyuvm: page not present")
                mem = self.memory.kalloc()
                self.memory.write(mem, self.memory.read(pte_addr(value), PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, mem, pte_flags(value))
                except OutOfMemory:
                    self.memory.kfree(mem)
                    raise
        except OutOfMemory:
            child.free()
            raise
        return child

    def user_to_kernel(self, uva: int) -> int | None:
        """Kernel virtual address of the user page at ``uva``, or None."""
        pte = self.walk(uva, False)
        if pte is None:
            return None
        value = self._load(pte)
        if not value & PTE_P or not value & PTE_U:
            return None
        return p2v(pte_addr(value))

    def copy_out(self, va: int, data: bytes) -> None:
        """Copy ``data`` to user address ``va``, page by page."""
        pos = 0
        while pos < len(data):
            va0 = pgrounddown(va)
            ka = self.user_to_kernel(va0)
            if ka is None:
                raise ValueError(f"user address {va0:#x} is not accessible")
            n = min(PGSIZE - (va - va0), len(data) - pos)
            self.memory.write(v2p(ka) + (va - va0), bytes(data[pos:pos + n]))
            pos += n
            va = va0 + PGSIZE


def setup_kernel_vm(memory: PhysicalMemory, data_addr: int) -> PageDirectory:
    """A directory holding the kernel mappings present in every address space.

    ``data_addr`` is the kernel virtual address where writable kernel data
    begins; text and read-only data below it are mapped without write access.
    """
    if p2v(PHYSTOP) > DEVSPACE:
        raise KernelPanic("PHYSTOP too high")
    if data_addr % PGSIZE or not KERNLINK < data_addr < p2v(PHYSTOP):
        raise ValueError(f"bad kernel data address {data_addr:#x}")
    kmap = (
        (KERNBASE, 0, EXTMEM, PTE_W),
        (KERNLINK, v2p(KERNLINK), v2p(data_addr), 0),
        (data_addr, v2p(data_addr), PHYSTOP, PTE_W),
        (DEVSPACE, DEVSPACE, 0, PTE_W),
    )
    pgdir = PageDirectory(memory)
    try:
        for virt, phys_start, phys_end, perm in kmap:
            size = (phys_end - phys_start) & _U32
            pgdir.map_pages(virt, size, phys_start, perm)
    except OutOfMemory:
        pgdir.free()
        raise
    pgdir.kernel_data_addr = data_addr
    return pgdir
"""x86 memory-management definitions: segment and gate descriptors,
two-level paging arithmetic and the kernel's virtual memory layout."""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields

_U32 = 0xFFFFFFFF

# Eflags register
FL_IF = 0x00000200

# Control register flags
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors (indexes into the GDT)
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

# Memory layout
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

SEG_NULL_ASM = bytes(8)
"""The all-zero null descriptor that opens every GDT."""


def _check_widths(obj: object, widths: dict[str, int]) -> None:
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        width = widths[f.name]
        if not 0 <= value < (1 << width):
            raise ValueError(f"{f.name}={value:#x} does not fit in {width} bits")


_SEG_WIDTHS = {
    "lim_15_0": 16,
    "base_15_0": 16,
    "base_23_16": 8,
    "type": 4,
    "s": 1,
    "dpl": 2,
    "p": 1,
    "lim_19_16": 4,
    "avl": 1,
    "rsv1": 1,
    "db": 1,
    "g": 1,
    "base_31_24": 8,
}


@dataclass(frozen=True)
class SegDesc:
    """A segment descriptor, field by field."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    def __post_init__(self) -> None:
        _check_widths(self, _SEG_WIDTHS)

    @property
    def base(self) -> int:
        return self.base_15_0 | self.base_23_16 << 16 | self.base_31_24 << 24

    def pack(self) -> bytes:
        """The 8-byte in-memory form of the descriptor."""
        low = self.lim_15_0 | self.base_15_0 << 16
        high = (
            self.base_23_16
            | self.type << 8
            | self.s << 12
            | self.dpl << 13
            | self.p << 15
            | self.lim_19_16 << 16
            | self.avl << 20
            | self.rsv1 << 21
            | self.db << 22
            | self.g << 23
            | self.base_31_24 << 24
        )
        return struct.pack("<II", low, high)


_GATE_WIDTHS = {
    "off_15_0": 16,
    "cs": 16,
    "args": 5,
    "rsv1": 3,
    "type": 4,
    "s": 1,
    "dpl": 2,
    "p": 1,
    "off_31_16": 16,
}


@dataclass(frozen=True)
class GateDesc:
    """An interrupt or trap gate descriptor."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    def __post_init__(self) -> None:
        _check_widths(self, _GATE_WIDTHS)

    @property
    def offset(self) -> int:
        return self.off_15_0 | self.off_31_16 << 16

    def pack(self) -> bytes:
        """The 8-byte in-memory form of the gate."""
        low = self.off_15_0 | self.cs << 16
        high = (
            self.args
            | self.rsv1 << 5
            | self.type << 8
            | self.s << 12
            | self.dpl << 13
            | self.p << 15
            | self.off_31_16 << 16
        )
        return struct.pack("<II", low, high)


def seg(type_: int, base: int, lim: int, dpl: int) -> SegDesc:
    """A 32-bit segment with 4 KiB granularity."""
    base &= _U32
    lim &= _U32
    return SegDesc(
        lim_15_0=(lim >> 12) & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=lim >> 28,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_31_24=base >> 24,
    )


def seg16(type_: int, base: int, lim: int, dpl: int) -> SegDesc:
    """A byte-granular segment, as used for the task state segment."""
    base &= _U32
    lim &= _U32
    return SegDesc(
        lim_15_0=lim & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=(lim >> 16) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_31_24=base >> 24,
    )


def seg_asm(type_: int, base: int, lim: int) -> bytes:
    """Descriptor bytes as laid out by the boot-time assembler macro."""
    return struct.pack(
        "<HHBBBB",
        (lim >> 12) & 0xFFFF,
        base & 0xFFFF,
        (base >> 16) & 0xFF,
        0x90 | type_,
        0xC0 | ((lim >> 28) & 0xF),
        (base >> 24) & 0xFF,
    )


def setgate(istrap: bool, sel: int, off: int, dpl: int) -> GateDesc:
    """A trap gate if ``istrap``, else an interrupt gate (which clears IF)."""
    off &= _U32
    return GateDesc(
        off_15_0=off & 0xFFFF,
        cs=sel,
        args=0,
        rsv1=0,
        type=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=dpl,
        p=1,
        off_31_16=off >> 16,
    )


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _U32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _U32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return (d << PDXSHIFT | t << PTXSHIFT | o) & _U32


def pgroundup(sz: int) -> int:
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _U32


def pgrounddown(a: int) -> int:
    return a & ~(PGSIZE - 1) & _U32


def pte_addr(pte: int) -> int:
    return pte & _U32 & ~0xFFF


def pte_flags(pte: int) -> int:
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _U32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _U32
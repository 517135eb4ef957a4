"""x86 trap numbers and hardware interrupt lines."""

from __future__ import annotations

import enum

T_IRQ0 = 32
"""Vector of IRQ 0; IRQ n arrives on vector T_IRQ0 + n."""

_NVECTORS = 256


class Trap(enum.IntEnum):
    """Processor-defined exceptions and the system-call vectors."""

    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    SYSCALL = 64
    DEFAULT = 500


class Irq(enum.IntEnum):
    """Hardware interrupt request lines."""

    TIMER = 0
    KBD = 1
    COM1 = 4
    IDE = 14
    ERROR = 19
    SPURIOUS = 31


def irq_vector(irq: int) -> int:
    """The interrupt vector on which IRQ ``irq`` is delivered."""
    if not 0 <= irq < _NVECTORS - T_IRQ0:
        raise ValueError(f"IRQ {irq} out of range")
    return T_IRQ0 + int(irq)
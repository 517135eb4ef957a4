"""System-call numbers, file status records, argument fetching and dispatch.

User code passes system-call arguments on its stack: the saved stack
pointer addresses a return address, followed by the arguments as 32-bit
words.  :class:`ProcessMemory` fetches and checks them against the size
of the process's address space.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping

_U32 = 0xFFFFFFFF
_INT = struct.Struct("<i")
_STAT = struct.Struct("<h2xiIh2xI")


class Sys(enum.IntEnum):
    """System-call numbers."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    SETTICKETS = 22
    GETPINFO = 23


class FileType(enum.IntEnum):
    """Kinds of inode reported in :class:`Stat`."""

    DIR = 1
    FILE = 2
    DEV = 3


@dataclass(frozen=True)
class Stat:
    """File status as returned by fstat."""

    type: int
    dev: int
    ino: int
    nlink: int
    size: int

    SIZE = _STAT.size

    def to_bytes(self) -> bytes:
        """The in-memory layout of the record, with its alignment padding."""
        return _STAT.pack(self.type, self.dev, self.ino, self.nlink, self.size)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Stat":
        if len(data) < _STAT.size:
            raise ValueError("data too short for a stat record")
        return cls(*_STAT.unpack_from(data, 0))


class BadAddress(ValueError):
    """A system-call argument points outside the process's memory."""


class ProcessMemory:
    """The address space of a process, from address 0 up to its size."""

    def __init__(self, data: bytes, esp: int) -> None:
        self.data = bytes(data)
        self.esp = esp & _U32

    @property
    def sz(self) -> int:
        """Size of the address space in bytes."""
        return len(self.data)

    def fetch_int(self, addr: int) -> int:
        """The signed 32-bit word at ``addr``."""
        addr &= _U32
        if addr >= self.sz or addr + 4 > self.sz:
            raise BadAddress(f"word at {addr:#x} outside process memory")
        return _INT.unpack_from(self.data, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at ``addr``, without its NUL."""
        addr &= _U32
        if addr >= self.sz:
            raise BadAddress(f"string at {addr:#x} outside process memory")
        end = self.data.find(b"\0", addr)
        if end < 0:
            raise BadAddress(f"string at {addr:#x} is not terminated")
        return self.data[addr:end]

    def arg_int(self, n: int) -> int:
        """The ``n``-th 32-bit system-call argument."""
        return self.fetch_int((self.esp + 4 + 4 * n) & _U32)

    def arg_ptr(self, n: int, size: int) -> int:
        """The ``n``-th argument as the address of ``size`` bytes of memory."""
        addr = self.arg_int(n) & _U32
        if size < 0 or addr >= self.sz or addr + size > self.sz:
            raise BadAddress(f"block {addr:#x}+{size} outside process memory")
        return addr

    def arg_str(self, n: int) -> bytes:
        """The ``n``-th argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(n))


Handler = Callable[[], int]


class SyscallTable:
    """Maps system-call numbers to their handlers."""

    def __init__(self, handlers: Mapping[int, Handler] | None = None) -> None:
        self._handlers: dict[int, Handler] = {}
        for num, handler in (handlers or {}).items():
            self.register(num, handler)

    def register(self, num: int, handler: Handler) -> None:
        """Install ``handler`` for system call ``num``."""
        if num <= 0:
            raise ValueError(f"system call number must be positive, not {num}")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[int(num)] = handler

    def dispatch(self, num: int) -> int:
        """Run the handler for ``num`` and return its result."""
        handler = self._handlers.get(num) if num > 0 else None
        if handler is None:
            raise LookupError(f"unknown sys call {num}")
        return handler()

    def __contains__(self, num: object) -> bool:
        return num in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._handlers))
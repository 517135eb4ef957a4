"""Reading the headers of 32-bit little-endian ELF executables."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field

ELF_MAGIC = 0x464C457F  # "\x7FELF" read as a little-endian word

ELF_PROG_LOAD = 1

_ELFHDR = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


class ProgFlag(enum.IntFlag):
    EXEC = 1
    WRITE = 2
    READ = 4


class ElfFormatError(ValueError):
    """Raised when bytes do not hold a well-formed ELF header."""


@dataclass(frozen=True)
class ProgHeader:
    """One entry of the program header table."""

    type: int
    off: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: int
    align: int

    SIZE = _PROGHDR.size

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> "ProgHeader":
        if offset < 0 or offset + _PROGHDR.size > len(data):
            raise ElfFormatError(f"program header at {offset} lies outside the data")
        return cls(*_PROGHDR.unpack_from(data, offset))

    def to_bytes(self) -> bytes:
        return _PROGHDR.pack(
            self.type,
            self.off,
            self.vaddr,
            self.paddr,
            self.filesz,
            self.memsz,
            self.flags,
            self.align,
        )

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @property
    def permissions(self) -> ProgFlag:
        return ProgFlag(self.flags & 7)


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = field(default=bytes(12))
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = _ELFHDR.size
    phentsize: int = _PROGHDR.size
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _ELFHDR.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "ElfHeader":
        """Parse the header at the start of ``data``; checks the magic number."""
        if len(data) < _ELFHDR.size:
            raise ElfFormatError("data too short for an ELF header")
        header = cls(*_ELFHDR.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#010x}")
        return header

    def to_bytes(self) -> bytes:
        return _ELFHDR.pack(
            self.magic,
            self.elf,
            self.type,
            self.machine,
            self.version,
            self.entry,
            self.phoff,
            self.shoff,
            self.flags,
            self.ehsize,
            self.phentsize,
            self.phnum,
            self.shentsize,
            self.shnum,
            self.shstrndx,
        )

    def program_headers(self, data: bytes) -> list[ProgHeader]:
        """The ``phnum`` program headers found at ``phoff`` in ``data``."""
        return [
            ProgHeader.from_bytes(data, self.phoff + i * _PROGHDR.size)
            for i in range(self.phnum)
        ]
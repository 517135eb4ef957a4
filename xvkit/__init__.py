"""Models of a small teaching kernel's paging, descriptors, ELF headers, traps,
locks and system-call argument fetching, with a shell parser, heap allocator,
C-style string helpers and a wc command."""

__version__ = "0.1.0"
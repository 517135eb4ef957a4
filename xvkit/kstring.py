"""Byte-string routines with C string semantics: NUL-terminated, unsigned bytes."""

from __future__ import annotations

from typing import BinaryIO, Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode("utf-8")
    return bytes(s)


def _cstr(s: BytesLike) -> bytes:
    """Return the bytes of ``s`` up to (not including) the first NUL."""
    data = _as_bytes(s)
    end = data.find(b"\0")
    return data if end < 0 else data[:end]


def _compare(p: bytes, q: bytes) -> int:
    for x, y in zip(p, q):
        if x != y or x == 0:
            return x - y
    return 0


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Compare the first ``n`` bytes; return the difference of the first mismatch."""
    left, right = _as_bytes(a), _as_bytes(b)
    if n < 0 or len(left) < n or len(right) < n:
        raise ValueError(f"cannot compare {n} bytes of shorter buffers")
    for x, y in zip(left[:n], right[:n]):
        if x != y:
            return x - y
    return 0


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two NUL-terminated strings as unsigned bytes."""
    return _compare(_cstr(p) + b"\0", _cstr(q) + b"\0")


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most ``n`` bytes of two NUL-terminated strings."""
    if n <= 0:
        return 0
    return _compare((_cstr(p) + b"\0")[:n], (_cstr(q) + b"\0")[:n])


def strncpy(src: BytesLike, n: int) -> bytes:
    """Return an ``n``-byte buffer filled from ``src`` and padded with NULs.

    Like its C counterpart the result is not NUL-terminated when ``src``
    has ``n`` or more bytes.
    """
    if n <= 0:
        return b""
    return (_cstr(src) + b"\0")[:n].ljust(n, b"\0")


def safestrcpy(src: BytesLike, n: int) -> bytes:
    """Copy ``src`` into at most ``n`` bytes, always NUL-terminated."""
    if n <= 0:
        return b""
    return _cstr(src)[: n - 1] + b"\0"


def atoi(s: BytesLike) -> int:
    """Parse the leading decimal digits of ``s``; no sign, no whitespace."""
    value = 0
    for byte in _as_bytes(s):
        if not 0x30 <= byte <= 0x39:
            break
        value = value * 10 + (byte - 0x30)
    return value


def gets(stream: BinaryIO, max_len: int) -> bytes:
    """Read one line of at most ``max_len - 1`` bytes, one byte at a time.

    Reading stops after a newline or carriage return, which is kept,
    or at end of input.
    """
    line = bytearray()
    while len(line) + 1 < max_len:
        c = stream.read(1)
        if not c:
            break
        c = _as_bytes(c)
        line += c
        if c in (b"\n", b"\r"):
            break
    return bytes(line)
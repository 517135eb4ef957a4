"""Count lines, words and bytes, in the manner of the classic wc."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, Sequence

WHITESPACE = frozenset(b" \r\t\n\v")
CHUNK_SIZE = 512


@dataclass(frozen=True)
class WordCount:
    """Totals for one input."""

    lines: int = 0
    words: int = 0
    chars: int = 0

    def format(self, name: str) -> str:
        return f"{self.lines} {self.words} {self.chars} {name}"


def count(stream: BinaryIO) -> WordCount:
    """Count lines, words and bytes read from a binary stream."""
    lines = words = chars = 0
    in_word = False
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
        chars += len(chunk)
        lines += chunk.count(b"\n")
        for byte in chunk:
            if byte in WHITESPACE:
                in_word = False
            elif not in_word:
                words += 1
                in_word = True
    return WordCount(lines, words, chars)


def main(argv: Sequence[str] | None = None) -> int:
    """Print counts for each named file, or for standard input if none."""
    names = sys.argv[1:] if argv is None else list(argv)
    try:
        if not names:
            print(count(sys.stdin.buffer).format(""))
            return 0
        for name in names:
            try:
                handle = open(name, "rb")
            except OSError:
                print(f"wc: cannot open {name}")
                return 1
            with handle:
                print(count(handle).format(name))
    except OSError:
        print("wc: read error")
        return 1
    return 0
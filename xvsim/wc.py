"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO

_WHITESPACE = frozenset(b" \r\t\n\v")
_CHUNK = 512


@dataclass(frozen=True)
class Counts:
    """Line, word and byte totals."""

    lines: int = 0
    words: int = 0
    chars: int = 0

    def format(self, name: str) -> str:
        return f"{self.lines} {self.words} {self.chars} {name}"


class _Counter:
    def __init__(self) -> None:
        self.lines = self.words = self.chars = 0
        self.inword = False

    def feed(self, data: bytes) -> None:
        self.chars += len(data)
        self.lines += data.count(b"\n")
        for byte in data:
            if byte in _WHITESPACE:
                self.inword = False
            elif not self.inword:
                self.words += 1
                self.inword = True

    def result(self) -> Counts:
        return Counts(self.lines, self.words, self.chars)


def count(data: bytes) -> Counts:
    """Counts for a complete byte string."""
    counter = _Counter()
    counter.feed(bytes(data))
    return counter.result()


def count_stream(stream: BinaryIO) -> Counts:
    """Counts for everything readable from a binary stream."""
    counter = _Counter()
    while chunk := stream.read(_CHUNK):
        counter.feed(chunk)
    return counter.result()


def main(argv: list[str] | None = None) -> int:
    """Print counts for each named file, or for standard input if none."""
    if argv is None:
        argv = sys.argv[1:]
    out = sys.stdout
    if not argv:
        try:
            counts = count_stream(sys.stdin.buffer)
        except OSError:
            out.write("wc: read error\n")
            return 1
        out.write(counts.format("") + "\n")
        return 0
    for name in argv:
        try:
            with open(name, "rb") as stream:
                try:
                    counts = count_stream(stream)
                except OSError:
                    out.write("wc: read error\n")
                    return 1
        except OSError:
            out.write(f"wc: cannot open {name}\n")
            return 1
        out.write(counts.format(name) + "\n")
    return 0
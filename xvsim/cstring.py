"""NUL-terminated string and raw memory helpers over bytes."""

from __future__ import annotations

import re
from typing import BinaryIO, Union

ByteString = Union[bytes, bytearray, memoryview, str]

_DIGITS = re.compile(rb"[0-9]*")


def _as_bytes(s: ByteString) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: ByteString) -> bytes:
    """The bytes of s up to, not including, the first NUL."""
    data = _as_bytes(s)
    end = data.find(0)
    return data if end < 0 else data[:end]


def _char_code(c: int | str | bytes) -> int:
    if isinstance(c, int):
        return c & 0xFF
    data = _as_bytes(c)
    if len(data) != 1:
        raise ValueError("expected a single character")
    return data[0]


def memcmp(a: ByteString, b: ByteString, n: int) -> int:
    """Compare the first n bytes; return the difference at the first mismatch."""
    x, y = _as_bytes(a), _as_bytes(b)
    if n < 0 or len(x) < n or len(y) < n:
        raise ValueError("memcmp length exceeds the buffers")
    for p, q in zip(x[:n], y[:n]):
        if p != q:
            return p - q
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy n bytes inside buf from src to dst; overlapping ranges are safe."""
    if n < 0 or min(dst, src) < 0 or max(dst, src) + n > len(buf):
        raise IndexError("memmove range outside the buffer")
    buf[dst:dst + n] = buf[src:src + n]
    return buf


def _compare(p: bytes, q: bytes) -> int:
    for x, y in zip(p, q):
        if x != y or x == 0:
            return x - y
    return 0


def strncmp(p: ByteString, q: ByteString, n: int) -> int:
    """Compare at most n characters of two NUL-terminated strings."""
    if n <= 0:
        return 0
    return _compare((_cstr(p) + b"\0")[:n], (_cstr(q) + b"\0")[:n])


def strcmp(p: ByteString, q: ByteString) -> int:
    """Compare two NUL-terminated strings as unsigned characters."""
    return _compare(_cstr(p) + b"\0", _cstr(q) + b"\0")


def strncpy(t: ByteString, n: int) -> bytes:
    """Return an n-byte field holding t, NUL-padded; unterminated if t fills it."""
    if n <= 0:
        return b""
    src = _cstr(t)[:n]
    return src + bytes(n - len(src))


def safestrcpy(t: ByteString, n: int) -> bytes:
    """Return at most n-1 characters of t followed by a NUL."""
    if n <= 0:
        return b""
    return _cstr(t)[: n - 1] + b"\0"


def strlen(s: ByteString) -> int:
    """Length of a string up to its first NUL."""
    return len(_cstr(s))


def strchr(s: ByteString, c: int | str | bytes) -> int | None:
    """Index of the first c before the terminating NUL, or None."""
    code = _char_code(c)
    if code == 0:
        return None
    idx = _cstr(s).find(code)
    return None if idx < 0 else idx


def atoi(s: ByteString) -> int:
    """Value of the leading decimal digits; no sign or whitespace is accepted."""
    digits = _DIGITS.match(_cstr(s)).group()
    return int(digits) if digits else 0


def gets(stream: BinaryIO, max: int) -> bytes:
    """Read one line of at most max-1 bytes, keeping a final newline or CR."""
    line = bytearray()
    while len(line) + 1 < max:
        c = stream.read(1)
        if not c:
            break
        line += _as_bytes(c)
        if c in (b"\n", b"\r", "\n", "\r"):
            break
    return bytes(line)
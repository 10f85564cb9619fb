"""System call argument fetching, dispatch, and the tick clock."""

from __future__ import annotations

import struct
import sys
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, TextIO

_M32 = 0xFFFFFFFF
_WORD = struct.Struct("<i")


class SyscallError(Exception):
    """A system call argument is invalid or the call cannot complete."""


@dataclass
class ProcessImage:
    """The user address space of a process as seen by the system call layer.

    ``memory`` holds the user bytes from address 0; only the first ``sz``
    bytes belong to the process. ``esp`` is the saved user stack pointer,
    which points at a return address followed by the call's arguments.
    """

    memory: bytearray
    esp: int = 0
    sz: Optional[int] = None
    pid: int = 1
    name: str = ""
    killed: bool = False
    eax: int = 0

    def __post_init__(self) -> None:
        self.memory = bytearray(self.memory)
        if self.sz is None:
            self.sz = len(self.memory)
        if not 0 <= self.sz <= len(self.memory):
            raise ValueError("sz must lie within the memory image")

    def fetch_int(self, addr: int) -> int:
        """The 32-bit signed integer at a user address."""
        addr &= _M32
        if addr >= self.sz or addr + 4 > self.sz:
            raise SyscallError(f"address {addr:#x} is outside the process")
        return _WORD.unpack_from(self.memory, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at a user address, without its NUL."""
        addr &= _M32
        if addr >= self.sz:
            raise SyscallError(f"address {addr:#x} is outside the process")
        end = self.memory.find(0, addr, self.sz)
        if end < 0:
            raise SyscallError(f"string at {addr:#x} is not terminated")
        return bytes(self.memory[addr:end])

    def arg_int(self, n: int) -> int:
        """The nth 32-bit system call argument."""
        return self.fetch_int((self.esp + 4 + 4 * n) & _M32)

    def arg_ptr(self, n: int, size: int) -> int:
        """The nth argument as the address of a block of size bytes in the process."""
        i = self.arg_int(n) & _M32
        if size < 0 or i >= self.sz or i + size > self.sz:
            raise SyscallError(f"pointer {i:#x}+{size} is outside the process")
        return i

    def arg_str(self, n: int) -> bytes:
        """The nth argument as a NUL-terminated string in the process."""
        return self.fetch_str(self.arg_int(n))


Handler = Callable[[ProcessImage], int]


@dataclass
class SyscallTable:
    """Maps system call numbers to handlers and runs them."""

    console: Optional[TextIO] = None
    handlers: dict[int, Handler] = field(default_factory=dict)

    def register(self, number: int, handler: Handler) -> None:
        """Install handler for a positive system call number."""
        number = int(number)
        if number <= 0:
            raise ValueError(f"system call numbers start at 1, got {number}")
        self.handlers[number] = handler

    def dispatch(self, proc: ProcessImage, number: int) -> int:
        """Run a system call; its result, or -1, is also left in proc.eax."""
        handler = self.handlers.get(int(number)) if number > 0 else None
        if handler is None:
            out = self.console if self.console is not None else sys.stdout
            out.write(f"{proc.pid} {proc.name}: unknown sys call {int(number)}\n")
            result = -1
        else:
            try:
                result = handler(proc)
            except SyscallError:
                result = -1
        proc.eax = result
        return result


class Ticker:
    """A clock counting timer interrupts, with sleepers woken on each tick."""

    def __init__(self) -> None:
        self._ticks = 0
        self._cond = threading.Condition(threading.Lock())

    def tick(self) -> None:
        """Count one timer interrupt and wake every sleeper."""
        with self._cond:
            self._ticks = (self._ticks + 1) & _M32
            self._cond.notify_all()

    def wakeup(self) -> None:
        """Wake sleepers without a tick, so they can notice they were killed."""
        with self._cond:
            self._cond.notify_all()

    def uptime(self) -> int:
        """Number of ticks since the clock started."""
        with self._cond:
            return self._ticks

    def sleep(self, n: int, killed: Optional[Callable[[], bool]] = None) -> int:
        """Block for n ticks; raise SyscallError if killed() turns true first."""
        with self._cond:
            ticks0 = self._ticks
            while ((self._ticks - ticks0) & _M32) < (n & _M32):
                if killed is not None and killed():
                    raise SyscallError("killed while sleeping")
                self._cond.wait()
        return 0
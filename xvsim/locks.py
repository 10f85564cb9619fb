"""Spin locks with nested interrupt disabling, and sleeping locks."""

from __future__ import annotations

import threading
import traceback
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

_MAX_CALLERS = 10


class LockError(RuntimeError):
    """A lock was used in a way that breaks its rules."""


@dataclass(eq=False)
class Cpu:
    """Per-CPU interrupt state with a nesting count of disables."""

    id: int = 0
    interrupts_enabled: bool = True
    ncli: int = 0
    intena: bool = False

    def push_cli(self) -> None:
        """Disable interrupts, remembering the state at the outermost level."""
        enabled = self.interrupts_enabled
        self.interrupts_enabled = False
        if self.ncli == 0:
            self.intena = enabled
        self.ncli += 1

    def pop_cli(self) -> None:
        """Undo one push_cli; interrupts return only when all are undone."""
        if self.interrupts_enabled:
            raise LockError("popcli - interruptible")
        if self.ncli <= 0:
            raise LockError("popcli")
        self.ncli -= 1
        if self.ncli == 0 and self.intena:
            self.interrupts_enabled = True


class SpinLock:
    """Mutual exclusion lock owned by a CPU, held with interrupts off."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.locked = False
        self.cpu: Cpu | None = None
        self.callers: tuple[tuple[str, int, str], ...] = ()
        self._lock = threading.Lock()

    def acquire(self, cpu: Cpu) -> None:
        """Wait until the lock is free and take it for cpu."""
        cpu.push_cli()
        if self.holding(cpu):
            cpu.pop_cli()
            raise LockError(f"acquire: {self.name} already held")
        self._lock.acquire()
        self.locked = True
        self.cpu = cpu
        stack = traceback.extract_stack()[:-1]
        self.callers = tuple(
            (frame.filename, frame.lineno or 0, frame.name)
            for frame in reversed(stack[-_MAX_CALLERS:])
        )

    def release(self, cpu: Cpu) -> None:
        """Give up the lock; cpu must be holding it."""
        if not self.holding(cpu):
            raise LockError(f"release: {self.name} not held")
        self.callers = ()
        self.cpu = None
        self.locked = False
        self._lock.release()
        cpu.pop_cli()

    def holding(self, cpu: Cpu) -> bool:
        """Whether cpu holds this lock."""
        cpu.push_cli()
        try:
            return self.locked and self.cpu is cpu
        finally:
            cpu.pop_cli()

    @contextmanager
    def held(self, cpu: Cpu) -> Iterator[SpinLock]:
        """Hold the lock for the duration of a with block."""
        self.acquire(cpu)
        try:
            yield self
        finally:
            self.release(cpu)


class SleepLock:
    """Long-term lock; waiters block instead of spinning."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition(threading.Lock())

    def acquire(self, pid: int) -> None:
        """Block until the lock is free, then take it for process pid."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Free the lock and wake every waiter."""
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process pid holds this lock."""
        with self._cond:
            return self.locked and self.pid == pid
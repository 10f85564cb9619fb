"""System-wide limits, flag values, numbering tables and the memory layout."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag

UINT32_MASK = 0xFFFFFFFF

NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM


def v2p(addr: int) -> int:
    """Translate a kernel virtual address to a physical one (32-bit wrap)."""
    return (addr - KERNBASE) & UINT32_MASK


def p2v(addr: int) -> int:
    """Translate a physical address to its kernel virtual address (32-bit wrap)."""
    return (addr + KERNBASE) & UINT32_MASK


class FileType(IntEnum):
    """Kind of object an inode describes."""

    DIR = 1
    FILE = 2
    DEV = 3


class OpenFlag(IntFlag):
    """Mode bits accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


class SyscallNumber(IntEnum):
    """System call numbers as passed in the accumulator register."""

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


class TrapNumber(IntEnum):
    """Processor exceptions and the software-chosen trap vectors."""

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
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


class Irq(IntEnum):
    """Hardware interrupt lines, offset from TrapNumber.IRQ0."""

    TIMER = 0
    KBD = 1
    COM1 = 4
    IDE = 14
    ERROR = 19
    SPURIOUS = 31


@dataclass
class Stat:
    """File status as reported by fstat."""

    type: FileType
    dev: int
    ino: int
    nlink: int
    size: int

    def __post_init__(self) -> None:
        self.type = FileType(self.type)
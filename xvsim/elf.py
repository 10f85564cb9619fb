"""Reading the headers of 32-bit little-endian ELF executables."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

ELF_MAGIC = 0x464C457F  # "\x7FELF" read as a little-endian word

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


@dataclass
class ElfHeader:
    """The ELF file header."""

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<I12sHHIIIIIHHHHHH")
    SIZE: ClassVar[int] = FORMAT.size

    magic: int = ELF_MAGIC
    ident: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    @classmethod
    def parse(cls, data: bytes) -> ElfHeader:
        """Decode the header at the start of data; the magic must match."""
        if len(data) < cls.SIZE:
            raise ElfFormatError(
                f"ELF header needs {cls.SIZE} bytes, got {len(data)}"
            )
        header = cls(*cls.FORMAT.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def to_bytes(self) -> bytes:
        if len(self.ident) != 12:
            raise ValueError("ident must be exactly 12 bytes")
        try:
            return self.FORMAT.pack(
                self.magic, bytes(self.ident), self.type, self.machine,
                self.version, self.entry, self.phoff, self.shoff, self.flags,
                self.ehsize, self.phentsize, self.phnum, self.shentsize,
                self.shnum, self.shstrndx,
            )
        except struct.error as exc:
            raise ValueError(str(exc)) from exc


@dataclass
class ProgramHeader:
    """One program (segment) header."""

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<8I")
    SIZE: ClassVar[int] = FORMAT.size

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    @classmethod
    def parse(cls, data: bytes) -> ProgramHeader:
        """Decode a program header from the start of data."""
        if len(data) < cls.SIZE:
            raise ElfFormatError(
                f"program header needs {cls.SIZE} bytes, got {len(data)}"
            )
        return cls(*cls.FORMAT.unpack_from(data, 0))

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @property
    def executable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_EXEC)

    @property
    def writable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_WRITE)

    @property
    def readable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_READ)

    def to_bytes(self) -> bytes:
        try:
            return self.FORMAT.pack(
                self.type, self.off, self.vaddr, self.paddr,
                self.filesz, self.memsz, self.flags, self.align,
            )
        except struct.error as exc:
            raise ValueError(str(exc)) from exc


def program_headers(data: bytes) -> list[ProgramHeader]:
    """All program headers of an image, read at phoff in fixed-size steps."""
    header = ElfHeader.parse(data)
    result = []
    for i in range(header.phnum):
        off = header.phoff + i * ProgramHeader.SIZE
        if off + ProgramHeader.SIZE > len(data):
            raise ElfFormatError(f"program header {i} lies outside the image")
        result.append(ProgramHeader.parse(data[off:off + ProgramHeader.SIZE]))
    return result
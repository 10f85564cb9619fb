import pytest

from xvsim.elf import (
    ELF_MAGIC,
    ELF_PROG_FLAG_EXEC,
    ELF_PROG_FLAG_READ,
    ELF_PROG_LOAD,
    ElfFormatError,
    ElfHeader,
    ProgramHeader,
    program_headers,
)


def _image(phdrs):
    header = ElfHeader(entry=0x20, phoff=ElfHeader.SIZE, phnum=len(phdrs))
    return header.to_bytes() + b"".join(p.to_bytes() for p in phdrs)


def test_header_starts_with_magic_bytes():
    assert ElfHeader().to_bytes()[:4] == b"\x7fELF"


def test_struct_sizes_match_format():
    assert len(ElfHeader().to_bytes()) == 52
    assert len(ProgramHeader().to_bytes()) == 32


def test_header_round_trip():
    header = ElfHeader(ident=b"\x01" * 12, type=2, machine=3, version=1,
                       entry=0x1000, phoff=52, phnum=2, shnum=5)
    assert ElfHeader.parse(header.to_bytes()) == header


def test_bad_magic_rejected():
    data = ElfHeader(magic=0x12345678).to_bytes()
    with pytest.raises(ElfFormatError):
        ElfHeader.parse(data)


def test_short_header_rejected():
    with pytest.raises(ElfFormatError):
        ElfHeader.parse(ElfHeader().to_bytes()[:20])


def test_short_program_header_rejected():
    with pytest.raises(ElfFormatError):
        ProgramHeader.parse(bytes(10))


def test_program_header_round_trip_and_flags():
    ph = ProgramHeader(type=ELF_PROG_LOAD, off=0x1000, vaddr=0, filesz=100,
                       memsz=200, flags=ELF_PROG_FLAG_EXEC | ELF_PROG_FLAG_READ,
                       align=4096)
    parsed = ProgramHeader.parse(ph.to_bytes())
    assert parsed == ph
    assert parsed.is_load and parsed.executable and parsed.readable
    assert not parsed.writable


def test_program_headers_lists_all():
    phdrs = [
        ProgramHeader(type=ELF_PROG_LOAD, vaddr=0, memsz=10),
        ProgramHeader(type=4, vaddr=0x2000, memsz=20),
    ]
    assert program_headers(_image(phdrs)) == phdrs


def test_program_headers_out_of_range():
    data = _image([ProgramHeader(type=ELF_PROG_LOAD)])[:-1]
    with pytest.raises(ElfFormatError):
        program_headers(data)


def test_parse_preserves_magic_constant():
    assert ElfHeader.parse(_image([])).magic == ELF_MAGIC


def test_bad_ident_length():
    with pytest.raises(ValueError):
        ElfHeader(ident=b"short").to_bytes()
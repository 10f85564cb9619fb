"""x86 paging arithmetic and segment/gate descriptor encoding."""

from __future__ import annotations

from dataclasses import dataclass

_M32 = 0xFFFFFFFF

FL_IF = 0x00000200

CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _M32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _M32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _M32


def pgroundup(sz: int) -> int:
    """Round up to a page boundary."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _M32


def pgrounddown(a: int) -> int:
    """Round down to a page boundary."""
    return a & ~(PGSIZE - 1) & _M32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _M32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def _pack(obj: object, layout: tuple[tuple[str, int], ...]) -> int:
    value = 0
    shift = 0
    for name, width in layout:
        value |= getattr(obj, name) << shift
        shift += width
    return value


def _unpack(layout: tuple[tuple[str, int], ...], value: int) -> dict[str, int]:
    fields = {}
    for name, width in layout:
        fields[name] = value & ((1 << width) - 1)
        value >>= width
    return fields


def _check(obj: object, layout: tuple[tuple[str, int], ...]) -> None:
    for name, width in layout:
        v = getattr(obj, name)
        if not 0 <= v < (1 << width):
            raise ValueError(f"{name}={v} does not fit in {width} bits")


def _from_8_bytes(data: bytes) -> int:
    if len(data) != 8:
        raise ValueError(f"descriptor must be 8 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


_SEG_LAYOUT = (
    ("lim_15_0", 16),
    ("base_15_0", 16),
    ("base_23_16", 8),
    ("type", 4),
    ("s", 1),
    ("dpl", 2),
    ("p", 1),
    ("lim_19_16", 4),
    ("avl", 1),
    ("rsv1", 1),
    ("db", 1),
    ("g", 1),
    ("base_31_24", 8),
)

_GATE_LAYOUT = (
    ("off_15_0", 16),
    ("cs", 16),
    ("args", 5),
    ("rsv1", 3),
    ("type", 4),
    ("s", 1),
    ("dpl", 2),
    ("p", 1),
    ("off_31_16", 16),
)


@dataclass
class SegmentDescriptor:
    """A GDT segment descriptor, field by field."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    def __post_init__(self) -> None:
        _check(self, _SEG_LAYOUT)

    @classmethod
    def normal(cls, type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
        """A 32-bit segment whose limit is counted in 4 KiB units."""
        base &= _M32
        limit &= _M32
        return cls(
            lim_15_0=(limit >> 12) & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=type_,
            s=1,
            dpl=dpl,
            p=1,
            lim_19_16=(limit >> 28) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=1,
            base_31_24=(base >> 24) & 0xFF,
        )

    @classmethod
    def seg16(cls, type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
        """A segment whose limit is counted in bytes."""
        base &= _M32
        limit &= _M32
        return cls(
            lim_15_0=limit & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=type_,
            s=1,
            dpl=dpl,
            p=1,
            lim_19_16=(limit >> 16) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=0,
            base_31_24=(base >> 24) & 0xFF,
        )

    @property
    def base(self) -> int:
        return self.base_15_0 | (self.base_23_16 << 16) | (self.base_31_24 << 24)

    @property
    def limit(self) -> int:
        """The raw 20-bit limit field."""
        return self.lim_15_0 | (self.lim_19_16 << 16)

    def to_bytes(self) -> bytes:
        return _pack(self, _SEG_LAYOUT).to_bytes(8, "little")

    @classmethod
    def from_bytes(cls, data: bytes) -> SegmentDescriptor:
        return cls(**_unpack(_SEG_LAYOUT, _from_8_bytes(data)))


@dataclass
class GateDescriptor:
    """An IDT interrupt or trap gate."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    def __post_init__(self) -> None:
        _check(self, _GATE_LAYOUT)

    @classmethod
    def make(cls, is_trap: bool, selector: int, offset: int, dpl: int) -> GateDescriptor:
        """Build a present gate; trap gates leave interrupts enabled."""
        offset &= _M32
        return cls(
            off_15_0=offset & 0xFFFF,
            cs=selector,
            args=0,
            rsv1=0,
            type=STS_TG32 if is_trap else STS_IG32,
            s=0,
            dpl=dpl,
            p=1,
            off_31_16=offset >> 16,
        )

    @property
    def offset(self) -> int:
        return self.off_15_0 | (self.off_31_16 << 16)

    def to_bytes(self) -> bytes:
        return _pack(self, _GATE_LAYOUT).to_bytes(8, "little")

    @classmethod
    def from_bytes(cls, data: bytes) -> GateDescriptor:
        return cls(**_unpack(_GATE_LAYOUT, _from_8_bytes(data)))
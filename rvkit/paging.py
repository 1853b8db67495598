"""Page table entry layouts and address helpers for x86-64 and AArch64 4K paging."""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping

_U64_LIMIT = 1 << 64

# x86-64 PML4E bits
PML4E_P = 1 << 0
PML4E_RW = 1 << 1
PML4E_US = 1 << 2
PML4E_PWT = 1 << 3
PML4E_PCD = 1 << 4
PML4E_A = 1 << 5
PML4E_PS = 1 << 7
PML4E_XD = 1 << 63

# x86-64 PDPTE bits
PDPTE_P = 1 << 0
PDPTE_RW = 1 << 1
PDPTE_US = 1 << 2
PDPTE_PWT = 1 << 3
PDPTE_PCD = 1 << 4
PDPTE_A = 1 << 5
PDPTE_D = 1 << 6
PDPTE_PS = 1 << 7
PDPTE_G = 1 << 8
PDPTE_PAT = 1 << 12
PDPTE_XD = 1 << 63

# x86-64 PDE bits
PDE_P = 1 << 0
PDE_RW = 1 << 1
PDE_US = 1 << 2
PDE_PWT = 1 << 3
PDE_PCD = 1 << 4
PDE_A = 1 << 5
PDE_D = 1 << 6
PDE_PS = 1 << 7
PDE_G = 1 << 8
PDE_PAT = 1 << 12
PDE_XD = 1 << 63

# x86-64 PTE bits
PTE_P = 1 << 0
PTE_RW = 1 << 1
PTE_US = 1 << 2
PTE_PWT = 1 << 3
PTE_PCD = 1 << 4
PTE_A = 1 << 5
PTE_D = 1 << 6
PTE_PAT = 1 << 7
PTE_G = 1 << 8
PTE_XD = 1 << 63

# x86-64 CR3 bits
CR3_PWT = 1 << 3
CR3_PCD = 1 << 4

# AArch64 descriptor bits
PT_DESC_V = 1
PT_DESC_BLOCK_OR_TABLE = 1 << 1
PT_DESC_PAGE = 1 << 1
PT_DESC_ADDR_MASK = 0xFFFFFFFFF000
PT_DESC_L1_BLOCK_ADDR_MASK = 0xFFFFC0000000
PT_DESC_L2_BLOCK_ADDR_MASK = 0xFFFFFFE00000

PT_DESC_TABLE_ATTR_NSTABLE = 1 << 63
PT_DESC_TABLE_ATTR_APTABLE_MASK = 0x3 << 61
PT_DESC_TABLE_ATTR_APTABLE_OFF = 61
PT_DESC_TABLE_ATTR_UXNTABLE = 1 << 60
PT_DESC_TABLE_ATTR_PXNTABLE = 1 << 59

PT_DESC_ATTR_LOWER_NG = 1 << 11
PT_DESC_ATTR_LOWER_AF = 1 << 10
PT_DESC_ATTR_LOWER_SH_MASK = 0x300
PT_DESC_ATTR_LOWER_AP_MASK = 0xC0
PT_DESC_ATTR_LOWER_AP_RO = 1 << 7
PT_DESC_ATTR_LOWER_AP_EL0 = 1 << 6
PT_DESC_ATTR_LOWER_NS = 1 << 5
PT_DESC_ATTR_LOWER_ATTRINDX_MASK = 0x1C
PT_DESC_ATTR_LOWER_ATTRINDX_OFF = 2

PT_DESC_ATTR_UPPER_XN = 1 << 54
PT_DESC_ATTR_UPPER_PXN = 1 << 53
PT_DESC_ATTR_UPPER_CONT = 1 << 52


def maxphyaddr_mask(width: int) -> int:
    """Mask covering the low `width` bits of a physical address."""
    if width < 0:
        raise ValueError("address width must not be negative")
    return (1 << width) - 1


def x86_entry_address(addr: int, width: int) -> int:
    """Address field of a table entry: 4K aligned and cut to `width` bits."""
    return ((addr >> 12) << 12) & maxphyaddr_mask(width)


def x86_pdpte_address_1g(addr: int, width: int) -> int:
    """Address field of a 1G huge page PDPTE."""
    return ((addr >> 30) << 30) & maxphyaddr_mask(width)


def x86_pde_address_2m(addr: int, width: int) -> int:
    """Address field of a 2M huge page PDE."""
    return ((addr >> 21) << 21) & maxphyaddr_mask(width)


def x86_cr3_address(addr: int, width: int) -> int:
    """Page table root address held in CR3."""
    return x86_entry_address(addr, width)


def x86_cr3_pcid(pcid: int) -> int:
    """Process-context identifier field of CR3."""
    return pcid & ((1 << 12) - 1)


class EntryLayout(enum.Enum):
    """Bit layouts of 64-bit page table entries."""

    X86_L0 = "x86_64 PML4E"
    X86_L1_HUGE = "x86_64 PDPTE mapping a 1G page"
    X86_L1 = "x86_64 PDPTE"
    X86_L2_HUGE = "x86_64 PDE mapping a 2M page"
    X86_L2 = "x86_64 PDE"
    X86_L3 = "x86_64 PTE"
    AARCH64_L0 = "aarch64 level 0 table descriptor"
    AARCH64_L1_HUGE = "aarch64 level 1 block descriptor"
    AARCH64_L1 = "aarch64 level 1 table descriptor"
    AARCH64_L2_HUGE = "aarch64 level 2 block descriptor"
    AARCH64_L2 = "aarch64 level 2 table descriptor"
    AARCH64_L3 = "aarch64 level 3 page descriptor"

    @property
    def fields(self) -> tuple[tuple[str | None, int], ...]:
        """Fields from bit 0 upwards; None names reserved bits."""
        return _LAYOUTS[self]

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields if name is not None)


_X86_TABLE = (
    ("P", 1),
    ("RW", 1),
    ("US", 1),
    ("PWT", 1),
    ("PCD", 1),
    ("A", 1),
    (None, 1),
    ("PS", 1),
    (None, 4),
    ("paddr", 40),
    (None, 11),
    ("XD", 1),
)

_X86_L1_HUGE = (
    ("P", 1),
    ("RW", 1),
    ("US", 1),
    ("PWT", 1),
    ("PCD", 1),
    ("A", 1),
    ("D", 1),
    ("PS", 1),
    ("G", 1),
    (None, 3),
    ("PAT", 1),
    (None, 17),
    ("paddr", 22),
    (None, 7),
    ("PK", 4),
    ("XD", 1),
)

_X86_L2_HUGE = (
    ("P", 1),
    ("RW", 1),
    ("US", 1),
    ("PWT", 1),
    ("PCD", 1),
    ("A", 1),
    ("D", 1),
    ("PS", 1),
    ("G", 1),
    (None, 3),
    ("PAT", 1),
    (None, 8),
    ("paddr", 31),
    (None, 7),
    ("PK", 4),
    ("XD", 1),
)

_X86_L3 = (
    ("P", 1),
    ("RW", 1),
    ("US", 1),
    ("PWT", 1),
    ("PCD", 1),
    ("A", 1),
    ("D", 1),
    ("PAT", 1),
    ("G", 1),
    (None, 3),
    ("paddr", 40),
    (None, 7),
    ("PK", 4),
    ("XD", 1),
)

_ARM_TABLE = (
    ("V", 1),
    ("BOK", 1),
    (None, 10),
    ("paddr", 36),
    (None, 11),
    ("PXNTable", 1),
    ("XNTable", 1),
    ("APTable", 2),
    ("NSTable", 1),
)

_ARM_LOWER_ATTR = (
    ("AttrIndex", 3),
    ("NS", 1),
    ("AP", 2),
    ("SH", 2),
    ("AF", 1),
    ("nG", 1),
)

_ARM_UPPER_ATTR = (
    ("contiguous", 1),
    ("PXN", 1),
    ("UXN", 1),
    ("RES0", 4),
    ("RES1", 5),
)

_ARM_L1_HUGE = (
    (("V", 1), ("BOK", 1))
    + _ARM_LOWER_ATTR
    + ((None, 18), ("paddr", 18), (None, 4))
    + _ARM_UPPER_ATTR
)

_ARM_L2_HUGE = (
    (("V", 1), ("BOK", 1))
    + _ARM_LOWER_ATTR
    + ((None, 9), ("paddr", 27), (None, 4))
    + _ARM_UPPER_ATTR
)

_ARM_L3 = (
    ("V", 1),
    ("BOK", 1),
    (None, 10),
    ("paddr", 36),
    (None, 4),
) + _ARM_UPPER_ATTR

_LAYOUTS: dict[EntryLayout, tuple[tuple[str | None, int], ...]] = {
    EntryLayout.X86_L0: _X86_TABLE,
    EntryLayout.X86_L1_HUGE: _X86_L1_HUGE,
    EntryLayout.X86_L1: _X86_TABLE,
    EntryLayout.X86_L2_HUGE: _X86_L2_HUGE,
    EntryLayout.X86_L2: _X86_TABLE,
    EntryLayout.X86_L3: _X86_L3,
    EntryLayout.AARCH64_L0: _ARM_TABLE,
    EntryLayout.AARCH64_L1_HUGE: _ARM_L1_HUGE,
    EntryLayout.AARCH64_L1: _ARM_TABLE,
    EntryLayout.AARCH64_L2_HUGE: _ARM_L2_HUGE,
    EntryLayout.AARCH64_L2: _ARM_TABLE,
    EntryLayout.AARCH64_L3: _ARM_L3,
}


def _named_fields(layout: EntryLayout) -> Iterator[tuple[str, int, int]]:
    shift = 0
    for name, width in EntryLayout(layout).fields:
        if name is not None:
            yield name, shift, width
        shift += width


def decode_entry(layout: EntryLayout, value: int) -> dict[str, int]:
    """Split a 64-bit entry into its named fields."""
    if not 0 <= value < _U64_LIMIT:
        raise ValueError(f"{value:#x} is not a 64-bit entry")
    return {
        name: (value >> shift) & ((1 << width) - 1)
        for name, shift, width in _named_fields(layout)
    }


def encode_entry(layout: EntryLayout, fields: Mapping[str, int]) -> int:
    """Assemble a 64-bit entry from named fields; missing fields are zero."""
    positions = {name: (shift, width) for name, shift, width in _named_fields(layout)}
    unknown = set(fields) - set(positions)
    if unknown:
        raise ValueError(f"unknown fields for {layout.name}: {sorted(unknown)}")
    entry = 0
    for name, value in fields.items():
        shift, width = positions[name]
        if not 0 <= value < 1 << width:
            raise ValueError(f"{name}={value:#x} does not fit in {width} bits")
        entry |= value << shift
    return entry
"""x86-64 segment selectors, segment, TSS and interrupt gate descriptors."""

from __future__ import annotations

import dataclasses
import struct
from dataclasses import dataclass

GDT_SIZE = 4
GDT_TSS_LOWER_INDEX = 2
GDT_TSS_UPPER_INDEX = 3

IA32E_CALL_GATE_TYPE = 0xC
IA32E_IDT_GATE_TYPE_INT = 0xE
IA32E_IDT_GATE_TYPE_TRAP = 0xF

IA32E_LDT_TYPE = 0x2
IA32E_TSS_TYPE_VALID = 0x9
IA32E_TSS_TYPE_BUSY = 0xB

TSS_LIMIT = 0x67

_SELECTOR_FIELDS = (("rpl", 2), ("table_indicator", 1), ("index", 13))

_SEGMENT_FIELDS = (
    ("limit_15_0", 16),
    ("base_address_15_0", 16),
    ("base_address_23_16", 8),
    ("type", 4),
    ("s", 1),
    ("dpl", 2),
    ("p", 1),
    ("limit_19_16", 4),
    ("avl", 1),
    ("l", 1),
    ("d_or_b", 1),
    ("g", 1),
    ("base_address_31_24", 8),
)

_TSS_LOWER_FIELDS = (
    ("limit_15_0", 16),
    ("base_address_15_0", 16),
    ("base_address_23_16", 8),
    ("type", 4),
    ("zero_0", 1),
    ("dpl", 2),
    ("p", 1),
    ("limit_19_16", 4),
    ("avl", 1),
    ("zero_1", 1),
    ("zero_2", 1),
    ("g", 1),
    ("base_address_31_24", 8),
)

_TSS_UPPER_FIELDS = (("base_address_63_32", 32), ("res_0", 8), ("zero_3", 5), ("res_1", 19))

_IDT_LOW_FIELDS = (
    ("offset_15_0", 16),
    ("seg_selector", 16),
    ("ist", 3),
    ("zero_0", 5),
    ("type", 4),
    ("zero_1", 1),
    ("dpl", 2),
    ("p", 1),
    ("offset_31_16", 16),
)

_IDT_HIGH_FIELDS = (("offset_63_32", 32), ("res", 32))


def _total_width(fields: tuple[tuple[str, int], ...]) -> int:
    return sum(width for _, width in fields)


def _pack(fields: tuple[tuple[str, int], ...], values: dict[str, int]) -> int:
    result = 0
    shift = 0
    for name, width in fields:
        value = values.get(name, 0)
        if not 0 <= value < 1 << width:
            raise ValueError(f"{name}={value} does not fit in {width} bits")
        result |= value << shift
        shift += width
    return result


def _unpack(fields: tuple[tuple[str, int], ...], value: int) -> dict[str, int]:
    if not 0 <= value < 1 << _total_width(fields):
        raise ValueError(f"{value:#x} does not fit in {_total_width(fields)} bits")
    result = {}
    for name, width in fields:
        result[name] = value & ((1 << width) - 1)
        value >>= width
    return result


@dataclass(frozen=True)
class DescSelector:
    """A segment selector: requested privilege, table indicator and index."""

    rpl: int = 0
    table_indicator: int = 0
    index: int = 0

    def __post_init__(self) -> None:
        self.to_int()

    @classmethod
    def from_int(cls, value: int) -> DescSelector:
        return cls(**_unpack(_SELECTOR_FIELDS, value))

    def to_int(self) -> int:
        return _pack(_SELECTOR_FIELDS, dataclasses.asdict(self))


@dataclass(frozen=True)
class SegmentDescriptor:
    """A legacy code or data segment descriptor."""

    limit_15_0: int = 0
    base_address_15_0: int = 0
    base_address_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    limit_19_16: int = 0
    avl: int = 0
    l: int = 0  # noqa: E741
    d_or_b: int = 0
    g: int = 0
    base_address_31_24: int = 0

    def __post_init__(self) -> None:
        self.to_int()

    @classmethod
    def from_int(cls, value: int) -> SegmentDescriptor:
        return cls(**_unpack(_SEGMENT_FIELDS, value))

    def to_int(self) -> int:
        return _pack(_SEGMENT_FIELDS, dataclasses.asdict(self))

    @property
    def base(self) -> int:
        """The 32-bit segment base."""
        return (
            self.base_address_15_0
            | self.base_address_23_16 << 16
            | self.base_address_31_24 << 24
        )

    @property
    def limit(self) -> int:
        """The 20-bit segment limit."""
        return self.limit_15_0 | self.limit_19_16 << 16


def pack_pseudo_descriptor(limit: int, base: int) -> bytes:
    """The 10-byte operand of lgdt and lidt."""
    return struct.pack("<HQ", limit, base)


def idt_gate(
    offset: int,
    selector: DescSelector | int,
    dpl: int,
    gate_type: int,
    ist: int,
) -> tuple[int, int]:
    """Build a 16-byte interrupt gate; return its low and high quadwords."""
    selector_value = selector.to_int() if isinstance(selector, DescSelector) else selector
    low = _pack(
        _IDT_LOW_FIELDS,
        {
            "offset_15_0": offset & 0xFFFF,
            "seg_selector": selector_value & 0xFFFF,
            "ist": ist & 0x7,
            "type": gate_type & 0xF,
            "dpl": dpl & 0x3,
            "p": 1,
            "offset_31_16": (offset & 0xFFFFFFFF) >> 16,
        },
    )
    high = _pack(_IDT_HIGH_FIELDS, {"offset_63_32": (offset >> 32) & 0xFFFFFFFF})
    return low, high


def tss_descriptor_lower(base: int, dpl: int) -> int:
    """Lower quadword of an available 64-bit TSS descriptor at `base`."""
    return _pack(
        _TSS_LOWER_FIELDS,
        {
            "limit_15_0": TSS_LIMIT & 0xFFFF,
            "base_address_15_0": base & 0xFFFF,
            "base_address_23_16": (base & 0xFF0000) >> 16,
            "type": IA32E_TSS_TYPE_VALID,
            "dpl": dpl & 0x3,
            "p": 1,
            "limit_19_16": (TSS_LIMIT & 0xF0000) >> 16,
            "avl": 1,
            "g": 0,
            "base_address_31_24": (base & 0xFF000000) >> 24,
        },
    )


def tss_descriptor_upper(base: int) -> int:
    """Upper quadword of a 64-bit TSS descriptor at `base`."""
    return _pack(_TSS_UPPER_FIELDS, {"base_address_63_32": (base >> 32) & 0xFFFFFFFF})
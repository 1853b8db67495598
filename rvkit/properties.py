"""Standard device tree property names and the kinds of value they carry."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class PropertyType(enum.IntEnum):
    """Known device tree properties."""

    NONE = 0
    COMPATIBLE = 1
    MODEL = 2
    PHANDLE = 3
    STATUS = 4
    ADDRESS_CELLS = 5
    SIZE_CELLS = 6
    REG = 7
    VIRTUAL_REG = 8
    RANGES = 9
    DMA_RANGES = 10
    DMA_COHERENT = 11
    DMA_NONCOHERENT = 12
    NAME = 13
    DEVICE_TYPE = 14
    INTERRUPT = 15
    INTERRUPT_PARENT = 16
    INTERRUPTS_EXTENDED = 17
    INTERRUPT_CELLS = 18
    INTERRUPT_CONTROLLER = 19
    INTERRUPT_MAP = 20
    INTERRUPT_MAP_MASK = 21
    SPECIFIER_MAP = 22
    SPECIFIER_MAP_MASK = 23
    SPECIFIER_MAP_PASS_THRU = 24
    SPECIFIER_CELLS = 25
    OTHER = 26


class ValueKind(enum.IntEnum):
    """Encodings a property value may use."""

    EMPTY = 0
    U32 = 1
    U64 = 2
    STRING = 3
    PROP_ENCODED_ARRAY = 4
    PHANDLE = 5
    STRINGLIST = 6


@dataclass(frozen=True)
class PropertySpec:
    """A property name with its type and value encodings."""

    name: str
    property_type: PropertyType
    kinds: tuple[ValueKind, ...]


_T = PropertyType
_V = ValueKind

PROPERTY_SPECS: tuple[PropertySpec, ...] = (
    PropertySpec("", _T.NONE, (_V.EMPTY,)),
    PropertySpec("compatible", _T.COMPATIBLE, (_V.STRINGLIST,)),
    PropertySpec("model", _T.MODEL, (_V.STRING,)),
    PropertySpec("phandle", _T.PHANDLE, (_V.U32,)),
    PropertySpec("status", _T.STATUS, (_V.STRING,)),
    PropertySpec("#address-cells", _T.ADDRESS_CELLS, (_V.U32,)),
    PropertySpec("#size-cells", _T.SIZE_CELLS, (_V.U32,)),
    PropertySpec("reg", _T.REG, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("virtual-reg", _T.VIRTUAL_REG, (_V.U32,)),
    PropertySpec("ranges", _T.RANGES, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("dma-ranges", _T.DMA_RANGES, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("dma-coherent", _T.DMA_COHERENT, (_V.EMPTY,)),
    PropertySpec("dma-noncoherent", _T.DMA_NONCOHERENT, (_V.EMPTY,)),
    PropertySpec("name", _T.NAME, (_V.STRING,)),
    PropertySpec("device_type", _T.DEVICE_TYPE, (_V.STRING,)),
    PropertySpec("interrupts", _T.INTERRUPT, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("interrupt-parent", _T.INTERRUPT_PARENT, (_V.PHANDLE,)),
    PropertySpec(
        "interrupts-extended",
        _T.INTERRUPTS_EXTENDED,
        (_V.PHANDLE, _V.PROP_ENCODED_ARRAY),
    ),
    PropertySpec("#interrupt-cells", _T.INTERRUPT_CELLS, (_V.U32,)),
    PropertySpec("interrupt-controller", _T.INTERRUPT_CONTROLLER, (_V.EMPTY,)),
    PropertySpec("interrupt-map", _T.INTERRUPT_MAP, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("interrupt-map-mask", _T.INTERRUPT_MAP_MASK, (_V.PROP_ENCODED_ARRAY,)),
    # specifier properties are matched by suffix, e.g. "gpio-map"
    PropertySpec("-map", _T.SPECIFIER_MAP, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("-map-mask", _T.SPECIFIER_MAP_MASK, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("-map-pass-thru", _T.SPECIFIER_MAP_PASS_THRU, (_V.PROP_ENCODED_ARRAY,)),
    PropertySpec("-cells", _T.SPECIFIER_CELLS, (_V.U32,)),
    PropertySpec("other", _T.NONE, (_V.EMPTY,)),
)


def get_property_type(name: str | None) -> PropertyType:
    """Classify a property by its name."""
    if name is None:
        return PropertyType.NONE
    exact = PROPERTY_SPECS[1 : PropertyType.SPECIFIER_MAP]
    for index, spec in enumerate(exact, start=1):
        if spec.name == name:
            return PropertyType(index)
    suffixes = PROPERTY_SPECS[PropertyType.SPECIFIER_MAP : PropertyType.OTHER]
    for index, spec in enumerate(suffixes, start=PropertyType.SPECIFIER_MAP):
        if len(spec.name) <= len(name) and name.endswith(spec.name):
            return PropertyType(index)
    return PropertyType.OTHER


def value_kinds(property_type: PropertyType) -> tuple[ValueKind, ...]:
    """The value encodings a property of this type carries."""
    return PROPERTY_SPECS[PropertyType(property_type)].kinds
"""Human-readable rendering of device tree properties and nodes."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from rvkit.fdt import Fdt
from rvkit.properties import PropertyType, ValueKind, get_property_type, value_kinds

_ERROR_TEXT = "Error:something wrong happened in parse this dtb,please check\n"

_UNRENDERED_ARRAYS = frozenset(
    {
        PropertyType.RANGES,
        PropertyType.DMA_RANGES,
        PropertyType.INTERRUPT,
        PropertyType.INTERRUPT_MAP,
        PropertyType.INTERRUPT_MAP_MASK,
        PropertyType.SPECIFIER_MAP,
        PropertyType.SPECIFIER_MAP_MASK,
        PropertyType.SPECIFIER_MAP_PASS_THRU,
    }
)


def _cells(data: bytes, size: int) -> Iterator[int]:
    for start in range(0, len(data), size):
        yield int.from_bytes(data[start : start + size].ljust(size, b"\0"), "big")


def _format_empty(ptype: PropertyType, data: bytes) -> str:
    return ""


def _format_cell_list(data: bytes, size: int) -> str:
    values = " ".join(f"0x{value:x}" for value in _cells(data, size))
    return "<" + values + (">" if data else "")


def _format_u32(ptype: PropertyType, data: bytes) -> str:
    return _format_cell_list(data, 4)


def _format_u64(ptype: PropertyType, data: bytes) -> str:
    return _format_cell_list(data, 8)


def _format_string(ptype: PropertyType, data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", "replace") + "\n"


def _format_encoded_array(ptype: PropertyType, data: bytes) -> str:
    if ptype is PropertyType.REG:
        return " ".join(f"<0x{value:x}>" for value in _cells(data, 4))
    if ptype in _UNRENDERED_ARRAYS:
        return ""
    raise ValueError(_ERROR_TEXT.strip())


def _format_stringlist(ptype: PropertyType, data: bytes) -> str:
    parts = []
    for index, byte in enumerate(data):
        if byte:
            parts.append(chr(byte))
        elif index + 1 < len(data):
            parts.append(" | ")
    return "<" + "".join(parts) + ">"


_FORMATTERS: dict[ValueKind, Callable[[PropertyType, bytes], str]] = {
    ValueKind.EMPTY: _format_empty,
    ValueKind.U32: _format_u32,
    ValueKind.U64: _format_u64,
    ValueKind.STRING: _format_string,
    ValueKind.PROP_ENCODED_ARRAY: _format_encoded_array,
    ValueKind.PHANDLE: _format_empty,
    ValueKind.STRINGLIST: _format_stringlist,
}


def format_property_value(name: str, data: bytes) -> str:
    """Render a property value according to the kind its name implies."""
    ptype = get_property_type(name)
    kind = value_kinds(ptype)[0]
    return _FORMATTERS[kind](ptype, bytes(data))


def format_fdt(fdt: Fdt, offset: int = 0, depth: int = 0) -> str:
    """Render the node at `offset` and everything below it."""
    indent = "\t" * depth
    parts = [f"{indent}{fdt.node_name(offset)}{{\n"]
    for prop_offset in fdt.property_offsets(offset):
        name, data = fdt.property_at(prop_offset)
        parts.append(f"{indent}\t{name}\t:\t{format_property_value(name, data)}\n")
    for node in fdt.subnodes(offset):
        parts.append(format_fdt(fdt, node, depth + 1))
    parts.append(f"{indent}}}\n")
    return "".join(parts)
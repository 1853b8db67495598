import struct

import pytest

from rvkit.fdt import Fdt
from rvkit.formatting import format_fdt, format_property_value


def _pad(buf):
    buf.extend(b"\0" * (-len(buf) % 4))


def u32s(*values):
    return b"".join(struct.pack(">I", v) for v in values)


def build_dtb(root):
    strings = bytearray()
    name_offsets = {}
    structure = bytearray()

    def string_offset(name):
        if name not in name_offsets:
            name_offsets[name] = len(strings)
            strings.extend(name.encode() + b"\0")
        return name_offsets[name]

    def emit(node):
        name, props, children = node
        structure.extend(struct.pack(">I", 1))
        structure.extend(name.encode() + b"\0")
        _pad(structure)
        for pname, value in props:
            structure.extend(struct.pack(">III", 3, len(value), string_offset(pname)))
            structure.extend(value)
            _pad(structure)
        for child in children:
            emit(child)
        structure.extend(struct.pack(">I", 2))

    emit(root)
    structure.extend(struct.pack(">I", 9))
    off_struct = 56
    off_strings = off_struct + len(structure)
    total = off_strings + len(strings)
    header = struct.pack(
        ">10I", 0xD00DFEED, total, off_struct, off_strings, 40, 17, 16, 0,
        len(strings), len(structure),
    )
    return header + bytes(16) + bytes(structure) + bytes(strings)


TREE = (
    "",
    [("model", b"demo\0")],
    [("uart@1000", [("reg", u32s(0x1000, 0x100)), ("status", b"okay\0")], [])],
)


def test_reg_cells():
    assert format_property_value("reg", u32s(0x1000, 0x200)) == "<0x1000> <0x200>"


def test_u32_values():
    assert format_property_value("#size-cells", u32s(0)) == "<0x0>"
    assert format_property_value("phandle", u32s(1, 2)) == "<0x1 0x2>"


def test_u32_empty_value_only_opens():
    assert format_property_value("phandle", b"") == "<"


def test_stringlist():
    data = b"arm,psci\0arm,psci-0.2\0"
    assert format_property_value("compatible", data) == "<arm,psci | arm,psci-0.2>"
    assert format_property_value("compatible", b"a\0b") == "<a | b>"


def test_string():
    assert format_property_value("model", b"board\0junk") == "board\n"
    assert format_property_value("status", b"okay") == "okay\n"


@pytest.mark.parametrize(
    "name", ["dma-coherent", "foo", "interrupt-parent", "ranges", "interrupts", "gpio-map"]
)
def test_unrendered_values(name):
    assert format_property_value(name, u32s(1, 2, 3)) == ""


def test_format_whole_tree():
    fdt = Fdt(build_dtb(TREE))
    assert format_fdt(fdt) == (
        "{\n"
        "\tmodel\t:\tdemo\n\n"
        "\tuart@1000{\n"
        "\t\treg\t:\t<0x1000> <0x100>\n"
        "\t\tstatus\t:\tokay\n\n"
        "\t}\n"
        "}\n"
    )


def test_format_subtree_depth():
    fdt = Fdt(build_dtb(TREE))
    uart = fdt.first_subnode(0)
    text = format_fdt(fdt, uart, 2)
    assert text.startswith("\t\tuart@1000{\n")
    assert text.endswith("\t\t}\n")
    assert text in format_fdt(fdt, 0, 1)
    assert format_fdt(fdt, uart, 1) in format_fdt(fdt)
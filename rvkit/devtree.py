"""In-memory device tree built from a flattened blob, with lookups and value readers."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

from rvkit.fdt import Fdt
from rvkit.formatting import format_property_value

_DEVICE_TYPE = "device_type"
_COMPATIBLE = "compatible"


class FindBy(enum.Enum):
    """What a node search compares against."""

    NAME = "name"
    TYPE = "type"
    COMPATIBLE = "compatible"


@dataclass(frozen=True)
class Property:
    """A named property with its raw big-endian value."""

    name: str
    data: bytes = b""

    def as_string(self) -> str:
        """The value read as a NUL-terminated string."""
        return self.data.split(b"\0", 1)[0].decode("utf-8", "replace")

    def _read_array(self, n: int, code: str) -> list[int]:
        if not n:
            raise ValueError("at least one element must be requested")
        size = struct.calcsize(code)
        count = min(n, len(self.data) // size)
        return list(struct.unpack_from(f">{count}{code}", self.data))

    def _read_scalar(self, code: str) -> int:
        size = struct.calcsize(code)
        if len(self.data) < size:
            raise ValueError(
                f"property {self.name!r} holds {len(self.data)} bytes, {size} needed"
            )
        return struct.unpack_from(f">{code}", self.data)[0]

    def read_u8_array(self, n: int) -> list[int]:
        """Up to `n` bytes of the value."""
        return self._read_array(n, "B")

    def read_u16_array(self, n: int) -> list[int]:
        """Up to `n` big-endian 16-bit cells of the value."""
        return self._read_array(n, "H")

    def read_u32_array(self, n: int) -> list[int]:
        """Up to `n` big-endian 32-bit cells of the value."""
        return self._read_array(n, "I")

    def read_u64_array(self, n: int) -> list[int]:
        """Up to `n` big-endian 64-bit cells of the value."""
        return self._read_array(n, "Q")

    def read_u8(self) -> int:
        """The first byte of the value."""
        return self._read_scalar("B")

    def read_u16(self) -> int:
        """The first big-endian 16-bit cell of the value."""
        return self._read_scalar("H")

    def read_u32(self) -> int:
        """The first big-endian 32-bit cell of the value."""
        return self._read_scalar("I")

    def read_u64(self) -> int:
        """The first big-endian 64-bit cell of the value."""
        return self._read_scalar("Q")


def _compatible_entries(data: bytes) -> list[bytes]:
    # only NUL-terminated entries count as compatible strings
    return data.split(b"\0")[:-1]


@dataclass(eq=False)
class DeviceNode:
    """A node of the device tree."""

    name: str
    properties: list[Property] = field(default_factory=list)
    children: list[DeviceNode] = field(default_factory=list)
    parent: DeviceNode | None = field(default=None, repr=False)

    def add_child(self, child: DeviceNode) -> DeviceNode:
        """Attach `child` as the last child of this node and return it."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def first_child(self) -> DeviceNode | None:
        return self.children[0] if self.children else None

    @property
    def sibling(self) -> DeviceNode | None:
        """The next child of the same parent, if any."""
        if self.parent is None:
            return None
        siblings = self.parent.children
        position = next(i for i, node in enumerate(siblings) if node is self)
        return siblings[position + 1] if position + 1 < len(siblings) else None

    def next_in_order(self) -> DeviceNode | None:
        """The node after this one in a pre-order walk of the whole tree."""
        if self.children:
            return self.children[0]
        sibling = self.sibling
        if sibling is not None:
            return sibling
        node = self
        while node.parent is not None and node.parent.sibling is None:
            node = node.parent
        return node.parent.sibling if node.parent is not None else None

    def walk(self) -> Iterator[DeviceNode]:
        """Yield this node and every node after it in pre-order.

        The walk does not stop at the end of this node's subtree; it carries
        on through the rest of the tree.
        """
        node: DeviceNode | None = self
        while node is not None:
            yield node
            node = node.next_in_order()

    def _matches(self, search: str, way: FindBy) -> bool:
        if way is FindBy.NAME:
            return self.name == search
        if way is FindBy.TYPE:
            prop = self.find_property(_DEVICE_TYPE, len(_DEVICE_TYPE) + 1)
            return prop is not None and prop.as_string() == search
        prop = self.find_property(_COMPATIBLE, len(_COMPATIBLE))
        if prop is None:
            return False
        return search.encode("utf-8") in _compatible_entries(prop.data)

    def find(self, search: str | None, way: FindBy) -> DeviceNode | None:
        """First node from here on in pre-order that matches `search`."""
        way = FindBy(way)
        if search is None:
            return None
        return next((node for node in self.walk() if node._matches(search, way)), None)

    def find_by_name(self, name: str | None) -> DeviceNode | None:
        """First node from here on whose name equals `name`."""
        return self.find(name, FindBy.NAME)

    def find_by_type(self, type_name: str | None) -> DeviceNode | None:
        """First node from here on whose device_type equals `type_name`."""
        return self.find(type_name, FindBy.TYPE)

    def find_by_compatible(self, compatible: str | None) -> DeviceNode | None:
        """First node from here on listing `compatible` among its compatible strings."""
        return self.find(compatible, FindBy.COMPATIBLE)

    def find_property(self, name: str | None, n: int | None = None) -> Property | None:
        """The property whose name agrees with `name` in its first `n` characters.

        Without `n` the whole name must match.
        """
        if n is None and name is not None:
            n = len(name) + 1
        if not name or not n:
            return None
        return next(
            (prop for prop in self.properties if prop.name[:n] == name[:n]), None
        )

    def format(self, depth: int = 0) -> str:
        """Render this node and its subtree, indented by `depth` tabs."""
        indent = "\t" * depth
        parts = [f"{indent}{self.name}{{\n"]
        parts.extend(
            f"{indent}\t{prop.name}\t:\t{format_property_value(prop.name, prop.data)}\n"
            for prop in self.properties
        )
        parts.extend(child.format(depth + 1) for child in self.children)
        parts.append(f"{indent}}}\n")
        return "".join(parts)


def _build_node(fdt: Fdt, offset: int) -> DeviceNode:
    node = DeviceNode(fdt.node_name(offset))
    node.properties.extend(
        Property(*fdt.property_at(prop_offset))
        for prop_offset in fdt.property_offsets(offset)
    )
    for child_offset in fdt.subnodes(offset):
        node.add_child(_build_node(fdt, child_offset))
    return node


def build_tree(fdt: Fdt) -> DeviceNode:
    """Build the node tree of a validated blob and return its root."""
    fdt.check_header()
    return _build_node(fdt, 0)
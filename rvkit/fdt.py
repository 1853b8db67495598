"""Reader for flattened device tree (DTB) blobs."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator

FDT_MAGIC = 0xD00DFEED
FDT_TAGSIZE = 4
FDT_FIRST_SUPPORTED_VERSION = 0x02
FDT_LAST_SUPPORTED_VERSION = 0x11

FDT_V1_SIZE = 7 * 4
FDT_V2_SIZE = FDT_V1_SIZE + 4
FDT_V3_SIZE = FDT_V2_SIZE + 4
FDT_V16_SIZE = FDT_V3_SIZE
FDT_V17_SIZE = FDT_V16_SIZE + 4

_INT_MAX = 0x7FFFFFFF
# tag, value length and name offset precede the value of a property
_PROPERTY_HEADER_SIZE = 12

_HEADER_FIELDS = (
    "magic",
    "totalsize",
    "off_dt_struct",
    "off_dt_strings",
    "off_mem_rsvmap",
    "version",
    "last_comp_version",
    "boot_cpuid_phys",
    "size_dt_strings",
    "size_dt_struct",
)


class FdtErrorCode(enum.IntEnum):
    """Reasons a device tree operation can fail."""

    NOTFOUND = 1
    EXISTS = 2
    NOSPACE = 3
    BADOFFSET = 4
    BADPATH = 5
    BADPHANDLE = 6
    BADSTATE = 7
    TRUNCATED = 8
    BADMAGIC = 9
    BADVERSION = 10
    BADSTRUCTURE = 11
    BADLAYOUT = 12


class FdtError(Exception):
    """Raised when a blob is malformed or a lookup fails."""

    def __init__(self, code: FdtErrorCode, message: str | None = None) -> None:
        self.code = FdtErrorCode(code)
        super().__init__(message or self.code.name)


class Tag(enum.IntEnum):
    """Tokens of the structure block."""

    BEGIN_NODE = 0x1
    END_NODE = 0x2
    PROP = 0x3
    NOP = 0x4
    END = 0x9


def header_size_for_version(version: int) -> int:
    """Return the size of the header used by the given format version."""
    if version <= 1:
        return FDT_V1_SIZE
    if version <= 2:
        return FDT_V2_SIZE
    if version <= 3:
        return FDT_V3_SIZE
    if version <= 16:
        return FDT_V16_SIZE
    return FDT_V17_SIZE


def _round_up(value: int, alignment: int) -> int:
    return (value + alignment - 1) // alignment * alignment


def _check_off(hdrsize: int, totalsize: int, off: int) -> bool:
    return hdrsize <= off <= totalsize


def _check_block(hdrsize: int, totalsize: int, base: int, size: int) -> bool:
    return _check_off(hdrsize, totalsize, base) and _check_off(
        hdrsize, totalsize, base + size
    )


class Fdt:
    """A read-only view of a flattened device tree blob."""

    def __init__(self, blob: bytes) -> None:
        self._blob = bytes(blob)

    def _field(self, name: str) -> int:
        start = _HEADER_FIELDS.index(name) * 4
        if start + 4 > len(self._blob):
            raise FdtError(
                FdtErrorCode.TRUNCATED, f"header field {name} lies beyond the blob"
            )
        return struct.unpack_from(">I", self._blob, start)[0]

    def header_size(self) -> int:
        """Size of this blob's header, decided by its version."""
        return header_size_for_version(self._field("version"))

    def check_header(self) -> None:
        """Validate the header, raising FdtError if it is unusable."""
        if self._field("magic") != FDT_MAGIC:
            raise FdtError(FdtErrorCode.BADMAGIC)
        version = self._field("version")
        last_comp = self._field("last_comp_version")
        if version < FDT_FIRST_SUPPORTED_VERSION or last_comp > FDT_LAST_SUPPORTED_VERSION:
            raise FdtError(FdtErrorCode.BADVERSION)
        if version < last_comp:
            raise FdtError(FdtErrorCode.BADVERSION)
        hdrsize = header_size_for_version(version)
        totalsize = self._field("totalsize")
        if totalsize < hdrsize or totalsize > _INT_MAX or totalsize > len(self._blob):
            raise FdtError(FdtErrorCode.TRUNCATED)
        if not _check_off(hdrsize, totalsize, self._field("off_mem_rsvmap")):
            raise FdtError(FdtErrorCode.TRUNCATED, "memory reservation block out of bounds")
        if version < 17:
            struct_ok = _check_off(hdrsize, totalsize, self._field("off_dt_struct"))
        else:
            struct_ok = _check_block(
                hdrsize,
                totalsize,
                self._field("off_dt_struct"),
                self._field("size_dt_struct"),
            )
        if not struct_ok:
            raise FdtError(FdtErrorCode.TRUNCATED, "structure block out of bounds")
        if not _check_block(
            hdrsize,
            totalsize,
            self._field("off_dt_strings"),
            self._field("size_dt_strings"),
        ):
            raise FdtError(FdtErrorCode.TRUNCATED, "strings block out of bounds")

    def _slice(self, offset: int, length: int) -> bytes | None:
        if offset < 0 or length < 0:
            return None
        start = offset + self._field("off_dt_struct")
        end = start + length
        if end > self._field("totalsize") or end > len(self._blob):
            return None
        if self._field("version") >= 0x11 and offset + length > self._field("size_dt_struct"):
            return None
        return self._blob[start:end]

    def offset_bytes(self, offset: int, length: int) -> bytes:
        """Return `length` bytes of the structure block at `offset`."""
        data = self._slice(offset, length)
        if data is None:
            raise FdtError(
                FdtErrorCode.TRUNCATED,
                f"{length} bytes at structure offset {offset} are out of bounds",
            )
        return data

    def next_tag(self, offset: int) -> tuple[Tag, int]:
        """Read the tag at `offset`; return it with the offset of the next tag."""
        start = offset
        raw = self._slice(offset, FDT_TAGSIZE)
        if raw is None:
            raise FdtError(FdtErrorCode.TRUNCATED, "premature end of structure block")
        offset += FDT_TAGSIZE
        try:
            tag = Tag(int.from_bytes(raw, "big"))
        except ValueError:
            raise FdtError(FdtErrorCode.BADSTRUCTURE, "unknown tag") from None
        if tag is Tag.BEGIN_NODE:
            while True:
                byte = self._slice(offset, 1)
                offset += 1
                if byte is None:
                    raise FdtError(FdtErrorCode.BADSTRUCTURE, "unterminated node name")
                if byte == b"\0":
                    break
        elif tag is Tag.PROP:
            raw_len = self._slice(offset, 4)
            if raw_len is None:
                raise FdtError(FdtErrorCode.BADSTRUCTURE, "truncated property")
            length = int.from_bytes(raw_len, "big")
            offset += _PROPERTY_HEADER_SIZE - FDT_TAGSIZE + length
            if (
                self._field("version") < 0x10
                and length >= 8
                and (offset - length) % 8 != 0
            ):
                offset += 4
        if self._slice(start, offset - start) is None:
            raise FdtError(FdtErrorCode.BADSTRUCTURE, "premature end of structure block")
        return tag, _round_up(offset, FDT_TAGSIZE)

    def _check_tag_offset(self, offset: int, expected: Tag) -> int:
        if offset < 0 or offset % FDT_TAGSIZE:
            raise FdtError(FdtErrorCode.BADOFFSET)
        try:
            tag, next_offset = self.next_tag(offset)
        except FdtError:
            raise FdtError(FdtErrorCode.BADOFFSET) from None
        if tag is not expected:
            raise FdtError(FdtErrorCode.BADOFFSET)
        return next_offset

    def next_node(self, offset: int, depth: int | None = None) -> tuple[int, int | None]:
        """Find the node after `offset`; return its offset and the updated depth.

        A negative `offset` starts the walk at the root. When `depth` is given
        and the walk climbs above the starting level, the offset after the
        closing tag is returned together with the negative depth.
        """
        next_offset = 0
        if offset >= 0:
            next_offset = self._check_tag_offset(offset, Tag.BEGIN_NODE)
        while True:
            offset = next_offset
            try:
                tag, next_offset = self.next_tag(offset)
            except FdtError as exc:
                if exc.code is FdtErrorCode.TRUNCATED and depth is None:
                    raise FdtError(FdtErrorCode.NOTFOUND) from None
                raise
            if tag is Tag.BEGIN_NODE:
                if depth is not None:
                    depth += 1
                return offset, depth
            if tag is Tag.END_NODE:
                if depth is not None:
                    depth -= 1
                    if depth < 0:
                        return next_offset, depth
            elif tag is Tag.END:
                raise FdtError(FdtErrorCode.NOTFOUND)

    def _next_prop(self, offset: int) -> int:
        while True:
            tag, next_offset = self.next_tag(offset)
            if tag is Tag.END:
                raise FdtError(FdtErrorCode.BADSTRUCTURE)
            if tag is Tag.PROP:
                return offset
            if tag is not Tag.NOP:
                raise FdtError(FdtErrorCode.NOTFOUND)
            offset = next_offset

    def first_subnode(self, offset: int) -> int:
        """Offset of the first child of the node at `offset`."""
        try:
            node, depth = self.next_node(offset, 0)
        except FdtError:
            raise FdtError(FdtErrorCode.NOTFOUND) from None
        if depth != 1:
            raise FdtError(FdtErrorCode.NOTFOUND)
        return node

    def next_subnode(self, offset: int) -> int:
        """Offset of the next sibling of the node at `offset`."""
        depth: int | None = 1
        while True:
            try:
                offset, depth = self.next_node(offset, depth)
            except FdtError:
                raise FdtError(FdtErrorCode.NOTFOUND) from None
            if depth < 1:
                raise FdtError(FdtErrorCode.NOTFOUND)
            if depth == 1:
                return offset

    def subnodes(self, offset: int) -> Iterator[int]:
        """Yield the offsets of the children of the node at `offset`."""
        try:
            node = self.first_subnode(offset)
        except FdtError:
            return
        while True:
            yield node
            try:
                node = self.next_subnode(node)
            except FdtError:
                return

    def first_property_offset(self, nodeoffset: int) -> int:
        """Offset of the first property of the node at `nodeoffset`."""
        offset = self._check_tag_offset(nodeoffset, Tag.BEGIN_NODE)
        return self._next_prop(offset)

    def next_property_offset(self, offset: int) -> int:
        """Offset of the property after the one at `offset`."""
        offset = self._check_tag_offset(offset, Tag.PROP)
        return self._next_prop(offset)

    def property_offsets(self, nodeoffset: int) -> Iterator[int]:
        """Yield the offsets of the properties of the node at `nodeoffset`."""
        try:
            offset = self.first_property_offset(nodeoffset)
        except FdtError:
            return
        while True:
            yield offset
            try:
                offset = self.next_property_offset(offset)
            except FdtError:
                return

    def get_string(self, stroffset: int) -> str:
        """Return the string at `stroffset` in the strings block."""
        if stroffset < 0 or stroffset > self._field("size_dt_strings"):
            raise FdtError(FdtErrorCode.BADOFFSET, f"string offset {stroffset} out of range")
        start = self._field("off_dt_strings") + stroffset
        return self._c_string(start)

    def _c_string(self, start: int) -> str:
        end = self._blob.find(b"\0", start)
        if end < 0:
            end = len(self._blob)
        return self._blob[start:end].decode("utf-8", "replace")

    def node_name(self, offset: int) -> str:
        """Name of the node whose begin tag is at `offset`."""
        self._check_tag_offset(offset, Tag.BEGIN_NODE)
        return self._c_string(self._field("off_dt_struct") + offset + FDT_TAGSIZE)

    def property_at(self, offset: int) -> tuple[str, bytes]:
        """Return the name and raw value of the property at `offset`."""
        self._check_tag_offset(offset, Tag.PROP)
        header = self.offset_bytes(offset, _PROPERTY_HEADER_SIZE)
        _, length, nameoff = struct.unpack(">III", header)
        data = self.offset_bytes(offset + _PROPERTY_HEADER_SIZE, length)
        return self.get_string(nameoff), data
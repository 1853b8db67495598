"""Parsing of the Multiboot information structure and its memory map."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator
from dataclasses import dataclass

MULTIBOOT_MAGIC = 0x2BADB002

MULTIBOOT_INFO_FLAG_MEM = 1 << 0
MULTIBOOT_INFO_FLAG_BOOT_DEVICE = 1 << 1
MULTIBOOT_INFO_FLAG_CMD = 1 << 2
MULTIBOOT_INFO_FLAG_MOD = 1 << 3
MULTIBOOT_INFO_FLAG_BYTE_28_TYPE1 = 1 << 4
MULTIBOOT_INFO_FLAG_BYTE_28_TYPE2 = 1 << 5
MULTIBOOT_INFO_FLAG_MMAP = 1 << 6
MULTIBOOT_INFO_FLAG_DRIVER = 1 << 7
MULTIBOOT_INFO_FLAG_CFG_TABLE = 1 << 8
MULTIBOOT_INFO_FLAG_BOOTLOADER_NAME = 1 << 9
MULTIBOOT_INFO_FLAG_APM_TBALE = 1 << 10
MULTIBOOT_INFO_FLAG_VBE = 1 << 11
MULTIBOOT_INFO_FLAG_FRAMEBUFFER = 1 << 12

MULTIBOOT_FRAMEBUFFER_TYPE_INDEXED = 0
MULTIBOOT_FRAMEBUFFER_TYPE_RGB = 1
MULTIBOOT_FRAMEBUFFER_TYPE_EGA_TEXT = 2

_MMAP_ENTRY = struct.Struct("<IQQI")
# the size field of an entry does not count itself
_MMAP_ENTRY_BODY = _MMAP_ENTRY.size - 4

_INFO = struct.Struct("<IIIII II 4I II II III IIHHHH QIIIBB 6s")
MULTIBOOT_INFO_SIZE = _INFO.size


def is_multiboot_magic(value: int) -> bool:
    """True when `value` is the magic a Multiboot loader leaves behind."""
    return value == MULTIBOOT_MAGIC


class MemoryType(enum.IntEnum):
    """Kinds of memory region reported in the memory map."""

    AVAILABLE = 1
    RESERVED = 2
    ACPI_RECLAIMABLE = 3
    NVS = 4
    BADRAM = 5


@dataclass(frozen=True)
class MmapEntry:
    """One region of the memory map."""

    size: int
    addr: int
    length: int
    type: int

    @property
    def end(self) -> int:
        return self.addr + self.length

    @property
    def memory_type(self) -> MemoryType | None:
        """The region kind, or None for a value the format does not name."""
        try:
            return MemoryType(self.type)
        except ValueError:
            return None

    @property
    def available(self) -> bool:
        return self.type == MemoryType.AVAILABLE


def iter_mmap_entries(data: bytes) -> Iterator[MmapEntry]:
    """Yield the entries of a raw memory map buffer."""
    data = bytes(data)
    offset = 0
    while offset < len(data):
        if offset + 4 > len(data):
            raise ValueError(f"truncated memory map entry at offset {offset}")
        (size,) = struct.unpack_from("<I", data, offset)
        if size < _MMAP_ENTRY_BODY:
            raise ValueError(f"memory map entry at offset {offset} is too small: {size}")
        if offset + 4 + size > len(data):
            raise ValueError(f"memory map entry at offset {offset} runs past the buffer")
        _, addr, length, mem_type = _MMAP_ENTRY.unpack_from(data, offset)
        yield MmapEntry(size, addr, length, mem_type)
        offset += 4 + size


@dataclass(frozen=True)
class MultibootInfo:
    """The information structure handed over by a Multiboot loader."""

    flags: int
    mem_lower: int
    mem_upper: int
    boot_device: int
    cmdline: int
    mods_count: int
    mods_addr: int
    syms: tuple[int, int, int, int]
    mmap_length: int
    mmap_addr: int
    drives_length: int
    drives_addr: int
    config_table: int
    boot_loader_name: int
    apm_table: int
    vbe_control_info: int
    vbe_mode_info: int
    vbe_mode: int
    vbe_interface_seg: int
    vbe_interface_off: int
    vbe_interface_len: int
    framebuffer_addr: int
    framebuffer_pitch: int
    framebuffer_width: int
    framebuffer_height: int
    framebuffer_bpp: int
    framebuffer_type: int
    framebuffer_color_info: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> MultibootInfo:
        """Parse the packed structure from the start of `data`."""
        data = bytes(data)
        if len(data) < MULTIBOOT_INFO_SIZE:
            raise ValueError(
                f"multiboot info needs {MULTIBOOT_INFO_SIZE} bytes, got {len(data)}"
            )
        values = _INFO.unpack_from(data)
        head, syms, tail = values[:7], values[7:11], values[11:]
        return cls(*head, tuple(syms), *tail)

    def has_flag(self, flag: int) -> bool:
        """True when every bit of `flag` is set in the flags field."""
        return bool(flag) and self.flags & flag == flag

    @property
    def framebuffer_palette(self) -> tuple[int, int]:
        """Palette address and colour count of an indexed framebuffer."""
        return struct.unpack_from("<IH", self.framebuffer_color_info)

    @property
    def framebuffer_rgb_fields(self) -> tuple[int, int, int, int, int, int]:
        """Red, green and blue field positions and mask sizes of an RGB framebuffer."""
        return tuple(self.framebuffer_color_info[:6])  # type: ignore[return-value]
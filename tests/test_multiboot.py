import struct

import pytest

from rvkit.multiboot import (
    MULTIBOOT_INFO_FLAG_CMD,
    MULTIBOOT_INFO_FLAG_FRAMEBUFFER,
    MULTIBOOT_INFO_FLAG_MEM,
    MULTIBOOT_INFO_FLAG_MMAP,
    MULTIBOOT_INFO_FLAG_VBE,
    MULTIBOOT_INFO_SIZE,
    MULTIBOOT_MAGIC,
    MemoryType,
    MmapEntry,
    MultibootInfo,
    is_multiboot_magic,
    iter_mmap_entries,
)


def _mmap_entry(addr, length, mem_type, size=20):
    body = struct.pack("<QQI", addr, length, mem_type)
    return struct.pack("<I", size) + body.ljust(size, b"\0")


def _info_bytes(flags, color_info=b"\0" * 6, **overrides):
    fields = dict(
        mem_lower=640,
        mem_upper=130048,
        boot_device=0x8000FFFF,
        cmdline=0x10000,
        mods_count=2,
        mods_addr=0x20000,
        syms=(1, 2, 3, 4),
        mmap_length=48,
        mmap_addr=0x9000,
        drives_length=0,
        drives_addr=0,
        config_table=0,
        boot_loader_name=0x30000,
        apm_table=0,
        vbe=(11, 12, 13, 14, 15, 16),
        fb=(0xFD000000, 4096, 1024, 768, 32, 1),
    )
    fields.update(overrides)
    return (
        struct.pack(
            "<IIIII II",
            flags,
            fields["mem_lower"],
            fields["mem_upper"],
            fields["boot_device"],
            fields["cmdline"],
            fields["mods_count"],
            fields["mods_addr"],
        )
        + struct.pack("<4I", *fields["syms"])
        + struct.pack(
            "<II II III",
            fields["mmap_length"],
            fields["mmap_addr"],
            fields["drives_length"],
            fields["drives_addr"],
            fields["config_table"],
            fields["boot_loader_name"],
            fields["apm_table"],
        )
        + struct.pack("<IIHHHH", *fields["vbe"])
        + struct.pack("<QIIIBB", *fields["fb"])
        + color_info
    )


def test_magic_recognised():
    assert is_multiboot_magic(MULTIBOOT_MAGIC)
    assert is_multiboot_magic(0x2BADB002)
    assert not is_multiboot_magic(MULTIBOOT_MAGIC + 1)


def test_info_size_matches_packed_layout():
    data = _info_bytes(MULTIBOOT_INFO_FLAG_MEM)
    assert MULTIBOOT_INFO_SIZE == len(data)
    info = MultibootInfo.from_bytes(data[:MULTIBOOT_INFO_SIZE])
    assert info.flags == MULTIBOOT_INFO_FLAG_MEM
    assert info.framebuffer_type == 1
    with pytest.raises(ValueError):
        MultibootInfo.from_bytes(data[: MULTIBOOT_INFO_SIZE - 1])


def test_from_bytes_reads_fields():
    flags = MULTIBOOT_INFO_FLAG_MEM | MULTIBOOT_INFO_FLAG_MMAP
    info = MultibootInfo.from_bytes(_info_bytes(flags))
    assert info.flags == flags
    assert info.mem_lower == 640
    assert info.mem_upper == 130048
    assert info.boot_device == 0x8000FFFF
    assert info.mods_count == 2
    assert info.syms == (1, 2, 3, 4)
    assert info.mmap_length == 48
    assert info.mmap_addr == 0x9000
    assert info.boot_loader_name == 0x30000
    assert (
        info.vbe_control_info,
        info.vbe_mode_info,
        info.vbe_mode,
        info.vbe_interface_seg,
        info.vbe_interface_off,
        info.vbe_interface_len,
    ) == (11, 12, 13, 14, 15, 16)
    assert info.framebuffer_addr == 0xFD000000
    assert info.framebuffer_width == 1024
    assert info.framebuffer_height == 768
    assert info.framebuffer_bpp == 32
    assert info.framebuffer_type == 1


def test_from_bytes_ignores_trailing_data():
    data = _info_bytes(MULTIBOOT_INFO_FLAG_CMD)
    assert MultibootInfo.from_bytes(data + b"extra") == MultibootInfo.from_bytes(data)


def test_from_bytes_rejects_short_buffer():
    data = _info_bytes(0)
    with pytest.raises(ValueError):
        MultibootInfo.from_bytes(data[:-1])


def test_has_flag():
    info = MultibootInfo.from_bytes(
        _info_bytes(MULTIBOOT_INFO_FLAG_MEM | MULTIBOOT_INFO_FLAG_FRAMEBUFFER)
    )
    assert info.has_flag(MULTIBOOT_INFO_FLAG_MEM)
    assert info.has_flag(MULTIBOOT_INFO_FLAG_FRAMEBUFFER)
    assert not info.has_flag(MULTIBOOT_INFO_FLAG_MMAP)
    assert not info.has_flag(MULTIBOOT_INFO_FLAG_MEM | MULTIBOOT_INFO_FLAG_VBE)
    assert not info.has_flag(0)


def test_framebuffer_palette_view():
    color = struct.pack("<IH", 0x50000, 256)
    info = MultibootInfo.from_bytes(_info_bytes(0, color_info=color))
    assert info.framebuffer_palette == (0x50000, 256)


def test_framebuffer_rgb_view():
    color = bytes([16, 8, 8, 8, 0, 8])
    info = MultibootInfo.from_bytes(_info_bytes(0, color_info=color))
    assert info.framebuffer_rgb_fields == (16, 8, 8, 8, 0, 8)


def test_mmap_entries_parsed_in_order():
    data = (
        _mmap_entry(0, 0x9FC00, 1)
        + _mmap_entry(0x9FC00, 0x400, 2)
        + _mmap_entry(0x100000, 0x7EE0000, 3)
    )
    entries = list(iter_mmap_entries(data))
    assert entries == [
        MmapEntry(20, 0, 0x9FC00, 1),
        MmapEntry(20, 0x9FC00, 0x400, 2),
        MmapEntry(20, 0x100000, 0x7EE0000, 3),
    ]
    assert [e.memory_type for e in entries] == [
        MemoryType.AVAILABLE,
        MemoryType.RESERVED,
        MemoryType.ACPI_RECLAIMABLE,
    ]
    assert entries[0].available and not entries[1].available
    assert entries[0].end == entries[1].addr


def test_mmap_entry_size_decides_stride():
    data = _mmap_entry(0x1000, 0x2000, 4, size=28) + _mmap_entry(0x5000, 0x1000, 5)
    entries = list(iter_mmap_entries(data))
    assert [e.addr for e in entries] == [0x1000, 0x5000]
    assert entries[0].size == 28
    assert entries[0].memory_type is MemoryType.NVS
    assert entries[1].memory_type is MemoryType.BADRAM


def test_mmap_unknown_type_has_no_memory_type():
    (entry,) = iter_mmap_entries(_mmap_entry(0, 0x1000, 9))
    assert entry.type == 9
    assert entry.memory_type is None
    assert not entry.available


def test_empty_mmap_yields_nothing():
    assert list(iter_mmap_entries(b"")) == []


def test_mmap_truncated_entry_raises():
    data = _mmap_entry(0, 0x1000, 1)
    with pytest.raises(ValueError):
        list(iter_mmap_entries(data[:-1]))


def test_mmap_undersized_entry_raises():
    data = struct.pack("<I", 8) + b"\0" * 8
    with pytest.raises(ValueError):
        list(iter_mmap_entries(data))


def test_mmap_dangling_bytes_raise():
    data = _mmap_entry(0, 0x1000, 1) + b"\x01\x02"
    with pytest.raises(ValueError):
        list(iter_mmap_entries(data))
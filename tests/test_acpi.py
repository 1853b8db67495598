import struct

import pytest

from rvkit.acpi import (
    RSDP_SIGNATURE,
    AcpiTable,
    is_final_controller,
    madt_controllers,
    next_controller_offset,
    probe_rsdp,
    signature_matches,
    table_type_from_signature,
)

LOW_MEMORY_SIZE = 0x100000


def _memory_with(*offsets):
    memory = bytearray(LOW_MEMORY_SIZE)
    for offset in offsets:
        memory[offset : offset + len(RSDP_SIGNATURE)] = RSDP_SIGNATURE
    return memory


def _madt(controllers):
    body = b"".join(bytes([kind, len(payload) + 2]) + payload for kind, payload in controllers)
    length = 44 + len(body)
    header = b"APIC" + struct.pack("<I", length) + bytes(36)
    return header + body


def test_probe_finds_pointer_in_bios_area():
    memory = _memory_with(0xE0010)
    assert probe_rsdp(memory) == 0xE0010


def test_probe_adds_base_address():
    memory = _memory_with(0xE0010)
    assert probe_rsdp(memory, 0x1000) == 0x1000 + 0xE0010


def test_probe_prefers_first_region():
    memory = _memory_with(0x80020, 0xF0000)
    assert probe_rsdp(memory) == 0x80020


def test_probe_ignores_unaligned_pointer():
    memory = _memory_with(0xE0008)
    assert probe_rsdp(memory) is None


def test_probe_ignores_pointer_past_first_kilobyte():
    memory = _memory_with(0x80400)
    assert probe_rsdp(memory) is None


def test_probe_empty_memory():
    assert probe_rsdp(bytes(LOW_MEMORY_SIZE)) is None


def test_signature_matches_first_four_bytes():
    assert signature_matches(b"FACPxxxx", "FACP")
    assert not signature_matches(b"FACS", "FACP")
    assert not signature_matches(b"FA", "FA")


@pytest.mark.parametrize("table", [AcpiTable.APIC, AcpiTable.XSDT, AcpiTable.SRAT, AcpiTable.RAS2])
def test_table_type_from_signature(table):
    header = table.name.encode("ascii") + bytes(32)
    assert table_type_from_signature(header) is table


def test_dsdt_signature_resolves_to_dsdt():
    assert table_type_from_signature(b"DSDT") is AcpiTable.DSDT


def test_ecdt_signature_is_not_recognised():
    assert table_type_from_signature(b"ECDT") is None


def test_unknown_signature():
    assert table_type_from_signature(b"ZZZZ") is None


def test_madt_controller_walk():
    madt = _madt([(0, bytes(6)), (1, bytes(10))])
    entries = list(madt_controllers(madt))
    assert [kind for kind, _ in entries] == [0, 1]
    assert [len(data) for _, data in entries] == [8, 12]


def test_next_and_final_controller():
    madt = _madt([(0, bytes(6)), (1, bytes(10))])
    second = next_controller_offset(madt, 44)
    assert second == 44 + 8
    assert not is_final_controller(madt, 44)
    assert is_final_controller(madt, second)


def test_madt_without_controllers_yields_nothing():
    assert list(madt_controllers(_madt([]))) == []


def test_malformed_controller_length_raises():
    madt = bytearray(_madt([(0, bytes(6))]))
    madt[45] = 0
    with pytest.raises(ValueError):
        list(madt_controllers(bytes(madt)))


def test_short_table_raises():
    with pytest.raises(ValueError):
        is_final_controller(b"APIC", 0)
"""Locating the ACPI root pointer, naming ACPI tables and walking the MADT."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator

ACPI_SIG_LENGTH = 4
RSDP_SIGNATURE = b"RSD PTR "
_RSDP_STEP = 16
# the first kilobyte of the extended BIOS data area, then the BIOS ROM area
_SEARCH_REGIONS = (
    (0x00080000, 0x00080000 + 0x400),
    (0x000E0000, 0x000FFFFF + 1),
)
MADT_FIRST_CONTROLLER_OFFSET = 44
_TABLE_LENGTH_OFFSET = 4


class AcpiTable(enum.IntEnum):
    """ACPI system description tables."""

    APIC = 0
    BERT = 1
    BGRT = 2
    CCEL = 3
    CPEP = 4
    DSDT = 5
    ECDT = 6
    EINJ = 7
    ERST = 8
    FACP = 9
    FACS = 10
    FPDT = 11
    GTDT = 12
    HEST = 13
    MISC = 14
    MSCT = 15
    MPST = 16
    NFIT = 17
    OEMx = 18
    PCCT = 19
    PHAT = 20
    PMTT = 21
    PPTT = 22
    PSDT = 23
    RASF = 24
    RAS2 = 25
    RSDT = 26
    SBST = 27
    SDEV = 28
    SLIT = 29
    SRAT = 30
    SSDT = 31
    SVKL = 32
    XSDT = 33


# The ECDT entry carries the DSDT signature, so an ECDT header is never
# recognised and a DSDT header always resolves to DSDT, which comes first.
_SIGNATURES: tuple[tuple[AcpiTable, bytes], ...] = tuple(
    (table, b"DSDT" if table is AcpiTable.ECDT else table.name.encode("ascii"))
    for table in AcpiTable
)


def _as_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(value, str):
        return value.encode("ascii")
    return bytes(value)


def signature_matches(data: bytes | str, signature: bytes | str) -> bool:
    """True when the first four characters of `data` equal those of `signature`."""
    head = _as_bytes(data)[:ACPI_SIG_LENGTH]
    expected = _as_bytes(signature)[:ACPI_SIG_LENGTH]
    return len(head) == ACPI_SIG_LENGTH and head == expected


def probe_rsdp(memory: bytes | bytearray | memoryview, base: int = 0) -> int | None:
    """Find the RSDP in low memory and return its address, or None.

    `memory` holds the low memory of the machine starting at address `base`;
    the returned address is `base` plus the offset where the pointer was found.
    """
    data = bytes(memory)
    for start, end in _SEARCH_REGIONS:
        for offset in range(start, end, _RSDP_STEP):
            if data[offset : offset + len(RSDP_SIGNATURE)] == RSDP_SIGNATURE:
                return base + offset
    return None


def table_type_from_signature(header: bytes | str) -> AcpiTable | None:
    """The table whose signature opens `header`, or None if none matches."""
    for table, signature in _SIGNATURES:
        if signature_matches(header, signature):
            return table
    return None


def _table_length(madt: bytes) -> int:
    if len(madt) < _TABLE_LENGTH_OFFSET + 4:
        raise ValueError("table is too short to hold its length field")
    return struct.unpack_from("<I", madt, _TABLE_LENGTH_OFFSET)[0]


def _controller_length(madt: bytes, offset: int) -> int:
    if offset < 0 or offset + 2 > len(madt):
        raise ValueError(f"no controller header at offset {offset}")
    return madt[offset + 1]


def next_controller_offset(madt: bytes, offset: int) -> int:
    """Offset of the interrupt controller structure following the one at `offset`."""
    return offset + _controller_length(bytes(madt), offset)


def is_final_controller(madt: bytes, offset: int) -> bool:
    """True when the structure at `offset` ends exactly where the table ends."""
    madt = bytes(madt)
    return _table_length(madt) == offset + _controller_length(madt, offset)


def madt_controllers(
    madt: bytes, first_offset: int = MADT_FIRST_CONTROLLER_OFFSET
) -> Iterator[tuple[int, bytes]]:
    """Yield the type and raw bytes of each interrupt controller structure."""
    madt = bytes(madt)
    length = _table_length(madt)
    offset = first_offset
    if offset >= length:
        return
    while True:
        size = _controller_length(madt, offset)
        end = offset + size
        if size < 2 or end > length or end > len(madt):
            raise ValueError(f"malformed controller structure at offset {offset}")
        yield madt[offset], madt[offset:end]
        if is_final_controller(madt, offset):
            return
        offset = end
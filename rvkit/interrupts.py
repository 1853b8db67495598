"""GICv2 interrupt ranges, interrupt sources and AArch64 trap information fields."""

from __future__ import annotations

from dataclasses import dataclass

GIC_V2_NR_CPU_MAX = 8

GIC_V2_SGI_START = 0
GIC_V2_SGI_END = 15
GIC_V2_PPI_START = 16
GIC_V2_PPI_END = 31
GIC_V2_SPI_START = 32
GIC_V2_SPI_END = 1019

# distributor control and type register fields
GIC_V2_GICD_CTLR_GROUP0_ENABLE = 0x1
GIC_V2_GICD_CTLR_GROUP1_ENABLE = 0x2
GIC_V2_GICD_TYPER_IT_LINE_MASK = 0x1F
GIC_V2_GICD_TYPER_CPU_NUM_SHIFT = 5
GIC_V2_GICD_TYPER_CPU_NUM_MASK = 0x7 << GIC_V2_GICD_TYPER_CPU_NUM_SHIFT
GIC_V2_GICD_TYPER_SECURE_EXT = 1 << 10
GIC_V2_GICD_TYPER_LSPI_SHIFT = 11
GIC_V2_GICD_TYPER_LSPI_MASK = 0x1F << GIC_V2_GICD_TYPER_LSPI_SHIFT
GIC_V2_IPRIORITYR_MASK = 0xFF
GIC_V2_ITARGETSR_MASK = 0xFF
GIC_V2_GICD_1_N = 1
GIC_V2_GICD_EDGE_TRIGGER = 1 << 1

# software generated interrupt register
GIC_V2_GICD_SGIR_TARGET_LIST_FLITER_SHIFT = 24
GIC_V2_GICD_SGIR_TARGET_LIST_FLITER_MASK = 0x3 << GIC_V2_GICD_SGIR_TARGET_LIST_FLITER_SHIFT
GIC_V2_GICD_SGIR_TARGET_LIST_SHIFT = 16
GIC_V2_GICD_SGIR_TARGET_LIST_MASK = 0xFF << GIC_V2_GICD_SGIR_TARGET_LIST_SHIFT
GIC_V2_GICD_SGIR_TARGET_SPECIFIED = 0
GIC_V2_GICD_SGIR_TARGET_OTHER = 1 << GIC_V2_GICD_SGIR_TARGET_LIST_FLITER_SHIFT
GIC_V2_GICD_SGIR_TARGET_SELF = 2 << GIC_V2_GICD_SGIR_TARGET_LIST_FLITER_SHIFT
_SGIR_TARGET_MODES = frozenset(
    {
        GIC_V2_GICD_SGIR_TARGET_SPECIFIED,
        GIC_V2_GICD_SGIR_TARGET_OTHER,
        GIC_V2_GICD_SGIR_TARGET_SELF,
    }
)

# CPU interface fields
GIC_V2_GICC_CTLR_ENABLE_GROUP1 = 0x1
GIC_V2_GICC_CTLR_FIQ_BYPASS_DIS_GROUP1 = 0x1 << 5
GIC_V2_GICC_CTLR_IRQ_BYPASS_DIS_GROUP1 = 0x1 << 6
GIC_V2_GICC_CTLR_EOI_MODE_NON_SECURE = 0x1 << 9
GIC_V2_GICC_IAR_INT_ID_MASK = 0x3FF
GIC_V2_GICC_IAR_CPU_ID_SHIFT = 10
GIC_V2_GICC_IAR_CPU_ID_MASK = 0x7 << GIC_V2_GICC_IAR_CPU_ID_SHIFT
GIC_V2_GICC_EOIR_INT_ID_MASK = 0x3FF
GIC_V2_GICC_EOIR_CPU_ID_SHIFT = 10
GIC_V2_GICC_EOIR_CPU_ID_MASK = 0x7 << GIC_V2_GICC_EOIR_CPU_ID_SHIFT

# trap numbering: GIC interrupts sit above the synchronous traps
NR_IRQ = 1084
AARCH64_IRQ_OFFSET = 64

AARCH64_TRAP_ID_MASK = 0x2FF
AARCH64_TRAP_SRC_MASK = 0x1FFF
AARCH64_TRAP_CPU_MASK = 0x1C00
AARCH64_TRAP_CPU_SHIFT = 10
TRAP_TYPE_SYNC = 1
TRAP_TYPE_IRQ = 2
TRAP_TYPE_FIQ = 3

AARCH64_TRAP_SRC_EL_SHIFT = 56
AARCH64_TRAP_SRC_EL_MASK = 0xF << AARCH64_TRAP_SRC_EL_SHIFT
AARCH64_TRAP_SRC_EL_0 = 0
AARCH64_TRAP_SRC_EL_1 = 1

AARCH64_ESR_EC_SHIFT = 26
AARCH64_ESR_IL_SHIFT = 25
AARCH64_ESR_EC_MASK = 0xFF << AARCH64_ESR_EC_SHIFT

_IRQ_ID_BITS = 10
_CPU_ID_BITS = 3


def is_sgi(irq: int) -> bool:
    """True for a software generated interrupt number."""
    return GIC_V2_SGI_START <= irq <= GIC_V2_SGI_END


def is_ppi(irq: int) -> bool:
    """True for a private peripheral interrupt number."""
    return GIC_V2_PPI_START <= irq <= GIC_V2_PPI_END


def is_spi(irq: int) -> bool:
    """True for a shared peripheral interrupt number."""
    return GIC_V2_SPI_START <= irq <= GIC_V2_SPI_END


@dataclass(frozen=True)
class IrqSource:
    """An acknowledged interrupt: its id and the CPU that raised it (for SGIs)."""

    irq_id: int = 0
    cpu_id: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.irq_id < 1 << _IRQ_ID_BITS:
            raise ValueError(f"irq_id={self.irq_id} does not fit in {_IRQ_ID_BITS} bits")
        if not 0 <= self.cpu_id < 1 << _CPU_ID_BITS:
            raise ValueError(f"cpu_id={self.cpu_id} does not fit in {_CPU_ID_BITS} bits")

    @classmethod
    def from_int(cls, value: int) -> IrqSource:
        """Split a raw acknowledge value; bits above the two fields are ignored."""
        return cls(
            irq_id=value & GIC_V2_GICC_IAR_INT_ID_MASK,
            cpu_id=(value & GIC_V2_GICC_IAR_CPU_ID_MASK) >> GIC_V2_GICC_IAR_CPU_ID_SHIFT,
        )

    def to_int(self) -> int:
        return self.irq_id | self.cpu_id << _IRQ_ID_BITS


def irq_to_trap_id(irq: int) -> int:
    """Trap number under which a GIC interrupt is dispatched."""
    return irq + AARCH64_IRQ_OFFSET


def trap_id_to_irq(trap: int) -> int:
    """GIC interrupt number of a trap number."""
    return trap - AARCH64_IRQ_OFFSET


def trap_id(trap_info: int) -> int:
    """Trap number held in a trap frame's info word."""
    return trap_info & AARCH64_TRAP_ID_MASK


def trap_src(trap_info: int) -> int:
    """Interrupt source (id and CPU) held in a trap frame's info word."""
    return trap_info & AARCH64_TRAP_SRC_MASK


def trap_cpu(trap_info: int) -> int:
    """Source CPU held in a trap frame's info word."""
    return (trap_info & AARCH64_TRAP_CPU_MASK) >> AARCH64_TRAP_CPU_SHIFT


def trap_src_el(trap_info: int) -> int:
    """Exception level the trap was taken from."""
    return (trap_info & AARCH64_TRAP_SRC_EL_MASK) >> AARCH64_TRAP_SRC_EL_SHIFT


def esr_exception_class(esr: int) -> int:
    """Exception class field of a syndrome register value."""
    return (esr & AARCH64_ESR_EC_MASK) >> AARCH64_ESR_EC_SHIFT


def sgir_value(irq: int, target_mode: int, target_list: int = 0) -> int:
    """Value to write to GICD_SGIR to raise software interrupt `irq`.

    `target_mode` is one of the GIC_V2_GICD_SGIR_TARGET_* values and
    `target_list` a bit mask of CPU interfaces, used with the specified mode.
    """
    if not is_sgi(irq):
        raise ValueError(f"{irq} is not a software generated interrupt")
    if target_mode not in _SGIR_TARGET_MODES:
        raise ValueError(f"unknown SGI target mode {target_mode:#x}")
    if not 0 <= target_list <= 0xFF:
        raise ValueError(f"target list {target_list:#x} does not fit in 8 bits")
    return (
        target_mode
        | (target_list << GIC_V2_GICD_SGIR_TARGET_LIST_SHIFT)
        & GIC_V2_GICD_SGIR_TARGET_LIST_MASK
        | irq
    )
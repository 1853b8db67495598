import pytest

from rvkit import interrupts as gic
from rvkit.interrupts import (
    IrqSource,
    esr_exception_class,
    irq_to_trap_id,
    is_ppi,
    is_sgi,
    is_spi,
    sgir_value,
    trap_cpu,
    trap_id,
    trap_id_to_irq,
    trap_src,
    trap_src_el,
)


@pytest.mark.parametrize(
    "irq, sgi, ppi, spi",
    [
        (0, True, False, False),
        (15, True, False, False),
        (16, False, True, False),
        (31, False, True, False),
        (32, False, False, True),
        (1019, False, False, True),
        (1020, False, False, False),
    ],
)
def test_irq_ranges(irq, sgi, ppi, spi):
    assert (is_sgi(irq), is_ppi(irq), is_spi(irq)) == (sgi, ppi, spi)


def test_ranges_do_not_overlap():
    for irq in range(-2, 1030):
        assert sum((is_sgi(irq), is_ppi(irq), is_spi(irq))) <= 1


@pytest.mark.parametrize("irq_id, cpu_id", [(0, 0), (1019, 0), (3, 7), (1023, 5)])
def test_irq_source_round_trip(irq_id, cpu_id):
    source = IrqSource(irq_id, cpu_id)
    assert IrqSource.from_int(source.to_int()) == source


def test_irq_source_from_int_ignores_high_bits():
    raw = IrqSource(42, 2).to_int()
    assert IrqSource.from_int(raw | (1 << 40)) == IrqSource(42, 2)


def test_irq_source_rejects_out_of_range():
    with pytest.raises(ValueError):
        IrqSource(irq_id=1 << 10)
    with pytest.raises(ValueError):
        IrqSource(cpu_id=8)


def test_irq_source_matches_trap_masks():
    raw = IrqSource(30, 6).to_int()
    assert trap_cpu(raw) == 6
    assert trap_src(raw) == raw


def test_trap_id_offset():
    assert irq_to_trap_id(0) == gic.AARCH64_IRQ_OFFSET
    for irq in (0, 15, 32, 1019):
        assert trap_id_to_irq(irq_to_trap_id(irq)) == irq


def test_trap_id_masks_info():
    info = (gic.AARCH64_TRAP_SRC_EL_1 << gic.AARCH64_TRAP_SRC_EL_SHIFT) | 0x1FF
    assert trap_id(info) == 0x1FF & gic.AARCH64_TRAP_ID_MASK
    assert trap_src_el(info) == gic.AARCH64_TRAP_SRC_EL_1


def test_trap_src_el_zero():
    assert trap_src_el(0x2FF) == gic.AARCH64_TRAP_SRC_EL_0


def test_esr_exception_class():
    assert esr_exception_class(0x3C << 26 | 0x1234) == 0x3C
    assert esr_exception_class(0x15 << 26 | 1 << 25) == 0x15


def test_sgir_self():
    value = sgir_value(3, gic.GIC_V2_GICD_SGIR_TARGET_SELF)
    assert value == gic.GIC_V2_GICD_SGIR_TARGET_SELF | 3


def test_sgir_specified_targets():
    value = sgir_value(7, gic.GIC_V2_GICD_SGIR_TARGET_SPECIFIED, 0b101)
    targets = (
        value & gic.GIC_V2_GICD_SGIR_TARGET_LIST_MASK
    ) >> gic.GIC_V2_GICD_SGIR_TARGET_LIST_SHIFT
    assert targets == 0b101
    assert value & 0xF == 7
    assert value & gic.GIC_V2_GICD_SGIR_TARGET_LIST_FLITER_MASK == 0


def test_sgir_rejects_bad_input():
    with pytest.raises(ValueError):
        sgir_value(16, gic.GIC_V2_GICD_SGIR_TARGET_OTHER)
    with pytest.raises(ValueError):
        sgir_value(1, 3 << 24)
    with pytest.raises(ValueError):
        sgir_value(1, gic.GIC_V2_GICD_SGIR_TARGET_SPECIFIED, 0x100)
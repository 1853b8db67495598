import pytest

from rvkit import registers as reg
from rvkit.registers import EsrClass, Mpidr, esr_class, esr_il, esr_iss, tcr_ips_bits


def test_esr_class_svc():
    assert esr_class(0x18 << 26) is EsrClass.SVC_AARCH64


@pytest.mark.parametrize("cls", list(EsrClass))
def test_esr_class_round_trip(cls):
    esr = cls.esr_bits | reg.ESR_EL1_IL | 0x123
    assert esr_class(esr) is cls
    assert esr_iss(esr) == 0x123
    assert esr_il(esr) is True


def test_esr_class_unknown_code():
    assert esr_class(0x2 << 26) is None


def test_esr_iss_and_il():
    assert esr_iss(reg.ESR_EL1_MASK | reg.ESR_EL1_ISS_MASK) == reg.ESR_EL1_ISS_MASK
    assert esr_il(reg.ESR_EL1_ISS_MASK) is False


@pytest.mark.parametrize(
    "width, expected",
    [
        (32, reg.TCR_EL1_IPS_32bit),
        (40, reg.TCR_EL1_IPS_40bit),
        (48, reg.TCR_EL1_IPS_48bit),
        (52, reg.TCR_EL1_IPS_52bit),
    ],
)
def test_tcr_ips_bits(width, expected):
    assert tcr_ips_bits(width) == expected


def test_tcr_ips_bits_within_mask():
    for width in (32, 36, 40, 42, 44, 48, 52):
        assert tcr_ips_bits(width) & ~reg.TCR_EL1_IPS_MASK == 0


def test_tcr_ips_bits_unsupported():
    with pytest.raises(ValueError):
        tcr_ips_bits(39)


def test_mpidr_fields():
    value = 0x12 | 0x34 << 8 | 0x56 << 16 | 1 << 24 | 1 << 30 | 0x78 << 32
    mpidr = Mpidr.from_int(value)
    assert mpidr == Mpidr(aff0=0x12, aff1=0x34, aff2=0x56, aff3=0x78, u=1, mt=1)
    assert mpidr.multiprocessor is False


def test_mpidr_zero():
    mpidr = Mpidr.from_int(0)
    assert (mpidr.aff0, mpidr.aff1, mpidr.aff2, mpidr.aff3, mpidr.mt) == (0, 0, 0, 0, 0)
    assert mpidr.multiprocessor is True


def test_mpidr_ignores_reserved_bits():
    assert Mpidr.from_int(1 << 31 | 5) == Mpidr.from_int(5)
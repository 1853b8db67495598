"""Bit definitions of AArch64 and x86-64 system control registers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

# ---- AArch64 ----

CURRENT_EL_EL0 = 0x0
CURRENT_EL_EL1 = 0x4
CURRENT_EL_EL2 = 0x8
CURRENT_EL_EL3 = 0xC

SCTLR_EL1_M = 1
SCTLR_EL1_I = 1 << 12
SCTLR_EL1_C = 1 << 2

TCR_EL1_ORGN0_NON_CACHE = 0
TCR_EL1_ORGN0_WB_RA_WA_CACHE = 1 << 10
TCR_EL1_ORGN0_WT_RA_NO_WA_CACHE = 1 << 11
TCR_EL1_ORGN0_WB_RA_NO_WA_CACHE = 0x3 << 10
TCR_EL1_IRGN0_NON_CACHE = 0
TCR_EL1_IRGN0_WB_RA_WA_CACHE = 1 << 8
TCR_EL1_IRGN0_WT_RA_NO_WA_CACHE = 1 << 9
TCR_EL1_IRGN0_WB_RA_NO_WA_CACHE = 0x3 << 8
TCR_EL1_ORGN1_NON_CACHE = 0
TCR_EL1_ORGN1_WB_RA_WA_CACHE = 1 << 26
TCR_EL1_ORGN1_WT_RA_NO_WA_CACHE = 1 << 27
TCR_EL1_ORGN1_WB_RA_NO_WA_CACHE = 0x3 << 26
TCR_EL1_IRGN1_NON_CACHE = 0
TCR_EL1_IRGN1_WB_RA_WA_CACHE = 1 << 24
TCR_EL1_IRGN1_WT_RA_NO_WA_CACHE = 1 << 25
TCR_EL1_IRGN1_WB_RA_NO_WA_CACHE = 0x3 << 24
TCR_EL1_SH0_NON_CACHE = 0
TCR_EL1_SH0_OUTER_SHARED_CACHE = 1 << 13
TCR_EL1_SH0_INNER_SHARED_CACHE = 0x3 << 12
TCR_EL1_SH1_NON_CACHE = 0
TCR_EL1_SH1_OUTER_SHARED_CACHE = 1 << 29
TCR_EL1_SH1_INNER_SHARED_CACHE = 0x3 << 28
TCR_EL1_TG0_4KB = 0
TCR_EL1_TG0_16KB = 1 << 15
TCR_EL1_TG0_64KB = 1 << 14
TCR_EL1_TG1_4KB = 1 << 31
TCR_EL1_TG1_16KB = 1 << 30
TCR_EL1_TG1_64KB = 0x3 << 30

TCR_EL1_IPS_MASK = 0x7 << 32
TCR_EL1_IPS_32bit = 0
TCR_EL1_IPS_36bit = 1 << 32
TCR_EL1_IPS_40bit = 1 << 33
TCR_EL1_IPS_42bit = 0x3 << 32
TCR_EL1_IPS_44bit = 1 << 34
TCR_EL1_IPS_48bit = 0x5 << 32
TCR_EL1_IPS_52bit = 0x6 << 32

TCR_EL1_TBI1_IGN = 1 << 38
TCR_EL1_TBI1_USED = 0
TCR_EL1_TBI0_IGN = 1 << 37
TCR_EL1_TBI0_USED = 0
TCR_EL1_HA = 1 << 39
TCR_EL1_HD = 1 << 40
TCR_EL1_AS = 1 << 36
TCR_EL1_EPD1_ENABLE_WALK = 0
TCR_EL1_EPD1_DISABLE_WALK = 1 << 23
TCR_EL1_EPD0_ENABLE_WALK = 0
TCR_EL1_EPD0_DISABLE_WALK = 1 << 7
TCR_EL1_T1SZ_MASK = 0x3F << 16
TCR_EL1_T0SZ_MASK = 0x3F

ID_AA64MMFR0_EL1_PARANGE_MASK = 0xF

MAIR_EL1_NR = 8
MAIR_EL1_ATTR_0 = 0b00000000  # nGnRnE device memory
MAIR_EL1_ATTR_1 = 0b11111111  # normal, write-back, read/write allocate
MAIR_EL1_ATTR_2 = 0b01000100  # normal, non-cacheable
MAIR_EL1_ATTR_3 = 0
MAIR_EL1_ATTR_4 = 0
MAIR_EL1_ATTR_5 = 0
MAIR_EL1_ATTR_6 = 0
MAIR_EL1_ATTR_7 = 0

SPSEL_SP_ELX = 1

CPACR_EL1_TTA = 1 << 28
CPACR_EL1_FPEN_TRAP_EL0 = 1 << 20
CPACR_EL1_FPEN_TRAP_EL0_EL1 = 1 << 21
CPACR_EL1_FPEN_NONE = 0x3 << 20
CPACR_EL1_ZEN_TRAP_EL0 = 1 << 16
CPACR_EL1_ZEN_TRAP_EL0_EL1 = 1 << 17
CPACR_EL1_ZEN_TRAP_NONE = 0x3 << 16

ESR_EL1_MASK = 0xFC000000
ESR_EL1_EC_OFF = 26
ESR_EL1_IL = 1 << 25
ESR_EL1_ISS_MASK = 0x1FFFFFF

_IPS_BY_WIDTH = {
    32: TCR_EL1_IPS_32bit,
    36: TCR_EL1_IPS_36bit,
    40: TCR_EL1_IPS_40bit,
    42: TCR_EL1_IPS_42bit,
    44: TCR_EL1_IPS_44bit,
    48: TCR_EL1_IPS_48bit,
    52: TCR_EL1_IPS_52bit,
}


class EsrClass(enum.IntEnum):
    """Exception classes of ESR_EL1, unshifted."""

    UNKNOWN_REASON = 0x0
    WFI_WFE = 0x1
    MCR_MRC_1 = 0x3
    MCRR_MRRC_1 = 0x4
    MCR_MRC_0 = 0x5
    LDC_STC = 0x6
    FPEN_TFP = 0x7
    MRRC_0 = 0xC
    BR = 0xD
    ILLEGAL_ES = 0xE
    SVC_AARCH32 = 0x11
    SVC_AARCH64 = 0x18
    SVE = 0x19
    POINTER_AUTH = 0x1C
    LOWER_EL_INST_ABORT = 0x20
    CURR_EL_INST_ABORT = 0x21
    PC_ALIGN = 0x22
    LOWER_EL_DATA_ABORT = 0x24
    CURR_EL_DATA_ABORT = 0x25
    SP_ALIGN = 0x26
    FP_AARCH32 = 0x28
    FP_AARCH64 = 0x2C
    SERROR = 0x2F
    LOWER_EL_BREAK_POINT = 0x30
    CURR_EL_BREAK_POINT = 0x31
    LOWER_EL_SOFTWARE_STEP = 0x32
    CURR_EL_SOFTWARE_STEP = 0x33
    LOWER_EL_WATCH_POINT = 0x34
    CURR_EL_WATCH_POINT = 0x35
    BKPT_AARCH32 = 0x38
    BKP_AARCH64 = 0x3C

    @property
    def esr_bits(self) -> int:
        """The class as it sits in the register."""
        return self.value << ESR_EL1_EC_OFF


def esr_class(esr: int) -> EsrClass | None:
    """Exception class of an ESR_EL1 value, or None for an unnamed class."""
    code = (esr & ESR_EL1_MASK) >> ESR_EL1_EC_OFF
    try:
        return EsrClass(code)
    except ValueError:
        return None


def esr_iss(esr: int) -> int:
    """Instruction specific syndrome of an ESR_EL1 value."""
    return esr & ESR_EL1_ISS_MASK


def esr_il(esr: int) -> bool:
    """True when the trapped instruction was 32 bits long."""
    return bool(esr & ESR_EL1_IL)


def tcr_ips_bits(ipa_bits: int) -> int:
    """TCR_EL1.IPS value for an intermediate physical address width."""
    try:
        return _IPS_BY_WIDTH[ipa_bits]
    except KeyError:
        raise ValueError(f"unsupported physical address width {ipa_bits}") from None


@dataclass(frozen=True)
class Mpidr:
    """Affinity fields of MPIDR_EL1."""

    aff0: int
    aff1: int
    aff2: int
    aff3: int
    u: int
    mt: int

    @classmethod
    def from_int(cls, value: int) -> Mpidr:
        return cls(
            aff0=value & 0xFF,
            aff1=(value >> 8) & 0xFF,
            aff2=(value >> 16) & 0xFF,
            aff3=(value >> 32) & 0xFF,
            u=(value >> 30) & 0x1,
            mt=(value >> 24) & 0x1,
        )

    @property
    def multiprocessor(self) -> bool:
        """True unless the U bit marks a uniprocessor system."""
        return not self.u


# ---- x86-64 ----

KERNEL_PL = 0
USER_PL = 3

CR0_PE = 1 << 0
CR0_MP = 1 << 1
CR0_EM = 1 << 2
CR0_TS = 1 << 3
CR0_ET = 1 << 4
CR0_NE = 1 << 5
CR0_WP = 1 << 16
CR0_AM = 1 << 18
CR0_NW = 1 << 29
CR0_CD = 1 << 30
CR0_PG = 1 << 31

CR3_PWT = 1 << 3
CR3_PCD = 1 << 4

CR4_VME = 1 << 0
CR4_PVI = 1 << 1
CR4_TSD = 1 << 2
CR4_DE = 1 << 3
CR4_PSE = 1 << 4
CR4_PAE = 1 << 5
CR4_MCE = 1 << 6
CR4_PGE = 1 << 7
CR4_PCE = 1 << 8
CR4_OSFXSR = 1 << 9
CR4_OSXMMEXCPT = 1 << 10
CR4_UMIP = 1 << 11
CR4_VMXE = 1 << 13
CR4_SMXE = 1 << 14
CR4_FSGSBASE = 1 << 16
CR4_PCIDE = 1 << 17
CR4_OSXSAVE = 1 << 18
CR4_SMEP = 1 << 20
CR4_SMAP = 1 << 21
CR4_PKE = 1 << 22

XCR0_X87 = 1 << 0
XCR0_SSE = 1 << 1
XCR0_AVX = 1 << 2
XCR0_BNDREG = 1 << 3
XCR0_BNDCSR = 1 << 4
XCR0_OPMASK = 1 << 5
XCR0_ZMM_HI256 = 1 << 6
XCR0_HI16_ZMM = 1 << 7
XCR0_PKRU = 1 << 9

MXCSR_IE = 1 << 0
MXCSR_DE = 1 << 1
MXCSR_ZE = 1 << 2
MXCSR_OE = 1 << 3
MXCSR_UE = 1 << 4
MXCSR_PE = 1 << 5
MXCSR_DAZ = 1 << 6
MXCSR_IM = 1 << 7
MXCSR_DM = 1 << 8
MXCSR_ZM = 1 << 9
MXCSR_OM = 1 << 10
MXCSR_UM = 1 << 11
MXCSR_PM = 1 << 12
MXCSR_FZ = 1 << 16
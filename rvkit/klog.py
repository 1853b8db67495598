"""Kernel log levels and the small printf used by the kernel log."""

from __future__ import annotations

import enum
import sys
from collections.abc import Callable

_U64_MASK = (1 << 64) - 1
_U32_MASK = (1 << 32) - 1


class LogLevel(enum.IntEnum):
    """Severity of a log message; OFF silences everything."""

    OFF = 0
    EMERG = 1
    ALERT = 2
    CRIT = 3
    ERROR = 4
    WARNING = 5
    NOTICE = 6
    INFO = 7
    DEBUG = 8


def _wrap_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def format_integer(value: int, conversion: str) -> str:
    """Render an integer for the conversion 'd', 'u' or 'x'.

    'd' prints a sign for negative values; every other conversion treats the
    value as an unsigned 64-bit number, in hexadecimal for 'x'.
    """
    if conversion == "d" and value < 0:
        return "-" + str(-value)
    unsigned = value & _U64_MASK
    return f"{unsigned:x}" if conversion == "x" else str(unsigned)


def _char_text(value: int | str) -> str:
    if isinstance(value, str):
        value = ord(value[0]) if value else 0
    byte = value & 0xFF
    return chr(byte) if byte else ""


def format_log(fmt: str, *args: object) -> str:
    """Expand `fmt` with `args` the way the kernel log does.

    Supported conversions are %d (32-bit signed), %u (32-bit unsigned),
    %x (64-bit hexadecimal), %c and %s, each with an optional zero flag and a
    single-digit minimum width. Any other conversion character prints nothing.
    """
    values = iter(args)

    def take() -> object:
        try:
            return next(values)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    out: list[str] = []
    chars = iter(fmt)
    for ch in chars:
        if ch != "%":
            out.append(ch)
            continue
        conv = next(chars, "")
        zero_pad = False
        width = 0
        if conv == "0":
            zero_pad = True
            conv = next(chars, "")
        if conv and "0" <= conv <= "9":
            width = int(conv)
            conv = next(chars, "")
        if not conv:
            break
        if conv == "d":
            text = format_integer(_wrap_signed(int(take()), 32), "d")
        elif conv == "u":
            text = format_integer(int(take()) & _U32_MASK, "u")
        elif conv == "x":
            text = format_integer(_wrap_signed(int(take()), 64), "x")
        elif conv == "c":
            text = _char_text(take())
        elif conv == "s":
            value = take()
            text = "(null)" if value is None else str(value)
        else:
            continue
        out.append(text.rjust(width, "0" if zero_pad else " "))
    return "".join(out)


class KernelLog:
    """A log that forwards messages at or above its level to a sink."""

    def __init__(
        self,
        level: LogLevel | int = LogLevel.OFF,
        sink: Callable[[str], object] | None = None,
    ) -> None:
        self.level = LogLevel(level)
        self._sink = sink if sink is not None else sys.stdout.write
        self._sink("\n")

    def printk(self, fmt: str, level: LogLevel | int, *args: object) -> str | None:
        """Write the formatted message if `level` is enabled; return what was written."""
        if level > self.level:
            return None
        text = format_log(fmt, *args)
        self._sink(text)
        return text
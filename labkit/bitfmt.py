"""Parsing and display of 32-bit integer and single-precision float bit patterns."""

from __future__ import annotations

import math
import re
import struct
import sys

_WHITESPACE = " \t\n\r\f\v"
_INT_PREFIX = re.compile(r"[ \t\n\r\f\v]*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)?")
_LLONG_MAX = 2**63 - 1
_LLONG_MIN = -(2**63)

FRAC_SIZE = 23
EXP_SIZE = 8
BIAS = (1 << (EXP_SIZE - 1)) - 1
FRAC_MASK = (1 << FRAC_SIZE) - 1
EXP_MASK = (1 << EXP_SIZE) - 1


def float_to_bits(value: float) -> int:
    """Round ``value`` to single precision and return its 32-bit pattern."""
    try:
        packed = struct.pack(">f", value)
    except OverflowError:
        packed = struct.pack(">f", math.copysign(math.inf, value))
    return struct.unpack(">I", packed)[0]


def bits_to_float(bits: int) -> float:
    """Interpret the low 32 bits of ``bits`` as a single-precision float."""
    return struct.unpack(">f", struct.pack(">I", bits & 0xFFFFFFFF))[0]


def _looks_like_float(text: str) -> bool:
    is_hex = False
    is_float = False
    for ch in text:
        if ch in "xX":
            is_hex = True
        elif ch in "eE":
            if not is_hex:
                is_float = True
        elif ch == ".":
            is_float = True
    return is_float


def _parse_integer_prefix(text: str) -> int:
    """Parse the leading integer of ``text`` with automatic base, saturating like a long long."""
    sign, digits = _INT_PREFIX.match(text).groups()
    if not digits:
        return 0
    if digits[:2].lower() == "0x":
        value = int(digits[2:], 16)
    elif digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits)
    if sign == "-":
        value = -value
    return max(_LLONG_MIN, min(_LLONG_MAX, value))


def _parse_float_text(text: str) -> float:
    body = text.lstrip(_WHITESPACE)
    if not body or body != body.rstrip(_WHITESPACE) or "_" in body:
        raise ValueError(f"not a floating-point number: {text!r}")
    try:
        return float(body)
    except ValueError:
        return float.fromhex(body)


def parse_value(text: str, allow_float: bool = True) -> int:
    """Parse a hex, decimal or (optionally) floating-point value into a 32-bit pattern.

    Raises ValueError when the text cannot be turned into a 32-bit number.
    """
    if _looks_like_float(text):
        if not allow_float:
            raise ValueError(f"floating-point value not allowed: {text!r}")
        try:
            value = _parse_float_text(text)
        except ValueError:
            raise ValueError(f"invalid floating-point value: {text!r}") from None
        return float_to_bits(value)
    value = _parse_integer_prefix(text)
    if (value >> 31) not in (-1, 0, 1):
        raise ValueError(f"value does not fit in 32 bits: {text!r}")
    return value & 0xFFFFFFFF


def _format_g10(bits: int, value: float) -> str:
    if math.isnan(value):
        return "-nan" if bits >> 31 else "nan"
    return format(value, ".10g")


def describe_float(bits: int) -> str:
    """Return a multi-line description of the float encoded by ``bits``."""
    bits &= 0xFFFFFFFF
    value = bits_to_float(bits)
    exp = (bits >> FRAC_SIZE) & EXP_MASK
    frac = bits & FRAC_MASK
    sign = (bits >> 31) & 0x1
    lines = [
        "",
        f"Floating point value {_format_g10(bits, value)}",
        f"Bit Representation 0x{bits:08x}, sign = {sign:x}, "
        f"exponent = 0x{exp:02x}, fraction = 0x{frac:06x}",
    ]
    if exp == EXP_MASK:
        if frac == 0:
            lines.append(f"{'-' if sign else '+'}Infinity")
        else:
            lines.append("Not-A-Number")
    else:
        denorm = exp == 0
        uexp = 1 - BIAS if denorm else exp - BIAS
        mantissa = frac if denorm else frac + (1 << FRAC_SIZE)
        fman = mantissa / (1 << FRAC_SIZE)
        kind = "Denormalized" if denorm else "Normalized"
        lines.append(f"{kind}.  {'-' if sign else '+'}{fman:.10f} X 2^({uexp})")
    return "\n".join(lines) + "\n"


def describe_int(bits: int) -> str:
    """Return a one-line hex/signed/unsigned view of a 32-bit pattern."""
    bits &= 0xFFFFFFFF
    signed = bits - (1 << 32) if bits & 0x80000000 else bits
    return f"Hex = 0x{bits:08x},\tSigned = {signed},\tUnsigned = {bits}\n"


def _usage(prog: str, kind: str) -> str:
    return f"Usage: {prog} val1 val2 ...\nValues may be given {kind}\n"


def fshow_main(argv: list[str] | None = None) -> int:
    """Show the structure of each floating-point value given on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    usage = _usage("fshow", "as hex patterns or as floating point numbers")
    if not args:
        sys.stdout.write(usage)
        return 0
    for text in args:
        try:
            bits = parse_value(text, allow_float=True)
        except ValueError:
            sys.stdout.write(f"Invalid 32-bit number: '{text}'\n")
            sys.stdout.write(usage)
            return 0
        sys.stdout.write(describe_float(bits))
    return 0


def ishow_main(argv: list[str] | None = None) -> int:
    """Show the hex, signed and unsigned value of each integer on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stdout.write(_usage("ishow", "in hex or decimal"))
        return 0
    for text in args:
        try:
            bits = parse_value(text, allow_float=False)
        except ValueError:
            sys.stdout.write(f"Cannot convert '{text}' to 32-bit number\n")
            continue
        sys.stdout.write(describe_int(bits))
    return 0
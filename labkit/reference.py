"""Reference behaviour of the data-lab puzzles, with 32-bit two's complement semantics."""

from __future__ import annotations

import math

from labkit.bitfmt import bits_to_float, float_to_bits

TMIN = -(2**31)
TMAX = 2**31 - 1


def to_int32(value: int) -> int:
    """Wrap ``value`` into a signed 32-bit integer."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def bit_xor(x: int, y: int) -> int:
    return to_int32(x ^ y)


def tmin() -> int:
    return TMIN


def is_tmax(x: int) -> int:
    return int(x == TMAX)


def all_odd_bits(x: int) -> int:
    return int(all((x >> i) & 1 for i in range(1, 32, 2)))


def negate(x: int) -> int:
    return to_int32(-x)


def is_ascii_digit(x: int) -> int:
    return int(0x30 <= x <= 0x39)


def conditional(x: int, y: int, z: int) -> int:
    return y if x else z


def is_less_or_equal(x: int, y: int) -> int:
    return int(x <= y)


def logical_neg(x: int) -> int:
    return int(not x)


def how_many_bits(x: int) -> int:
    magnitude = -x - 1 if x < 0 else x
    return magnitude.bit_length() + 1


def float_twice(uf: int) -> int:
    """Bits of 2*f; NaN arguments come back unchanged."""
    uf &= 0xFFFFFFFF
    value = bits_to_float(uf)
    if math.isnan(value):
        return uf
    return float_to_bits(2 * value)


def float_i2f(x: int) -> int:
    """Bits of ``x`` converted to single precision."""
    return float_to_bits(float(x))


def float_f2i(uf: int) -> int:
    """Float bits converted to int; out of range, infinities and NaN give TMIN."""
    value = bits_to_float(uf)
    if math.isnan(value) or value >= 2**31 or value < -(2**31):
        return TMIN
    return int(value)
import math

import pytest

from labkit.bitfmt import (
    bits_to_float,
    describe_float,
    describe_int,
    float_to_bits,
    fshow_main,
    ishow_main,
    parse_value,
)

ONE = 0x3F800000
INF = 0x7F800000
NAN = 0x7FC00000
SIGN = 0x80000000


def test_parse_hex_pattern():
    assert parse_value("0x3f800000", True) == ONE


def test_parse_float_text_gives_bits_of_one():
    assert parse_value("1.0", True) == ONE


def test_parse_hex_with_e_is_integer():
    assert parse_value("0x1e", True) == 0x1E


def test_parse_negative_wraps_to_unsigned():
    assert parse_value("-1", False) == 0xFFFFFFFF


def test_parse_unsigned_max_accepted():
    assert parse_value("4294967295", False) == 4294967295


def test_parse_integer_stops_at_junk():
    assert parse_value("12abc", False) == 12


@pytest.mark.parametrize("text", ["0x100000000", "-2147483649", "99999999999999999999999"])
def test_parse_out_of_range_rejected(text):
    with pytest.raises(ValueError):
        parse_value(text, False)


def test_parse_float_rejected_when_not_allowed():
    with pytest.raises(ValueError):
        parse_value("1.5", False)


def test_parse_bad_float_rejected():
    with pytest.raises(ValueError):
        parse_value("1.5zz", True)


def test_parse_float_overflow_is_infinity():
    assert parse_value("1e39", True) == INF
    assert parse_value("-1e39", True) == SIGN | INF


@pytest.mark.parametrize("bits", [0, 1, ONE, 0x00800000, 0x7F7FFFFF, SIGN | ONE, INF])
def test_bits_round_trip(bits):
    assert float_to_bits(bits_to_float(bits)) == bits


def test_float_to_bits_nan_is_nan():
    assert math.isnan(bits_to_float(float_to_bits(math.nan)))


def test_describe_float_infinities():
    assert "+Infinity" in describe_float(INF)
    assert "-Infinity" in describe_float(SIGN | INF)


def test_describe_float_nan():
    assert describe_float(NAN).rstrip().endswith("Not-A-Number")


def test_describe_float_one():
    text = describe_float(ONE)
    assert text.startswith("\nFloating point value 1\n")
    assert "Normalized.  +1.0000000000 X 2^(0)" in text


def test_describe_float_denorm():
    text = describe_float(1)
    assert "Denormalized" in text
    assert "2^(-126)" in text


def test_describe_int_contains_all_views():
    text = describe_int(0xFFFFFFFF)
    assert text == "Hex = 0xffffffff,\tSigned = -1,\tUnsigned = 4294967295\n"


def test_fshow_without_args_prints_usage(capsys):
    assert fshow_main([]) == 0
    assert capsys.readouterr().out.startswith("Usage: fshow")


def test_fshow_invalid_value(capsys):
    fshow_main(["0x100000000"])
    out = capsys.readouterr().out
    assert "Invalid 32-bit number: '0x100000000'" in out
    assert "Usage:" in out


def test_fshow_shows_value(capsys):
    fshow_main(["1.0"])
    assert "Bit Representation 0x3f800000" in capsys.readouterr().out


def test_ishow_rejects_float_and_continues(capsys):
    ishow_main(["1.5", "0x3f800000"])
    out = capsys.readouterr().out
    assert "Cannot convert '1.5' to 32-bit number" in out
    assert "Hex = 0x3f800000" in out
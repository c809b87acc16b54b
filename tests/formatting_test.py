from utils.formatting import format_fixed_point


def test_format_fixed_point() -> None:
    assert format_fixed_point(2000 * 10**18) == "2000"
    assert format_fixed_point(15 * 10**17) == "1.5"
    assert format_fixed_point(1) == "0.000000000000000001"
    assert format_fixed_point(-25 * 10**16) == "-0.25"
    assert format_fixed_point(123, decimals=0) == "123"


def test_format_fixed_point_keeps_every_digit() -> None:
    value = 123456789012345678901234567890123456789
    assert format_fixed_point(value) == "123456789012345678901.234567890123456789"

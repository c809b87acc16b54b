from __future__ import annotations

from domain.pricing import WAD_DECIMALS


def format_fixed_point(value: int, decimals: int = WAD_DECIMALS) -> str:
    # Integer arithmetic only; Decimal would round past 28 significant digits.
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_digits = f"{fraction:0{decimals}d}".rstrip("0") if decimals else ""
    if not fraction_digits:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction_digits}"

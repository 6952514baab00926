"""
Conversion between human decimal amounts and integer base units.

All amounts crossing the API boundary go through here. Conversion is exact:
inputs that would need rounding are rejected instead of truncated.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, cast

from token_gateway.app.domain.errors import InvalidInputError
from token_gateway.app.domain.models import BaseUnits

DEFAULT_DECIMALS = 18
MAX_UINT256 = 2**256 - 1
_MAX_UINT256_DIGITS = len(str(MAX_UINT256))


def _as_decimal(amount: Any) -> Decimal:
    # bool is an int subclass; JSON `true` is not an amount
    if isinstance(amount, bool):
        raise InvalidInputError("Invalid amount")

    if isinstance(amount, int):
        return Decimal(amount)

    if isinstance(amount, float):
        # repr gives the shortest string that round-trips, e.g. 2.5 -> "2.5"
        text = repr(amount)
    elif isinstance(amount, str):
        text = amount.strip()
    else:
        raise InvalidInputError("Invalid amount")

    if not text:
        raise InvalidInputError("Invalid amount")

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidInputError("Invalid amount")

    if not value.is_finite():
        raise InvalidInputError("Invalid amount")
    return value


def to_base_units(
    amount: Any,
    decimals: int = DEFAULT_DECIMALS,
    *,
    positive: bool = False,
) -> BaseUnits:
    """
    Scale a decimal amount by 10**decimals.

    Rejects (InvalidInputError):
      - non-numeric input, NaN/Infinity, booleans,
      - negative values (and zero when `positive` is set),
      - more fractional digits than `decimals`.
    """
    if decimals < 0:
        raise ValueError("decimals must be non-negative")

    value = _as_decimal(amount)

    if value < 0 or (positive and value == 0):
        raise InvalidInputError("Invalid amount")

    if value == 0:
        return 0

    # value >= 10**adjusted, and 10**78 > MAX_UINT256. Checked before any
    # integer is built so "1e30000000" is rejected without scaling it.
    if value.adjusted() + decimals > _MAX_UINT256_DIGITS - 1:
        raise InvalidInputError("Invalid amount: exceeds uint256 range")

    # Work on the digit tuple: Decimal arithmetic rounds to the context precision.
    _, digit_tuple, raw_exponent = value.as_tuple()
    exponent = cast(int, raw_exponent)
    digits = list(digit_tuple)

    # trailing zeros ("1.50") do not count against the precision limit
    while exponent < 0 and len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1

    if -exponent > decimals:
        raise InvalidInputError(
            f"Invalid amount: at most {decimals} fractional digits are supported"
        )

    coefficient = int("".join(map(str, digits)))
    base_units = coefficient * 10 ** (decimals + exponent)
    if base_units > MAX_UINT256:
        raise InvalidInputError("Invalid amount: exceeds uint256 range")
    return base_units


def to_decimal(base_units: BaseUnits, decimals: int = DEFAULT_DECIMALS) -> str:
    """Inverse of to_base_units, in canonical form: "2.5", "1", "0"."""
    if decimals < 0:
        raise ValueError("decimals must be non-negative")

    sign = "-" if base_units < 0 else ""
    whole, frac = divmod(abs(int(base_units)), 10**decimals)
    if decimals == 0 or frac == 0:
        return f"{sign}{whole}"

    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_str}"

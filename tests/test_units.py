from __future__ import annotations

import time

import pytest

from token_gateway.app.domain.errors import InvalidInputError
from token_gateway.app.domain.units import MAX_UINT256, to_base_units, to_decimal


@pytest.mark.parametrize(
    "decimal",
    [
        "0",
        "1",
        "2.5",
        "0.000000000000000001",
        "123456789012345678901234567890.123456789012345678",
        "10.05",
    ],
)
def test_round_trip_is_exact(decimal: str) -> None:
    assert to_decimal(to_base_units(decimal, 18), 18) == decimal


def test_scales_by_decimals() -> None:
    assert to_base_units("2.5") == 2_500_000_000_000_000_000
    assert to_base_units("1", 6) == 1_000_000
    assert to_base_units(3) == 3 * 10**18


def test_trailing_zeros_do_not_count_as_precision() -> None:
    assert to_base_units("1.5000000000000000000000") == 1_500_000_000_000_000_000


def test_json_numbers_go_through_shortest_repr() -> None:
    assert to_base_units(2.5) == 2_500_000_000_000_000_000
    assert to_base_units(0.1) == 100_000_000_000_000_000


def test_rejects_more_fractional_digits_than_supported() -> None:
    with pytest.raises(InvalidInputError):
        to_base_units("0.0000000000000000001", 18)
    with pytest.raises(InvalidInputError):
        to_base_units("1.1234567", 6)


@pytest.mark.parametrize("value", ["", "  ", "abc", "1,5", "NaN", "Infinity", "-1", None, True, [1]])
def test_rejects_non_numeric_and_negative(value: object) -> None:
    with pytest.raises(InvalidInputError):
        to_base_units(value)


def test_positive_flag_rejects_zero() -> None:
    assert to_base_units("0") == 0
    with pytest.raises(InvalidInputError):
        to_base_units("0", positive=True)
    with pytest.raises(InvalidInputError):
        to_base_units("0.000", positive=True)


def test_rejects_values_beyond_uint256() -> None:
    assert to_base_units(MAX_UINT256, 0) == MAX_UINT256
    with pytest.raises(InvalidInputError):
        to_base_units(MAX_UINT256 + 1, 0)


@pytest.mark.parametrize(
    "amount",
    [
        "1e30000000",
        "9.9e999999999",
        "1" + "0" * 100_000,
        "0." + "1" * 100_000,
        "1e-30000000",
    ],
)
def test_extreme_exponents_are_rejected_without_scaling(amount: str) -> None:
    started = time.monotonic()
    with pytest.raises(InvalidInputError):
        to_base_units(amount, positive=True)
    assert time.monotonic() - started < 1.0


def test_largest_in_range_exponent_is_accepted() -> None:
    assert to_base_units("1e59") == 10**77
    with pytest.raises(InvalidInputError):
        to_base_units("1e60")


def test_to_decimal_keeps_full_integer_precision() -> None:
    big = 10**40 + 1
    assert to_decimal(big, 18) == "10000000000000000000000.000000000000000001"
    assert to_decimal(2_500_000_000_000_000_000) == "2.5"
    assert to_decimal(10**18) == "1"
    assert to_decimal(5, 0) == "5"

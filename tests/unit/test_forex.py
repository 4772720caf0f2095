from __future__ import annotations

from decimal import Decimal

import pytest

from fintrack.exceptions import InvalidInputError
from fintrack.forex import (
    BASE_CURRENCY,
    QUOTE_CURRENCY,
    ConversionDescriptor,
    conversion_for,
    convert,
)

TOLERANCE = Decimal("1e-20")


def test_pair_convention() -> None:
    assert BASE_CURRENCY == "USD"
    assert QUOTE_CURRENCY == "RUB"


def test_base_to_quote_multiplies() -> None:
    descriptor = conversion_for("USD", "RUB", Decimal("100"))

    assert descriptor.multiplier == Decimal("100")
    assert descriptor.apply(Decimal("10")) == Decimal("1000")


def test_quote_to_base_divides() -> None:
    assert convert(Decimal("500"), "RUB", "USD", Decimal("100")) == Decimal("5")


def test_identity_conversion_ignores_rate() -> None:
    descriptor = conversion_for("RUB", "RUB", Decimal("97.3"))

    assert descriptor.multiplier == Decimal("1")
    assert descriptor.apply(Decimal("123.45")) == Decimal("123.45")


@pytest.mark.parametrize("rate", [Decimal("100"), Decimal("97.3"), Decimal("3")])
def test_round_trip_with_reciprocal(rate: Decimal) -> None:
    amount = Decimal("1234.56")
    forward = conversion_for("RUB", "USD", rate)

    restored = forward.inverse().apply(forward.apply(amount))

    assert forward.inverse().from_currency == "USD"
    assert abs(restored - amount) < TOLERANCE


def test_descriptor_rejects_invalid_values() -> None:
    with pytest.raises(InvalidInputError):
        ConversionDescriptor("USD", "EUR", Decimal("1"))
    with pytest.raises(InvalidInputError):
        ConversionDescriptor("USD", "RUB", Decimal("0"))
    with pytest.raises(InvalidInputError):
        ConversionDescriptor("USD", "USD", Decimal("2"))


def test_conversion_rejects_non_positive_rate() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        convert(Decimal("1"), "USD", "RUB", Decimal("-100"))

    assert excinfo.value.field == "fallback_rate"

from __future__ import annotations

from fintrack.exceptions import DuplicateError, InvalidInputError


def test_duplicate_error_details() -> None:
    details = {"name": "Card RUB"}
    error = DuplicateError("Duplicate account", details)

    assert error.details == details
    assert "Duplicate account" in str(error)


def test_invalid_input_error_names_field() -> None:
    error = InvalidInputError("amount", "must be greater than zero")

    assert error.field == "amount"
    assert str(error) == "amount: must be greater than zero"
    assert isinstance(error, ValueError)

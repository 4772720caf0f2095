"""Custom exception types for fintrack."""

from __future__ import annotations

from typing import Any


class InvalidInputError(ValueError):
    """Raised when an input field violates its constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class DuplicateError(Exception):
    """Raised when a duplicate record is detected."""

    def __init__(self, message: str, details: dict[str, Any]) -> None:
        super().__init__(message)
        self.details = details


class NotFoundError(Exception):
    """Raised when a requested record does not exist."""

"""Custom exceptions for diff parsing and line matching."""

from typing import Any


class DiffError(Exception):
    """Base exception for diff operations."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class DiffConfigError(DiffError):
    """Raised when a parser, matcher or highlighter option is invalid."""


class DiffSerializationError(DiffError):
    """Raised when a serialized diff model cannot be decoded."""

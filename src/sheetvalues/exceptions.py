"""Exceptions raised by sheetvalues.

Every operation either returns a complete result or raises exactly one of
these. Validation failures are raised locally before any request is sent.
"""

from __future__ import annotations


class SheetValuesError(Exception):
    """Base exception for all sheetvalues errors."""

    pass


class ConfigError(SheetValuesError):
    """Raised when the client or CLI is constructed with bad arguments."""

    pass


class ValidationError(SheetValuesError, ValueError):
    """Raised when a range, matrix, or row index argument is malformed."""

    pass


class NotFoundError(SheetValuesError):
    """Raised when the spreadsheet, sheet, or range does not resolve remotely."""

    def __init__(self, target: str, message: str | None = None) -> None:
        self.target = target
        super().__init__(message or f"Not found: {target}")


class TransportError(SheetValuesError):
    """Raised on network failures and unexpected remote responses."""

    pass


class AuthenticationError(TransportError):
    """Raised when authentication fails (401/403)."""

    pass


class APIError(TransportError):
    """Raised when the API returns an error status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code

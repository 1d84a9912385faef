"""sheetvalues - Range-addressed client for Google Sheets.

Reads, updates, appends and clears A1 ranges of a single spreadsheet,
deletes rows and lists sheets, with local validation of every address.
"""

__version__ = "0.1.0"

from sheetvalues.a1 import RangeRef, format_range, parse_range
from sheetvalues.client import CellValue, Matrix, WorkbookClient
from sheetvalues.exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    NotFoundError,
    SheetValuesError,
    TransportError,
    ValidationError,
)
from sheetvalues.memory import InMemoryTransport
from sheetvalues.transport import GoogleSheetsTransport, Transport

__all__ = [
    "APIError",
    "AuthenticationError",
    "CellValue",
    "ConfigError",
    "GoogleSheetsTransport",
    "InMemoryTransport",
    "Matrix",
    "NotFoundError",
    "RangeRef",
    "SheetValuesError",
    "Transport",
    "TransportError",
    "ValidationError",
    "WorkbookClient",
    "__version__",
    "format_range",
    "parse_range",
]

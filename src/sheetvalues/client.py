"""WorkbookClient - Main API for sheetvalues.

Provides range-level read, update, append and clear operations on a single
workbook, plus row deletion and sheet listing. Each method is one
independent round trip through a Transport; nothing is cached between calls.
"""

from __future__ import annotations

import math
from typing import Any, Union

from loguru import logger

from sheetvalues.a1 import RangeRef, format_range, parse_range
from sheetvalues.exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from sheetvalues.transport import (
    INSERT_ROWS,
    UNFORMATTED_VALUE,
    USER_ENTERED,
    VALUE_INPUT_OPTIONS,
    VALUE_RENDER_OPTIONS,
    Transport,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "CellValue",
    "ConfigError",
    "Matrix",
    "NotFoundError",
    "TransportError",
    "ValidationError",
    "WorkbookClient",
]

CellValue = Union[str, int, float, bool, None]
Matrix = list[list[CellValue]]


class WorkbookClient:
    """Client for range-addressed access to one spreadsheet.

    The workbook ID and transport are fixed at construction; the client
    holds no other state, so concurrent calls are safe but overlapping
    writes race and the last one to reach the store wins.

    Example:
        >>> from sheetvalues.transport import GoogleSheetsTransport
        >>> transport = GoogleSheetsTransport(access_token="ya29...")
        >>> client = WorkbookClient(transport, "1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms")
        >>> await client.read("Sheet1!A1:B2")
        [['a', 1], ['b', 2]]
    """

    def __init__(self, transport: Transport, workbook_id: str) -> None:
        """Initialize the client.

        Args:
            transport: Authenticated transport used for every request
            workbook_id: The ID of the spreadsheet (from the URL)

        Raises:
            ConfigError: If the transport is missing or the ID is empty
        """
        if transport is None:
            raise ConfigError("A transport is required")
        if not isinstance(workbook_id, str) or not workbook_id.strip():
            raise ConfigError("Workbook ID must be a non-empty string")
        self._transport = transport
        self._workbook_id = workbook_id

    @property
    def workbook_id(self) -> str:
        return self._workbook_id

    async def __aenter__(self) -> WorkbookClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying transport."""
        await self._transport.close()

    async def read(
        self,
        range_: str,
        *,
        value_render_option: str = UNFORMATTED_VALUE,
    ) -> Matrix:
        """Fetch the current contents of a range.

        Args:
            range_: Range address, e.g. "Sheet1!A1:D10", "Sheet1!A:D" or "Sheet1"
            value_render_option: UNFORMATTED_VALUE (default), FORMATTED_VALUE
                or FORMULA

        Returns:
            Rows top to bottom; an empty list when the range holds no data.
            Trailing empty cells and rows are not included.

        Raises:
            ValidationError: If the range is malformed
            NotFoundError: If the sheet does not exist
            TransportError: On network, auth or unexpected API failures
        """
        ref = parse_range(range_)
        _check_option("value_render_option", value_render_option, VALUE_RENDER_OPTIONS)

        logger.debug("Reading {} from workbook {}", ref, self._workbook_id)
        response = await self._transport.get_values(
            self._workbook_id, format_range(ref), value_render_option=value_render_option
        )
        values: Matrix = response.get("values") or []
        return values

    async def update(
        self,
        range_: str,
        matrix: Matrix,
        *,
        value_input_option: str = USER_ENTERED,
    ) -> int:
        """Overwrite the cells of a range, left to right and top to bottom.

        Cells of the range not covered by ``matrix`` are left unchanged. With
        USER_ENTERED input, strings such as "3.14" or "=SUM(A1:A2)" are
        parsed by the store into numbers and formulas.

        Returns:
            The number of cells written.

        Raises:
            ValidationError: If the range or matrix is malformed, or the
                matrix does not fit inside a bounded range. A single-cell
                range is the top-left anchor and accepts any size.
            NotFoundError: If the sheet does not exist
            TransportError: On network, auth or unexpected API failures
        """
        ref = parse_range(range_)
        values = _check_matrix(matrix)
        _check_option("value_input_option", value_input_option, VALUE_INPUT_OPTIONS)
        _check_fits(ref, values)

        logger.debug(
            "Updating {} with {} row(s) in workbook {}", ref, len(values), self._workbook_id
        )
        response = await self._transport.update_values(
            self._workbook_id,
            format_range(ref),
            values,
            value_input_option=value_input_option,
        )
        return int(response.get("updatedCells") or 0)

    async def append(
        self,
        range_: str,
        matrix: Matrix,
        *,
        value_input_option: str = USER_ENTERED,
    ) -> str:
        """Insert rows below the existing data in the range's column span.

        Returns:
            The range the rows actually landed in. This is generally not
            the range that was passed in.

        Raises:
            ValidationError: If the range or matrix is malformed
            NotFoundError: If the sheet does not exist
            TransportError: On network, auth or unexpected API failures
        """
        ref = parse_range(range_)
        values = _check_matrix(matrix)
        _check_option("value_input_option", value_input_option, VALUE_INPUT_OPTIONS)

        logger.debug(
            "Appending {} row(s) to {} in workbook {}", len(values), ref, self._workbook_id
        )
        response = await self._transport.append_values(
            self._workbook_id,
            format_range(ref),
            values,
            value_input_option=value_input_option,
            insert_data_option=INSERT_ROWS,
        )
        updated_range = (response.get("updates") or {}).get("updatedRange")
        if not updated_range:
            raise TransportError(f"Append to {ref} returned no updated range")
        return str(updated_range)

    async def clear(self, range_: str) -> str:
        """Delete the values in a range, keeping formatting and the cells.

        Clearing an already empty range succeeds and returns the same range.

        Returns:
            The range that was cleared, as reported by the store.

        Raises:
            ValidationError: If the range is malformed
            NotFoundError: If the sheet does not exist
            TransportError: On network, auth or unexpected API failures
        """
        ref = parse_range(range_)

        logger.debug("Clearing {} in workbook {}", ref, self._workbook_id)
        response = await self._transport.clear_values(self._workbook_id, format_range(ref))
        cleared_range = response.get("clearedRange")
        if not cleared_range:
            raise TransportError(f"Clear of {ref} returned no cleared range")
        return str(cleared_range)

    async def delete_rows(self, sheet_id: int, start_index: int, end_index: int) -> bool:
        """Remove rows [start_index, end_index) from a sheet.

        Indices are zero-based and half-open; rows below shift up. This
        cannot be undone through the client.

        Args:
            sheet_id: Numeric sheet ID (not the workbook ID)
            start_index: First row to delete
            end_index: One past the last row to delete

        Returns:
            True when the store acknowledged the deletion.

        Raises:
            ValidationError: If an index is negative or start_index >= end_index
            NotFoundError: If no sheet has this ID
            TransportError: On network, auth or unexpected API failures
        """
        _check_index("sheet_id", sheet_id)
        _check_index("start_index", start_index)
        _check_index("end_index", end_index)
        if start_index >= end_index:
            raise ValidationError(
                f"start_index ({start_index}) must be less than end_index ({end_index})"
            )

        logger.debug(
            "Deleting rows [{}, {}) of sheet {} in workbook {}",
            start_index,
            end_index,
            sheet_id,
            self._workbook_id,
        )
        response = await self._batch_update(
            [_delete_dimension_request(sheet_id, "ROWS", start_index, end_index)]
        )
        return response.get("replies") is not None

    async def list_sheets(self) -> dict[str, int]:
        """Map every sheet title in the workbook to its sheet ID.

        Sheets reported without a title or a valid ID are skipped with a
        warning; they are not surfaced as errors.
        """
        metadata = await self._transport.get_metadata(self._workbook_id)

        sheets: dict[str, int] = {}
        for info in metadata.sheets:
            if not info.title or info.sheet_id is None or info.sheet_id < 0:
                logger.warning(
                    "Skipping sheet with missing title or ID in workbook {}: "
                    "title={!r} sheet_id={!r}",
                    self._workbook_id,
                    info.title,
                    info.sheet_id,
                )
                continue
            if info.title in sheets:
                logger.warning(
                    "Skipping duplicate sheet title {!r} (sheet_id={}) in workbook {}",
                    info.title,
                    info.sheet_id,
                    self._workbook_id,
                )
                continue
            sheets[info.title] = info.sheet_id

        return sheets

    async def _batch_update(self, requests: list[dict[str, Any]]) -> dict[str, Any]:
        """Send structural requests in one atomic batchUpdate."""
        logger.debug(
            "Executing {} batch update request(s) on workbook {}",
            len(requests),
            self._workbook_id,
        )
        return await self._transport.batch_update(self._workbook_id, requests)


def _delete_dimension_request(
    sheet_id: int, dimension: str, start_index: int, end_index: int
) -> dict[str, Any]:
    return {
        "deleteDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": dimension,
                "startIndex": start_index,
                "endIndex": end_index,
            }
        }
    }


def _check_option(name: str, value: str, allowed: frozenset[str]) -> None:
    if value not in allowed:
        raise ValidationError(f"{name} must be one of {sorted(allowed)}, got {value!r}")


def _check_index(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


def _check_matrix(matrix: Matrix) -> Matrix:
    """Validate a matrix and return it as a list of lists."""
    if not isinstance(matrix, (list, tuple)) or not matrix:
        raise ValidationError("Matrix must be a non-empty list of rows")

    rows: Matrix = []
    for i, row in enumerate(matrix):
        if not isinstance(row, (list, tuple)):
            raise ValidationError(f"Row {i} must be a list of cells, got {type(row).__name__}")
        for j, cell in enumerate(row):
            if cell is not None and not isinstance(cell, (str, int, float, bool)):
                raise ValidationError(
                    f"Cell ({i}, {j}) has unsupported type {type(cell).__name__}"
                )
            if isinstance(cell, float) and not math.isfinite(cell):
                raise ValidationError(f"Cell ({i}, {j}) is not a finite number: {cell}")
        rows.append(list(row))
    return rows


def _check_fits(ref: RangeRef, values: Matrix) -> None:
    """Reject a matrix larger than a bounded range."""
    # A single cell anchors the top-left corner of a write of any size
    if ref.is_single_cell:
        return
    width = max((len(row) for row in values), default=0)
    if ref.height is not None and len(values) > ref.height:
        raise ValidationError(
            f"Matrix has {len(values)} rows but range {ref} spans {ref.height}"
        )
    if ref.width is not None and width > ref.width:
        raise ValidationError(
            f"Matrix has {width} columns but range {ref} spans {ref.width}"
        )

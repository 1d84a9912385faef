"""In-process transport that behaves like the Sheets values API.

Useful for tests and dry runs: values are coerced the way the remote store
coerces user-entered input, appends land below the existing data, and a
missing sheet is reported the same way the API reports it.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any

from sheetvalues.a1 import RangeRef, format_range, parse_range
from sheetvalues.exceptions import APIError, NotFoundError
from sheetvalues.transport import (
    FORMATTED_VALUE,
    INSERT_ROWS,
    RAW,
    UNFORMATTED_VALUE,
    USER_ENTERED,
    SpreadsheetMetadata,
    Transport,
    parse_metadata,
)

DEFAULT_ROW_COUNT = 1000
DEFAULT_COLUMN_COUNT = 26

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?([0-9]+\.[0-9]*|\.[0-9]+|[0-9]+)([eE][+-]?[0-9]+)?$")


def coerce_user_entered(value: Any) -> Any:
    """Coerce a written value the way the store parses user-entered input.

    Numeric strings become numbers, TRUE/FALSE become booleans, a leading
    apostrophe forces literal text and an empty string clears the cell.
    Formulas are kept as their source text.
    """
    if not isinstance(value, str):
        return value
    if value == "":
        return None
    if value.startswith("'"):
        return value[1:]
    if value.startswith("="):
        return value
    text = value.strip()
    if text.upper() == "TRUE":
        return True
    if text.upper() == "FALSE":
        return False
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        number = float(text)
        return int(number) if number.is_integer() and "e" not in text.lower() else number
    return value


def _render(value: Any, value_render_option: str) -> Any:
    if value is None:
        return ""
    if value_render_option == FORMATTED_VALUE:
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        return str(value)
    return value


@dataclass
class _Sheet:
    sheet_id: int
    title: str
    rows: list[list[Any]] = field(default_factory=list)

    def get(self, row: int, col: int) -> Any:
        if row < len(self.rows) and col < len(self.rows[row]):
            return self.rows[row][col]
        return None

    def set(self, row: int, col: int, value: Any) -> None:
        while len(self.rows) <= row:
            self.rows.append([])
        cells = self.rows[row]
        while len(cells) <= col:
            cells.append(None)
        cells[col] = value

    @property
    def column_count(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def row_has_data(self, row: int, start_col: int, end_col: int | None) -> bool:
        if row >= len(self.rows):
            return False
        cells = self.rows[row][start_col:end_col]
        return any(c is not None for c in cells)


class InMemoryTransport(Transport):
    """Transport backed by an in-memory workbook.

    Sheets are given as ``{title: (sheet_id, rows)}``. Every call is
    recorded in ``calls`` as ``(method, target)``.

    Example:
        >>> transport = InMemoryTransport({"Sheet1": (0, [["a", 1], ["b", 2]])})
        >>> client = WorkbookClient(transport, "workbook-1")
    """

    def __init__(
        self,
        sheets: dict[str, tuple[int, list[list[Any]]]] | None = None,
        *,
        spreadsheet_id: str | None = None,
        title: str = "Untitled spreadsheet",
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._title = title
        self._sheets: dict[str, _Sheet] = {}
        for sheet_title, (sheet_id, rows) in (sheets or {}).items():
            self._sheets[sheet_title] = _Sheet(sheet_id, sheet_title, copy.deepcopy(rows))
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def rows(self, title: str) -> list[list[Any]]:
        """Return a copy of the stored rows of a sheet, None for empty cells."""
        return copy.deepcopy(self._sheets[title].rows)

    def _check_spreadsheet(self, spreadsheet_id: str) -> None:
        if self._spreadsheet_id is not None and spreadsheet_id != self._spreadsheet_id:
            raise NotFoundError(
                spreadsheet_id,
                "Spreadsheet not found. Check the ID and sharing permissions.",
            )

    def _resolve(self, spreadsheet_id: str, range_: str) -> tuple[_Sheet, RangeRef]:
        self._check_spreadsheet(spreadsheet_id)
        try:
            ref = parse_range(range_)
        except ValueError as e:
            raise APIError(f"Unable to parse range: {range_}", status_code=400) from e
        sheet = self._sheets.get(ref.sheet_title)
        if sheet is None:
            raise NotFoundError(range_, f"Unable to parse range: {range_}")
        return sheet, ref

    async def get_values(
        self,
        spreadsheet_id: str,
        range_: str,
        *,
        value_render_option: str = UNFORMATTED_VALUE,
    ) -> dict[str, Any]:
        self.calls.append(("get_values", range_))
        sheet, ref = self._resolve(spreadsheet_id, range_)

        start_row = ref.start_row or 0
        end_row = ref.end_row if ref.end_row is not None else len(sheet.rows)
        start_col = ref.start_col or 0
        end_col = ref.end_col if ref.end_col is not None else sheet.column_count

        values: list[list[Any]] = []
        for r in range(start_row, end_row):
            row = [
                _render(sheet.get(r, c), value_render_option)
                for c in range(start_col, end_col)
            ]
            while row and row[-1] == "":
                row.pop()
            values.append(row)
        while values and not values[-1]:
            values.pop()

        response: dict[str, Any] = {"range": format_range(ref), "majorDimension": "ROWS"}
        if values:
            response["values"] = values
        return response

    def _write(
        self,
        spreadsheet_id: str,
        sheet: _Sheet,
        top: int,
        left: int,
        values: list[list[Any]],
        value_input_option: str,
    ) -> dict[str, Any]:
        cells = 0
        width = 0
        for i, row in enumerate(values):
            width = max(width, len(row))
            for j, value in enumerate(row):
                if value is None:
                    continue
                stored = value if value_input_option == RAW else coerce_user_entered(value)
                sheet.set(top + i, left + j, stored)
                cells += 1
        written = RangeRef(sheet.title, top, top + len(values), left, left + max(width, 1))
        return {
            "spreadsheetId": spreadsheet_id,
            "updatedRange": format_range(written),
            "updatedRows": len(values),
            "updatedColumns": width,
            "updatedCells": cells,
        }

    async def update_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = USER_ENTERED,
    ) -> dict[str, Any]:
        self.calls.append(("update_values", range_))
        sheet, ref = self._resolve(spreadsheet_id, range_)

        width = max((len(r) for r in values), default=0)
        if not ref.is_single_cell and (
            (ref.height is not None and len(values) > ref.height)
            or (ref.width is not None and width > ref.width)
        ):
            raise APIError(
                f"Requested writing within range [{range_}], but tried writing "
                f"{len(values)}x{width} values",
                status_code=400,
            )
        return self._write(
            spreadsheet_id,
            sheet,
            ref.start_row or 0,
            ref.start_col or 0,
            values,
            value_input_option,
        )

    async def append_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = USER_ENTERED,
        insert_data_option: str = INSERT_ROWS,
    ) -> dict[str, Any]:
        self.calls.append(("append_values", range_))
        sheet, ref = self._resolve(spreadsheet_id, range_)

        start_row = ref.start_row or 0
        start_col = ref.start_col or 0
        insert_at = start_row
        for r in range(start_row, len(sheet.rows)):
            if sheet.row_has_data(r, start_col, ref.end_col):
                insert_at = r + 1

        if insert_data_option == INSERT_ROWS and insert_at < len(sheet.rows):
            sheet.rows[insert_at:insert_at] = [[] for _ in values]

        updates = self._write(
            spreadsheet_id, sheet, insert_at, start_col, values, value_input_option
        )
        return {
            "spreadsheetId": spreadsheet_id,
            "tableRange": format_range(ref),
            "updates": updates,
        }

    async def clear_values(self, spreadsheet_id: str, range_: str) -> dict[str, Any]:
        self.calls.append(("clear_values", range_))
        sheet, ref = self._resolve(spreadsheet_id, range_)

        end_row = ref.end_row if ref.end_row is not None else len(sheet.rows)
        for r in range(ref.start_row or 0, min(end_row, len(sheet.rows))):
            cells = sheet.rows[r]
            end_col = ref.end_col if ref.end_col is not None else len(cells)
            for c in range(ref.start_col or 0, min(end_col, len(cells))):
                cells[c] = None

        return {"spreadsheetId": spreadsheet_id, "clearedRange": format_range(ref)}

    async def batch_update(
        self, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        self.calls.append(("batch_update", spreadsheet_id))
        self._check_spreadsheet(spreadsheet_id)

        replies: list[dict[str, Any]] = []
        for i, request in enumerate(requests):
            if "deleteDimension" not in request:
                kind = next(iter(request), "<empty>")
                raise APIError(
                    f"Invalid requests[{i}]: unsupported request {kind}", status_code=400
                )
            self._delete_dimension(i, request["deleteDimension"]["range"])
            replies.append({})

        return {"spreadsheetId": spreadsheet_id, "replies": replies}

    def _delete_dimension(self, i: int, dimension_range: dict[str, Any]) -> None:
        sheet_id = dimension_range.get("sheetId")
        sheet = next((s for s in self._sheets.values() if s.sheet_id == sheet_id), None)
        if sheet is None:
            raise NotFoundError(
                str(sheet_id),
                f"Invalid requests[{i}].deleteDimension: No grid with id: {sheet_id}",
            )

        start = dimension_range["startIndex"]
        end = dimension_range["endIndex"]
        if dimension_range.get("dimension") == "COLUMNS":
            for cells in sheet.rows:
                del cells[start:end]
        else:
            del sheet.rows[start:end]

    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        self.calls.append(("get_metadata", spreadsheet_id))
        self._check_spreadsheet(spreadsheet_id)

        sheets = [
            {
                "properties": {
                    "sheetId": sheet.sheet_id,
                    "title": sheet.title,
                    "index": index,
                    "sheetType": "GRID",
                    "gridProperties": {
                        "rowCount": max(DEFAULT_ROW_COUNT, len(sheet.rows)),
                        "columnCount": max(DEFAULT_COLUMN_COUNT, sheet.column_count),
                    },
                }
            }
            for index, sheet in enumerate(self._sheets.values())
        ]
        response = {
            "spreadsheetId": spreadsheet_id,
            "properties": {"title": self._title},
            "sheets": sheets,
        }
        return parse_metadata(spreadsheet_id, response)

    async def close(self) -> None:
        self.closed = True

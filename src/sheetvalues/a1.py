"""
A1 notation for sheetvalues.

Parses and renders range addresses such as ``Sheet1!A1:D10``,
``Sheet1!A:D``, ``Sheet1!2:5`` and ``'My Sheet'!B3``, and converts between
A1 coordinates and zero-based indices.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from sheetvalues.exceptions import ValidationError

_CELL_RE = re.compile(r"^([A-Za-z]+)([0-9]+)$")
_COLUMN_RE = re.compile(r"^[A-Za-z]+$")
_ROW_RE = re.compile(r"^[0-9]+$")
# Column letters stop at ZZZ, so longer prefixes are plain titles
_BARE_CELL_RE = re.compile(r"^[A-Za-z]{1,3}[0-9]+$")


@dataclass(frozen=True)
class RangeRef:
    """A parsed range address.

    Indices are zero-based; ``end_row`` and ``end_col`` are exclusive, the
    same convention as a GridRange. ``None`` means unbounded in that
    direction, so a whole-sheet reference has all four set to ``None``.
    """

    sheet_title: str
    start_row: int | None = None
    end_row: int | None = None
    start_col: int | None = None
    end_col: int | None = None

    @property
    def is_whole_sheet(self) -> bool:
        return (
            self.start_row is None
            and self.end_row is None
            and self.start_col is None
            and self.end_col is None
        )

    @property
    def height(self) -> int | None:
        if self.start_row is None or self.end_row is None:
            return None
        return self.end_row - self.start_row

    @property
    def width(self) -> int | None:
        if self.start_col is None or self.end_col is None:
            return None
        return self.end_col - self.start_col

    @property
    def is_single_cell(self) -> bool:
        return self.height == 1 and self.width == 1

    def __str__(self) -> str:
        return format_range(self)


def column_index_to_letter(index: int) -> str:
    """Convert a zero-based column index to A1 notation letter(s).

    Examples:
        0 -> A, 1 -> B, 25 -> Z, 26 -> AA, 27 -> AB, 702 -> AAA
    """
    if index < 0:
        raise ValidationError(f"Column index must be non-negative: {index}")
    result = ""
    while True:
        result = chr(ord("A") + (index % 26)) + result
        index = index // 26 - 1
        if index < 0:
            break
    return result


def letter_to_column_index(letter: str) -> int:
    """Convert A1 notation letter(s) to a zero-based column index.

    Examples:
        A -> 0, B -> 1, Z -> 25, AA -> 26, AB -> 27, AAA -> 702
    """
    if not _COLUMN_RE.match(letter):
        raise ValidationError(f"Invalid column letter: {letter!r}")
    result = 0
    for char in letter.upper():
        result = result * 26 + (ord(char) - ord("A") + 1)
    return result - 1


def cell_to_a1(row_index: int, col_index: int) -> str:
    """Convert zero-based row and column indices to A1 notation.

    Examples:
        (0, 0) -> A1, (0, 1) -> B1, (9, 2) -> C10
    """
    return f"{column_index_to_letter(col_index)}{row_index + 1}"


def a1_to_cell(a1: str) -> tuple[int, int]:
    """Convert A1 notation to zero-based (row_index, col_index).

    Examples:
        A1 -> (0, 0), B1 -> (0, 1), C10 -> (9, 2)
    """
    match = _CELL_RE.match(a1)
    if not match:
        raise ValidationError(f"Invalid A1 notation: {a1!r}")
    col_letter, row_str = match.groups()
    row = int(row_str)
    if row < 1:
        raise ValidationError(f"Row numbers start at 1: {a1!r}")
    return row - 1, letter_to_column_index(col_letter)


def escape_sheet_title(title: str) -> str:
    """Escape a sheet title for use in an A1 range.

    Titles containing spaces or punctuation, or starting with a digit,
    are wrapped in single quotes with embedded quotes doubled.
    """
    needs_quoting = (
        not title
        or not re.match(r"^[A-Za-z0-9_]+$", title)
        or title[0].isdigit()
        or _BARE_CELL_RE.match(title) is not None
    )
    if needs_quoting:
        escaped = title.replace("'", "''")
        return f"'{escaped}'"
    return title


def _split_sheet_title(text: str) -> tuple[str, str | None]:
    """Split ``text`` into (sheet_title, cells); cells is None if absent."""
    if text.startswith("'"):
        chars: list[str] = []
        i = 1
        while i < len(text):
            if text[i] == "'":
                if i + 1 < len(text) and text[i + 1] == "'":
                    chars.append("'")
                    i += 2
                    continue
                break
            chars.append(text[i])
            i += 1
        else:
            raise ValidationError(f"Unterminated quoted sheet title in {text!r}")

        rest = text[i + 1 :]
        if not rest:
            return "".join(chars), None
        if not rest.startswith("!"):
            raise ValidationError(f"Expected '!' after quoted sheet title in {text!r}")
        return "".join(chars), rest[1:]

    title, sep, cells = text.partition("!")
    if not sep:
        return title, None
    return title, cells


def _looks_like_cells(text: str) -> bool:
    if ":" not in text:
        return _BARE_CELL_RE.match(text) is not None
    parts = text.split(":")
    if len(parts) > 2:
        return False
    return all(
        _CELL_RE.match(p) or _COLUMN_RE.match(p) or _ROW_RE.match(p) for p in parts
    )


def _parse_cells(title: str, cells: str, original: str) -> RangeRef:
    if not cells:
        raise ValidationError(f"Missing cell reference after '!' in {original!r}")

    start, sep, end = cells.partition(":")
    if not sep:
        end = start
    if not start or not end or ":" in end:
        raise ValidationError(f"Malformed cell reference in {original!r}")

    if _CELL_RE.match(start) and _CELL_RE.match(end):
        start_row, start_col = a1_to_cell(start)
        end_row, end_col = a1_to_cell(end)
        if end_row < start_row or end_col < start_col:
            raise ValidationError(f"Range corners are inverted in {original!r}")
        return RangeRef(title, start_row, end_row + 1, start_col, end_col + 1)

    if _COLUMN_RE.match(start) and _COLUMN_RE.match(end):
        start_col = letter_to_column_index(start)
        end_col = letter_to_column_index(end)
        if end_col < start_col:
            raise ValidationError(f"Column span is inverted in {original!r}")
        return RangeRef(title, None, None, start_col, end_col + 1)

    if sep and _ROW_RE.match(start) and _ROW_RE.match(end):
        start_row, end_row = int(start), int(end)
        if start_row < 1 or end_row < 1:
            raise ValidationError(f"Row numbers start at 1 in {original!r}")
        if end_row < start_row:
            raise ValidationError(f"Row span is inverted in {original!r}")
        return RangeRef(title, start_row - 1, end_row, None, None)

    raise ValidationError(f"Malformed cell reference in {original!r}")


def parse_range(text: str) -> RangeRef:
    """Parse a range address into a RangeRef.

    Accepted forms:
        Sheet1!A1:D10   rectangle
        Sheet1!B3       single cell
        Sheet1!A:D      whole columns
        Sheet1!2:5      whole rows
        Sheet1          whole sheet
        'My Sheet'!A1   quoted title ('' escapes a quote)

    Raises:
        ValidationError: if the address has no sheet title, is malformed,
            or its corners are inverted
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Range must be a non-empty string")
    text = text.strip()

    title, cells = _split_sheet_title(text)
    if not title:
        raise ValidationError(f"Range has no sheet title: {text!r}")

    if cells is None:
        # An unqualified cell reference would silently target the first sheet
        if not text.startswith("'") and _looks_like_cells(title):
            raise ValidationError(f"Range has no sheet title: {text!r}")
        return RangeRef(title)

    return _parse_cells(title, cells, text)


def range_to_a1(
    start_row: int | None,
    end_row: int | None,
    start_col: int | None,
    end_col: int | None,
) -> str:
    """Convert zero-based range indices to A1 notation.

    Handles unbounded ranges (None values).

    Examples:
        (0, 10, 0, 5) -> A1:E10
        (None, None, 0, 1) -> A:A (full column)
        (0, 1, None, None) -> 1:1 (full row)
    """
    if start_row is None and end_row is None and start_col is not None and end_col is not None:
        return f"{column_index_to_letter(start_col)}:{column_index_to_letter(end_col - 1)}"

    if start_col is None and end_col is None and start_row is not None and end_row is not None:
        return f"{start_row + 1}:{end_row}"

    if start_row is not None and start_col is not None:
        start_a1 = cell_to_a1(start_row, start_col)
        if end_row is not None and end_col is not None:
            if end_row - start_row == 1 and end_col - start_col == 1:
                return start_a1
            return f"{start_a1}:{cell_to_a1(end_row - 1, end_col - 1)}"
        return start_a1

    return ""


def format_range(ref: RangeRef) -> str:
    """Render a RangeRef as a canonical range address."""
    title = escape_sheet_title(ref.sheet_title)
    if ref.is_whole_sheet:
        return title
    return f"{title}!{range_to_a1(ref.start_row, ref.end_row, ref.start_col, ref.end_col)}"

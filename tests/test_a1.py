"""Tests for sheetvalues.a1 module."""

import pytest

from sheetvalues.a1 import (
    RangeRef,
    a1_to_cell,
    cell_to_a1,
    column_index_to_letter,
    escape_sheet_title,
    format_range,
    letter_to_column_index,
    parse_range,
    range_to_a1,
)
from sheetvalues.exceptions import ValidationError


class TestColumnConversion:
    """Tests for column index to letter conversion."""

    def test_single_letters(self) -> None:
        assert column_index_to_letter(0) == "A"
        assert column_index_to_letter(25) == "Z"

    def test_multiple_letters(self) -> None:
        assert column_index_to_letter(26) == "AA"
        assert column_index_to_letter(701) == "ZZ"
        assert column_index_to_letter(702) == "AAA"

    def test_letter_to_index(self) -> None:
        assert letter_to_column_index("A") == 0
        assert letter_to_column_index("z") == 25
        assert letter_to_column_index("AB") == 27
        assert letter_to_column_index("AAA") == 702

    def test_roundtrip(self) -> None:
        for i in range(1000):
            assert letter_to_column_index(column_index_to_letter(i)) == i

    def test_invalid(self) -> None:
        with pytest.raises(ValidationError):
            column_index_to_letter(-1)
        with pytest.raises(ValidationError):
            letter_to_column_index("A1")


class TestCellConversion:
    """Tests for cell coordinate conversion."""

    def test_cell_to_a1(self) -> None:
        assert cell_to_a1(0, 0) == "A1"
        assert cell_to_a1(9, 2) == "C10"

    def test_a1_to_cell(self) -> None:
        assert a1_to_cell("A1") == (0, 0)
        assert a1_to_cell("c10") == (9, 2)
        assert a1_to_cell("AA1") == (0, 26)

    def test_a1_to_cell_invalid(self) -> None:
        for bad in ("invalid", "123", "", "A0"):
            with pytest.raises(ValidationError):
                a1_to_cell(bad)

    def test_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            a1_to_cell("nope")


class TestParseRange:
    """Tests for range address parsing."""

    def test_rectangle(self) -> None:
        ref = parse_range("Sheet1!A1:D10")
        assert ref == RangeRef("Sheet1", start_row=0, end_row=10, start_col=0, end_col=4)
        assert ref.height == 10
        assert ref.width == 4

    def test_single_cell(self) -> None:
        ref = parse_range("Sheet1!B3")
        assert ref == RangeRef("Sheet1", start_row=2, end_row=3, start_col=1, end_col=2)
        assert ref.is_single_cell
        assert not parse_range("Sheet1!B3:B4").is_single_cell

    def test_whole_columns(self) -> None:
        ref = parse_range("Sheet1!A:D")
        assert ref == RangeRef("Sheet1", start_col=0, end_col=4)
        assert ref.height is None
        assert ref.width == 4

    def test_whole_rows(self) -> None:
        ref = parse_range("Sheet1!2:5")
        assert ref == RangeRef("Sheet1", start_row=1, end_row=5)
        assert ref.width is None

    def test_whole_sheet(self) -> None:
        ref = parse_range("Sheet1")
        assert ref.is_whole_sheet
        assert ref.sheet_title == "Sheet1"

    def test_title_with_spaces(self) -> None:
        assert parse_range("My Data!A1:B2").sheet_title == "My Data"

    def test_quoted_title(self) -> None:
        ref = parse_range("'Q1 2024'!A1:B2")
        assert ref.sheet_title == "Q1 2024"
        assert ref.end_row == 2

    def test_quoted_title_with_escaped_quote_and_bang(self) -> None:
        ref = parse_range("'Bob''s!Sheet'!C1")
        assert ref.sheet_title == "Bob's!Sheet"
        assert ref.start_col == 2

    def test_quoted_whole_sheet(self) -> None:
        assert parse_range("'A1'").sheet_title == "A1"

    def test_lowercase_cells(self) -> None:
        assert parse_range("Sheet1!a1:b2") == parse_range("Sheet1!A1:B2")

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "!A1:B2",
            "A1:B2",
            "A1",
            "A:B",
            "Sheet1!",
            "Sheet1!B2:A1",
            "Sheet1!A2:B1",
            "Sheet1!D:A",
            "Sheet1!5:2",
            "Sheet1!A1:D",
            "Sheet1!A0:B2",
            "Sheet1!0:3",
            "Sheet1!A1:B2:C3",
            "Sheet1!$A$1",
            "'Unterminated!A1",
            "'Title'A1",
        ],
    )
    def test_rejects_malformed(self, text: str) -> None:
        with pytest.raises(ValidationError):
            parse_range(text)

    def test_rejects_non_string(self) -> None:
        with pytest.raises(ValidationError):
            parse_range(None)  # type: ignore[arg-type]


class TestFormatRange:
    """Tests for rendering ranges."""

    def test_range_to_a1(self) -> None:
        assert range_to_a1(0, 10, 0, 5) == "A1:E10"
        assert range_to_a1(None, None, 0, 1) == "A:A"
        assert range_to_a1(None, None, 0, 4) == "A:D"
        assert range_to_a1(0, 1, None, None) == "1:1"
        assert range_to_a1(2, 3, 1, 2) == "B3"

    def test_escape_sheet_title(self) -> None:
        assert escape_sheet_title("Sheet1") == "Sheet1"
        assert escape_sheet_title("My Sheet") == "'My Sheet'"
        assert escape_sheet_title("Bob's") == "'Bob''s'"
        assert escape_sheet_title("2024") == "'2024'"
        assert escape_sheet_title("AB12") == "'AB12'"

    def test_format_canonical(self) -> None:
        assert format_range(parse_range("Sheet1!a1:b2")) == "Sheet1!A1:B2"
        assert format_range(parse_range("Sheet1!A:B")) == "Sheet1!A:B"
        assert format_range(parse_range("Sheet1!C4:C4")) == "Sheet1!C4"
        assert format_range(parse_range("Sheet1!3:4")) == "Sheet1!3:4"
        assert format_range(parse_range("My Sheet!A1:B2")) == "'My Sheet'!A1:B2"
        assert format_range(parse_range("Sheet1")) == "Sheet1"

    def test_format_reparses_to_same_ref(self) -> None:
        for text in ("'Bob''s!Sheet'!C1:D9", "Data!B:F", "'Q1 2024'!7:9", "'AB12'"):
            ref = parse_range(text)
            assert parse_range(format_range(ref)) == ref

    def test_str(self) -> None:
        assert str(parse_range("Sheet1!A1:B2")) == "Sheet1!A1:B2"

"""CLI entry point for sheetvalues.

Usage:
    python -m sheetvalues [-s SPREADSHEET] sheets
    python -m sheetvalues [-s SPREADSHEET] read <range>
    python -m sheetvalues [-s SPREADSHEET] update <range> <json|@file|->
    python -m sheetvalues [-s SPREADSHEET] append <range> <json|@file|->
    python -m sheetvalues [-s SPREADSHEET] clear <range>
    python -m sheetvalues [-s SPREADSHEET] delete-rows <sheet_id> <start> <end>

Results are printed to stdout as JSON. The spreadsheet defaults to
SHEETVALUES_SPREADSHEET_ID.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from loguru import logger

from sheetvalues.client import Matrix, WorkbookClient
from sheetvalues.config import get_settings
from sheetvalues.credentials import get_access_token
from sheetvalues.exceptions import SheetValuesError, ValidationError
from sheetvalues.logging import configure_logging
from sheetvalues.transport import (
    UNFORMATTED_VALUE,
    USER_ENTERED,
    VALUE_INPUT_OPTIONS,
    VALUE_RENDER_OPTIONS,
    GoogleSheetsTransport,
)


def parse_spreadsheet_id(id_or_url: str) -> str:
    """Extract spreadsheet ID from a URL or return as-is if already an ID."""
    # https://docs.google.com/spreadsheets/d/SPREADSHEET_ID/edit...
    url_pattern = r"docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)"
    match = re.search(url_pattern, id_or_url)
    if match:
        return match.group(1)
    return id_or_url.strip()


def load_matrix(source: str) -> Matrix:
    """Load a matrix from inline JSON, ``@path`` or ``-`` (stdin)."""
    if source == "-":
        text = sys.stdin.read()
    elif source.startswith("@"):
        path = Path(source[1:])
        if not path.exists():
            raise ValidationError(f"Values file not found: {path}")
        text = path.read_text(encoding="utf-8")
    else:
        text = source

    try:
        matrix = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Values are not valid JSON: {e}") from e
    if not isinstance(matrix, list):
        raise ValidationError("Values must be a JSON array of rows")
    return matrix


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


async def _run_with_client(
    args: argparse.Namespace,
    operation: Callable[[WorkbookClient], Awaitable[Any]],
) -> int:
    """Build a client from settings, run one operation and print its result."""
    settings = get_settings()
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet or settings.spreadsheet_id)

    try:
        access_token = get_access_token(settings)
    except SheetValuesError as e:
        print(f"Authentication failed: {e}", file=sys.stderr)
        return 1

    transport = GoogleSheetsTransport(access_token, timeout=settings.timeout)
    try:
        client = WorkbookClient(transport, spreadsheet_id)
        result = await operation(client)
        _print_json(result)
        return 0
    except SheetValuesError as e:
        logger.opt(exception=e).debug("{} failed", args.command)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await transport.close()


async def cmd_sheets(args: argparse.Namespace) -> int:
    """List sheet titles and IDs."""
    return await _run_with_client(args, lambda client: client.list_sheets())


async def cmd_read(args: argparse.Namespace) -> int:
    """Read the values of a range."""
    return await _run_with_client(
        args,
        lambda client: client.read(args.range, value_render_option=args.render),
    )


async def cmd_update(args: argparse.Namespace) -> int:
    """Overwrite the values of a range."""
    try:
        matrix = load_matrix(args.values)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    async def run(client: WorkbookClient) -> dict[str, Any]:
        cells = await client.update(args.range, matrix, value_input_option=args.input)
        return {"updatedCells": cells}

    return await _run_with_client(args, run)


async def cmd_append(args: argparse.Namespace) -> int:
    """Append rows below the data in a range."""
    try:
        matrix = load_matrix(args.values)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    async def run(client: WorkbookClient) -> dict[str, Any]:
        updated_range = await client.append(args.range, matrix, value_input_option=args.input)
        return {"updatedRange": updated_range}

    return await _run_with_client(args, run)


async def cmd_clear(args: argparse.Namespace) -> int:
    """Clear the values of a range."""

    async def run(client: WorkbookClient) -> dict[str, Any]:
        return {"clearedRange": await client.clear(args.range)}

    return await _run_with_client(args, run)


async def cmd_delete_rows(args: argparse.Namespace) -> int:
    """Delete rows [start, end) from a sheet."""

    async def run(client: WorkbookClient) -> dict[str, Any]:
        success = await client.delete_rows(args.sheet_id, args.start, args.end)
        return {"success": success}

    return await _run_with_client(args, run)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sheetvalues",
        description="Read and write ranges of a Google Sheets spreadsheet",
    )
    parser.add_argument(
        "-s",
        "--spreadsheet",
        default=None,
        help="Spreadsheet ID or full Google Sheets URL (default: SHEETVALUES_SPREADSHEET_ID)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log requests to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sheets_parser = subparsers.add_parser("sheets", help="List sheet titles and IDs")
    sheets_parser.set_defaults(func=cmd_sheets)

    read_parser = subparsers.add_parser("read", help="Read the values of a range")
    read_parser.add_argument("range", help="Range such as 'Sheet1!A1:D10'")
    read_parser.add_argument(
        "--render",
        choices=sorted(VALUE_RENDER_OPTIONS),
        default=UNFORMATTED_VALUE,
        help=f"How values are rendered (default: {UNFORMATTED_VALUE})",
    )
    read_parser.set_defaults(func=cmd_read)

    for name, func, help_text in (
        ("update", cmd_update, "Overwrite the values of a range"),
        ("append", cmd_append, "Append rows below the data in a range"),
    ):
        write_parser = subparsers.add_parser(name, help=help_text)
        write_parser.add_argument("range", help="Range such as 'Sheet1!A:D'")
        write_parser.add_argument(
            "values",
            help="JSON array of rows, @path to a JSON file, or - for stdin",
        )
        write_parser.add_argument(
            "--input",
            choices=sorted(VALUE_INPUT_OPTIONS),
            default=USER_ENTERED,
            help=f"How input is interpreted (default: {USER_ENTERED})",
        )
        write_parser.set_defaults(func=func)

    clear_parser = subparsers.add_parser("clear", help="Clear the values of a range")
    clear_parser.add_argument("range", help="Range such as 'Sheet1!A2:D10'")
    clear_parser.set_defaults(func=cmd_clear)

    delete_parser = subparsers.add_parser(
        "delete-rows",
        help="Delete rows [start, end) from a sheet (zero-based)",
    )
    delete_parser.add_argument("sheet_id", type=int, help="Numeric sheet ID (see 'sheets')")
    delete_parser.add_argument("start", type=int, help="First row index to delete")
    delete_parser.add_argument("end", type=int, help="One past the last row index")
    delete_parser.set_defaults(func=cmd_delete_rows)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(
        json_output=settings.log_json,
        log_level="DEBUG" if args.verbose else settings.log_level,
    )

    result: int = asyncio.run(args.func(args))
    return result


if __name__ == "__main__":
    sys.exit(main())

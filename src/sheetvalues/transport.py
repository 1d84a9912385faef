"""Transport layer for spreadsheet values.

Defines the Transport protocol and the production implementation:
- GoogleSheetsTransport: Google Sheets API v4 over httpx

An in-process implementation for tests lives in sheetvalues.memory.
"""

from __future__ import annotations

import ssl
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import certifi
import httpx
from loguru import logger

from sheetvalues.exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    TransportError,
)

# API constants
API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_TIMEOUT = 60

USER_ENTERED = "USER_ENTERED"
RAW = "RAW"
VALUE_INPUT_OPTIONS = frozenset({USER_ENTERED, RAW})

UNFORMATTED_VALUE = "UNFORMATTED_VALUE"
FORMATTED_VALUE = "FORMATTED_VALUE"
FORMULA = "FORMULA"
VALUE_RENDER_OPTIONS = frozenset({UNFORMATTED_VALUE, FORMATTED_VALUE, FORMULA})

INSERT_ROWS = "INSERT_ROWS"
OVERWRITE = "OVERWRITE"

# Messages the API uses for a sheet that does not exist (returned as HTTP 400)
_MISSING_SHEET_MARKERS = ("Unable to parse range", "No grid with id")


@dataclass(frozen=True)
class SheetInfo:
    """Information about a single sheet within a spreadsheet.

    ``sheet_id`` is None and ``title`` is empty when the API omits them.
    """

    sheet_id: int | None
    title: str
    index: int = 0
    row_count: int = 0
    column_count: int = 0


@dataclass(frozen=True)
class SpreadsheetMetadata:
    """Metadata about a spreadsheet, including sheet information."""

    spreadsheet_id: str
    title: str
    sheets: tuple[SheetInfo, ...]
    raw: dict[str, Any]  # Original API response


def parse_metadata(spreadsheet_id: str, response: dict[str, Any]) -> SpreadsheetMetadata:
    """Build SpreadsheetMetadata from a spreadsheets.get response."""
    sheets: list[SheetInfo] = []
    for sheet in response.get("sheets", []):
        props = sheet.get("properties") or {}
        grid_props = props.get("gridProperties") or {}
        sheets.append(
            SheetInfo(
                sheet_id=props.get("sheetId"),
                title=props.get("title") or "",
                index=props.get("index", 0),
                row_count=grid_props.get("rowCount", 0),
                column_count=grid_props.get("columnCount", 0),
            )
        )

    return SpreadsheetMetadata(
        spreadsheet_id=response.get("spreadsheetId", spreadsheet_id),
        title=(response.get("properties") or {}).get("title", ""),
        sheets=tuple(sheets),
        raw=response,
    )


class Transport(ABC):
    """Abstract base class for spreadsheet values transport.

    Each method is a single request/response round trip. Implementations
    raise the exceptions from sheetvalues.exceptions and never retry.
    """

    @abstractmethod
    async def get_values(
        self,
        spreadsheet_id: str,
        range_: str,
        *,
        value_render_option: str = UNFORMATTED_VALUE,
    ) -> dict[str, Any]:
        """GET values for a range. Returns a ValueRange dict."""
        ...

    @abstractmethod
    async def update_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = USER_ENTERED,
    ) -> dict[str, Any]:
        """Overwrite values in a range. Returns an UpdateValuesResponse dict."""
        ...

    @abstractmethod
    async def append_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = USER_ENTERED,
        insert_data_option: str = INSERT_ROWS,
    ) -> dict[str, Any]:
        """Append rows after the data in a range. Returns an AppendValuesResponse dict."""
        ...

    @abstractmethod
    async def clear_values(self, spreadsheet_id: str, range_: str) -> dict[str, Any]:
        """Clear values in a range. Returns a ClearValuesResponse dict."""
        ...

    @abstractmethod
    async def batch_update(
        self, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Apply batchUpdate requests. Returns a BatchUpdateSpreadsheetResponse dict."""
        ...

    @abstractmethod
    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """Fetch spreadsheet metadata without cell data."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class GoogleSheetsTransport(Transport):
    """Production transport that talks to the Google Sheets API.

    Handles authentication headers, SSL, and HTTP communication.
    """

    def __init__(
        self,
        access_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            access_token: OAuth2 access token with the spreadsheets scope
            timeout: Request timeout in seconds
            http_client: Preconfigured client, used instead of building one
        """
        self._access_token = access_token
        self._timeout = timeout
        if http_client is not None:
            http_client.headers["Authorization"] = f"Bearer {access_token}"
            self._client = http_client
            return

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=ssl_context,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    async def get_values(
        self,
        spreadsheet_id: str,
        range_: str,
        *,
        value_render_option: str = UNFORMATTED_VALUE,
    ) -> dict[str, Any]:
        """GET /v4/spreadsheets/{id}/values/{range}"""
        return await self._request(
            "GET",
            _values_url(spreadsheet_id, range_),
            target=range_,
            params={"valueRenderOption": value_render_option},
        )

    async def update_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = USER_ENTERED,
    ) -> dict[str, Any]:
        """PUT /v4/spreadsheets/{id}/values/{range}"""
        return await self._request(
            "PUT",
            _values_url(spreadsheet_id, range_),
            target=range_,
            params={"valueInputOption": value_input_option},
            json={"range": range_, "majorDimension": "ROWS", "values": values},
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
        """POST /v4/spreadsheets/{id}/values/{range}:append"""
        return await self._request(
            "POST",
            _values_url(spreadsheet_id, range_, ":append"),
            target=range_,
            params={
                "valueInputOption": value_input_option,
                "insertDataOption": insert_data_option,
            },
            json={"range": range_, "majorDimension": "ROWS", "values": values},
        )

    async def clear_values(self, spreadsheet_id: str, range_: str) -> dict[str, Any]:
        """POST /v4/spreadsheets/{id}/values/{range}:clear"""
        return await self._request(
            "POST",
            _values_url(spreadsheet_id, range_, ":clear"),
            target=range_,
            json={},
        )

    async def batch_update(
        self, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """POST /v4/spreadsheets/{id}:batchUpdate"""
        return await self._request(
            "POST",
            f"{API_BASE}/{spreadsheet_id}:batchUpdate",
            target=spreadsheet_id,
            json={"requests": requests},
        )

    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """GET /v4/spreadsheets/{id} restricted to sheet properties."""
        response = await self._request(
            "GET",
            f"{API_BASE}/{spreadsheet_id}",
            target=spreadsheet_id,
            params={"fields": "spreadsheetId,properties.title,sheets.properties"},
        )
        return parse_metadata(spreadsheet_id, response)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        target: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and map failures to exceptions."""
        logger.debug("{} {}", method, url)
        try:
            response = await self._client.request(method, url, params=params, json=json)
            response.raise_for_status()
            result = response.json()
            if not isinstance(result, dict):
                raise TransportError(
                    f"Expected a JSON object from {url}, got {type(result).__name__}"
                )
            return result
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = _error_message(e.response)
            if status == 401:
                raise AuthenticationError("Invalid or expired access token") from e
            if status == 403:
                raise AuthenticationError(
                    "Access denied. Check your scopes and permissions."
                ) from e
            if status == 404:
                raise NotFoundError(
                    target, "Spreadsheet not found. Check the ID and sharing permissions."
                ) from e
            if status == 400 and any(m in message for m in _MISSING_SHEET_MARKERS):
                raise NotFoundError(target, message) from e
            raise APIError(f"API error ({status}): {message}", status_code=status) from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e
        except ValueError as e:
            raise TransportError(f"Invalid JSON in response from {url}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _values_url(spreadsheet_id: str, range_: str, suffix: str = "") -> str:
    return f"{API_BASE}/{spreadsheet_id}/values/{urllib.parse.quote(range_, safe='')}{suffix}"


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from an API error body."""
    try:
        error_data = response.json()
    except ValueError:
        return response.text
    # OAuth errors send "error" as a string; proxies may send any JSON
    error = error_data.get("error") if isinstance(error_data, dict) else None
    if not isinstance(error, dict):
        return response.text
    return str(error.get("message", response.text))

"""Tests for GoogleSheetsTransport request composition and error mapping."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from sheetvalues.exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    TransportError,
)
from sheetvalues.transport import API_BASE, GoogleSheetsTransport, parse_metadata

Handler = Callable[[httpx.Request], httpx.Response]


def make_transport(handler: Handler) -> GoogleSheetsTransport:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleSheetsTransport("test-token", http_client=http_client)


def error_response(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


class Recorder:
    """Records requests and answers each with a fixed JSON body."""

    def __init__(self, body: dict[str, Any]) -> None:
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_json(self) -> Any:
        return json.loads(self.last.content)


class TestRequests:
    """Tests for the URL, params and body of each request kind."""

    @pytest.mark.asyncio
    async def test_get_values(self) -> None:
        recorder = Recorder({"range": "Sheet1!A1:B2", "values": [["a", 1]]})
        transport = make_transport(recorder)

        response = await transport.get_values("wb1", "'My Sheet'!A1:B2")
        await transport.close()

        assert response["values"] == [["a", 1]]
        request = recorder.last
        assert request.method == "GET"
        assert request.url.path == "/v4/spreadsheets/wb1/values/'My Sheet'!A1:B2"
        assert "%27My%20Sheet%27%21A1%3AB2" in str(request.url)
        assert request.url.params["valueRenderOption"] == "UNFORMATTED_VALUE"
        assert request.headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_update_values(self) -> None:
        recorder = Recorder({"updatedCells": 4})
        transport = make_transport(recorder)

        response = await transport.update_values("wb1", "Sheet1!A1:B2", [["a", "1"]])

        assert response["updatedCells"] == 4
        assert recorder.last.method == "PUT"
        assert recorder.last.url.params["valueInputOption"] == "USER_ENTERED"
        assert recorder.last_json == {
            "range": "Sheet1!A1:B2",
            "majorDimension": "ROWS",
            "values": [["a", "1"]],
        }

    @pytest.mark.asyncio
    async def test_append_values(self) -> None:
        recorder = Recorder({"updates": {"updatedRange": "Sheet1!A3:B3"}})
        transport = make_transport(recorder)

        await transport.append_values("wb1", "Sheet1!A:B", [["c", 3]], value_input_option="RAW")

        request = recorder.last
        assert request.method == "POST"
        assert request.url.path.endswith("/values/Sheet1!A:B:append")
        assert request.url.params["valueInputOption"] == "RAW"
        assert request.url.params["insertDataOption"] == "INSERT_ROWS"

    @pytest.mark.asyncio
    async def test_clear_values(self) -> None:
        recorder = Recorder({"clearedRange": "Sheet1!A1:B2"})
        transport = make_transport(recorder)

        response = await transport.clear_values("wb1", "Sheet1!A1:B2")

        assert response["clearedRange"] == "Sheet1!A1:B2"
        assert recorder.last.url.path.endswith(":clear")
        assert recorder.last_json == {}

    @pytest.mark.asyncio
    async def test_batch_update(self) -> None:
        recorder = Recorder({"replies": [{}]})
        transport = make_transport(recorder)
        requests = [{"deleteDimension": {"range": {"sheetId": 0}}}]

        await transport.batch_update("wb1", requests)

        assert str(recorder.last.url) == f"{API_BASE}/wb1:batchUpdate"
        assert recorder.last_json == {"requests": requests}

    @pytest.mark.asyncio
    async def test_get_metadata(self) -> None:
        recorder = Recorder(
            {
                "spreadsheetId": "wb1",
                "properties": {"title": "Budget"},
                "sheets": [
                    {
                        "properties": {
                            "sheetId": 7,
                            "title": "Data",
                            "index": 0,
                            "gridProperties": {"rowCount": 50, "columnCount": 4},
                        }
                    }
                ],
            }
        )
        transport = make_transport(recorder)

        metadata = await transport.get_metadata("wb1")

        assert metadata.title == "Budget"
        assert metadata.sheets[0].sheet_id == 7
        assert metadata.sheets[0].row_count == 50
        assert "sheets.properties" in recorder.last.url.params["fields"]


class TestParseMetadata:
    """Tests for metadata parsing of incomplete responses."""

    def test_missing_fields(self) -> None:
        metadata = parse_metadata("wb1", {"sheets": [{}, {"properties": {"sheetId": 3}}]})
        assert metadata.spreadsheet_id == "wb1"
        assert metadata.title == ""
        assert [(s.sheet_id, s.title) for s in metadata.sheets] == [(None, ""), (3, "")]


class TestErrors:
    """Tests for mapping HTTP failures to exceptions."""

    @pytest.mark.parametrize(
        ("status", "message", "expected"),
        [
            (401, "Request had invalid authentication credentials.", AuthenticationError),
            (403, "The caller does not have permission", AuthenticationError),
            (404, "Requested entity was not found.", NotFoundError),
            (400, "Unable to parse range: Missing!A1:B2", NotFoundError),
            (400, "Invalid requests[0].deleteDimension: No grid with id: 9", NotFoundError),
            (400, "Invalid value at 'data.values'", APIError),
            (429, "Quota exceeded", APIError),
            (500, "Internal error encountered.", APIError),
        ],
    )
    @pytest.mark.asyncio
    async def test_status_mapping(
        self, status: int, message: str, expected: type[Exception]
    ) -> None:
        transport = make_transport(lambda request: error_response(status, message))

        with pytest.raises(expected) as exc_info:
            await transport.get_values("wb1", "Sheet1!A1")

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_api_error_keeps_status_and_message(self) -> None:
        transport = make_transport(lambda request: error_response(503, "Backend unavailable"))

        with pytest.raises(APIError) as exc_info:
            await transport.batch_update("wb1", [])

        assert exc_info.value.status_code == 503
        assert "Backend unavailable" in str(exc_info.value)
        assert isinstance(exc_info.value, TransportError)

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.clear_values("wb1", "Sheet1!A1")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        transport = make_transport(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(TransportError):
            await transport.get_metadata("wb1")

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        transport = make_transport(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(APIError) as exc_info:
            await transport.get_values("wb1", "Sheet1!A1")

        assert "Bad Gateway" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_oauth_style_error_body(self) -> None:
        transport = make_transport(
            lambda request: httpx.Response(401, json={"error": "invalid_token"})
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await transport.get_values("wb1", "Sheet1!A1")

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_error_body_that_is_a_list(self) -> None:
        transport = make_transport(lambda request: httpx.Response(502, json=["upstream"]))

        with pytest.raises(APIError) as exc_info:
            await transport.clear_values("wb1", "Sheet1!A1")

        assert exc_info.value.status_code == 502
        assert "upstream" in str(exc_info.value)

    @pytest.mark.parametrize("body", [["values"], "text", 42])
    @pytest.mark.asyncio
    async def test_success_body_that_is_not_an_object(self, body: Any) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=body))

        with pytest.raises(TransportError):
            await transport.get_values("wb1", "Sheet1!A1")

    @pytest.mark.asyncio
    async def test_not_found_is_not_transport_error(self) -> None:
        transport = make_transport(lambda request: error_response(404, "Not found"))

        with pytest.raises(NotFoundError) as exc_info:
            await transport.get_metadata("missing")

        assert not isinstance(exc_info.value, TransportError)
        assert exc_info.value.target == "missing"

"""Shared test fixtures for sheetvalues."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from sheetvalues.client import WorkbookClient
from sheetvalues.config import get_settings
from sheetvalues.memory import InMemoryTransport

WORKBOOK_ID = "workbook-123"


@pytest.fixture
def transport() -> InMemoryTransport:
    """A workbook with Sheet1 (id 0) holding two rows, and an empty Sheet2."""
    return InMemoryTransport(
        {
            "Sheet1": (0, [["a", 1], ["b", 2]]),
            "Sheet2": (1234, []),
        },
        spreadsheet_id=WORKBOOK_ID,
    )


@pytest.fixture
def client(transport: InMemoryTransport) -> WorkbookClient:
    return WorkbookClient(transport, WORKBOOK_ID)


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from SHEETVALUES_* variables and the settings cache."""
    for name in (
        "SHEETVALUES_SPREADSHEET_ID",
        "SHEETVALUES_ACCESS_TOKEN",
        "SHEETVALUES_CREDENTIALS_FILE",
        "SHEETVALUES_TIMEOUT",
        "SHEETVALUES_LOG_LEVEL",
        "SHEETVALUES_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

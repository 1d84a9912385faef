"""Access tokens for the Google Sheets API.

Supports two sources, checked in order:
1. An access token given directly (SHEETVALUES_ACCESS_TOKEN)
2. A service account JSON key file (SHEETVALUES_CREDENTIALS_FILE)
"""

from __future__ import annotations

from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from loguru import logger

from sheetvalues.config import Settings
from sheetvalues.exceptions import AuthenticationError, ConfigError

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def get_access_token(settings: Settings) -> str:
    """Return an OAuth2 access token for the configured credentials.

    Raises:
        ConfigError: If no credentials are configured or the key file is missing
        AuthenticationError: If the key file cannot be exchanged for a token
    """
    if settings.access_token:
        return settings.access_token

    if not settings.credentials_file:
        raise ConfigError(
            "No credentials configured. Set SHEETVALUES_ACCESS_TOKEN or "
            "SHEETVALUES_CREDENTIALS_FILE."
        )

    sa_path = Path(settings.credentials_file).expanduser()
    if not sa_path.exists():
        raise ConfigError(f"Service account file not found: {sa_path}")

    logger.info("Loading credentials from {}", sa_path)
    try:
        credentials = service_account.Credentials.from_service_account_file(
            str(sa_path), scopes=SCOPES
        )
        credentials.refresh(Request())
    except (GoogleAuthError, ValueError) as e:
        raise AuthenticationError(f"Could not obtain a token from {sa_path}: {e}") from e

    logger.info("Authenticated as {}", credentials.service_account_email)
    token: str = credentials.token
    return token

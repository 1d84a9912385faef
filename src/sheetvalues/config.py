"""Command line configuration using pydantic-settings.

Values come from SHEETVALUES_* environment variables or a .env file.
The client itself takes explicit arguments and never reads settings.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from the environment.

    Environment variables:
    - SHEETVALUES_SPREADSHEET_ID: Default spreadsheet ID or URL
    - SHEETVALUES_ACCESS_TOKEN: OAuth2 access token (takes precedence)
    - SHEETVALUES_CREDENTIALS_FILE: Service account JSON key file
    - SHEETVALUES_TIMEOUT: Request timeout in seconds
    - SHEETVALUES_LOG_LEVEL / SHEETVALUES_LOG_JSON: Logging output
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETVALUES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    spreadsheet_id: str = ""
    access_token: str = ""
    credentials_file: str = ""
    timeout: float = 60.0

    log_level: str = "WARNING"
    log_json: bool = False

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is in a sensible range."""
        if not 0 < v <= 600:
            raise ValueError("timeout must be greater than 0 and at most 600 seconds")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    """
    return Settings()

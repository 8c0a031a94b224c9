"""
Client configuration settings.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from routing_client import __version__


class Settings(BaseSettings):
    """Client defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTING_CLIENT_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Request defaults
    DEFAULT_USER_AGENT: str = f"routing-client-python/{__version__}"
    DEFAULT_TIMEOUT: float = 10.0  # seconds
    DEFAULT_MAX_RETRIES: int = 5
    DEFAULT_RETRY_OVER_QUERY_LIMIT: bool = False
    DEFAULT_CONTENT_TYPE: str = "application/json"

    # Exponential backoff: RETRY_BACKOFF_BASE * 2 ** (retry_number - 1)
    RETRY_BACKOFF_BASE: float = 0.1  # seconds
    RETRY_BACKOFF_MAX: float = 60.0  # seconds

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("DEFAULT_TIMEOUT")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("DEFAULT_TIMEOUT must be positive")
        return value

    @field_validator("DEFAULT_MAX_RETRIES")
    @classmethod
    def _non_negative_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("DEFAULT_MAX_RETRIES must not be negative")
        return value

    @field_validator("RETRY_BACKOFF_BASE", "RETRY_BACKOFF_MAX")
    @classmethod
    def _non_negative_backoff(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Retry backoff must not be negative")
        return value

    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request unless overridden by the caller."""
        return {
            "User-Agent": self.DEFAULT_USER_AGENT,
            "Content-Type": self.DEFAULT_CONTENT_TYPE,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()

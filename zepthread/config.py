from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ZepSettings(BaseSettings):
    """Client settings loaded from ``ZEP_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ZEP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="Zep Cloud API key, sent as `Authorization: Api-Key <key>`",
    )
    base_url: str = Field(
        default="https://api.getzep.com",
        description="Zep API base URL",
    )
    api_prefix: str = Field(
        default="/api/v2",
        description="Path prefix of the thread/user endpoints",
    )
    timeout: float = Field(
        default=30,
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        description="Transport retries for 5xx responses and timeouts",
    )
    history_lastn: int = Field(
        default=100,
        description="Number of most recent messages fetched when loading history",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid option."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @field_validator("history_lastn")
    @classmethod
    def validate_history_lastn(cls, v: int) -> int:
        if v < 1:
            raise ValueError("history_lastn must be >= 1")
        return v


@lru_cache
def get_settings() -> ZepSettings:
    """
    Get cached settings instance.

    Call ``get_settings.cache_clear()`` after changing the environment.
    """
    return ZepSettings()

"""Configuration loading for feedlens."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="FEEDLENS_")

    # Reader view (alternate extraction) settings
    reader_timeout: float = Field(default=20.0, description="Seconds before a page fetch gives up")
    reader_user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent for fetches")
    reader_min_content_length: int = Field(
        default=200, description="Characters of text below which an extraction is low quality"
    )

    # Summary settings
    gcp_project_id: str | None = Field(
        default=None, description="Google Cloud project ID; AI summaries are off when unset"
    )
    gcp_region: str = Field(default="europe-west1", description="Google Cloud region")
    gemini_model: str = Field(default="gemini-2.0-flash-001", description="Gemini model name")
    summary_temperature: float = Field(default=0.2, description="Sampling temperature")
    summary_max_output_tokens: int = Field(default=320, description="Token cap for key points")

    # Session settings
    session_cache_size: int = Field(
        default=32, description="Results kept per article view session and variant"
    )

    # Application settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level is a known level name."""
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(
                f"FEEDLENS_LOG_LEVEL '{v}' is not valid. "
                f"Use one of: {', '.join(sorted(LOG_LEVELS))}."
            )
        return v

    @field_validator("gcp_project_id")
    @classmethod
    def validate_project_id(cls, v: str | None) -> str | None:
        """Treat a blank project ID as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("reader_timeout")
    @classmethod
    def validate_reader_timeout(cls, v: float) -> float:
        """Validate the reader timeout is positive."""
        if v <= 0:
            raise ValueError("FEEDLENS_READER_TIMEOUT must be greater than zero.")
        return v

    @field_validator("session_cache_size")
    @classmethod
    def validate_session_cache_size(cls, v: int) -> int:
        """Validate the session cache holds at least one entry."""
        if v < 1:
            raise ValueError("FEEDLENS_SESSION_CACHE_SIZE must be at least 1.")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

"""
Environment settings.
"""
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    log_level: str = Field(default="INFO", description="Log level")
    enable_structured_logging: bool = Field(
        default=True, description="Enable structured JSON logging"
    )

    # Google Gemini API
    gemini_api_key: str = Field(default="", description="Gemini API key")
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )
    request_timeout_seconds: float = Field(
        default=120.0, description="HTTP timeout for generative calls"
    )
    rate_limit_max_attempts: int = Field(
        default=3, description="Attempts per call when the API answers 429"
    )


# Global settings instance
settings = Settings()

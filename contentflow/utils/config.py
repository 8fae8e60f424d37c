"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import List, Optional
from functools import lru_cache
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Claude API (required per LLM call, not at boot)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Timeouts (seconds)
    ANALYSIS_TIMEOUT: int = 45
    IMPROVEMENT_TIMEOUT: int = 50
    HANDLER_TIMEOUT: int = 60

    # Event delivery
    HANDLER_MAX_ATTEMPTS: int = 2

    # Retention
    RETENTION_ENABLED: bool = True
    RETENTION_DAYS: int = 90
    RETENTION_HOUR_UTC: int = 2

    @model_validator(mode="after")
    def check_handler_timeout(self) -> "Settings":
        """A stage must be able to settle its item before the bus gives up on it."""
        slowest_llm_call = max(self.ANALYSIS_TIMEOUT, self.IMPROVEMENT_TIMEOUT)
        if self.HANDLER_TIMEOUT <= slowest_llm_call:
            raise ValueError(
                f"HANDLER_TIMEOUT ({self.HANDLER_TIMEOUT}s) must be greater than "
                f"ANALYSIS_TIMEOUT and IMPROVEMENT_TIMEOUT ({slowest_llm_call}s)"
            )
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()


class ConfigurationError(Exception):
    """A required setting is missing. Raised where the setting is used, not at boot."""
    pass

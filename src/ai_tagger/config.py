"""
Configuration settings for the AI Tagger Engine.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.

Only the HTTP entry point reads the module-level ``settings`` instance. Core
components receive every value explicitly through their constructors.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "AI Tagger Engine"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # === LLM Service ===
    LLM_SERVICE_TYPE: Literal["cloud", "local"] = "local"
    LLM_PROVIDER: str = "openai"  # Only used by the cloud profile
    LLM_ENDPOINT: str = "http://localhost:11434"  # Empty = provider default (cloud)
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "llama3.1"
    LLM_TEMPERATURE: Optional[float] = 0.3  # None keeps the provider default

    # === Deadlines ===
    REQUEST_TIMEOUT_MS: int = 30000
    CONNECTION_TEST_TIMEOUT_MS: int = 10000

    # === Retry ===
    CLOUD_MAX_RETRIES: int = 3
    LOCAL_MAX_RETRIES: int = 2
    RETRY_BASE_DELAY_MS: int = 1000  # Linear backoff: base * attempt

    # === Content ===
    CLOUD_MAX_CONTENT_LENGTH: int = 4000  # chars
    LOCAL_MAX_CONTENT_LENGTH: int = 8000  # chars

    # === Tagging ===
    DEFAULT_MAX_TAGS: int = 5
    TAG_LANGUAGE: str = "default"
    CUSTOM_PROMPT: Optional[str] = None
    PROMPT_TEMPLATES_DIR: str = ""  # Empty = packaged templates

    # === Batch ===
    BATCH_SIZE: int = 5
    BATCH_ITEM_DELAY_MS: int = 200
    BATCH_DELAY_MS: int = 1000
    PROGRESS_INTERVAL_MS: int = 15000

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

    @property
    def max_retries(self) -> int:
        """Retry budget for the active service profile."""
        if self.LLM_SERVICE_TYPE == "cloud":
            return self.CLOUD_MAX_RETRIES
        return self.LOCAL_MAX_RETRIES

    @property
    def max_content_length(self) -> int:
        """Truncation limit for the active service profile."""
        if self.LLM_SERVICE_TYPE == "cloud":
            return self.CLOUD_MAX_CONTENT_LENGTH
        return self.LOCAL_MAX_CONTENT_LENGTH


# Global settings instance (HTTP entry point only)
settings = Settings()

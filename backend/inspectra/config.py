"""
Inspectra Backend — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and exposes a default `settings` instance.
Who:   The default instance is wired into services by `inspectra.dependencies`;
       every service also accepts an explicit `Settings` in its constructor,
       so tests can supply their own without touching the process environment.

The OpenAI credential is deliberately optional at load time. The service
boots without it (health checks still answer); the first inference call
raises ConfigurationError before any network attempt.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from inspectra.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern.
    """

    # ── Inference Service (OpenAI-compatible) ─────────────────────────────
    # Required: YES for any extraction or summary call
    openai_api_key: str = Field(
        default="",
        description="API key for the OpenAI-compatible inference service",
    )

    # What: Optional endpoint override (Azure proxy, local gateway, ...)
    openai_base_url: str | None = Field(default=None)

    # What: Vision-capable chat model used by every pipeline stage
    openai_model: str = Field(default="gpt-4o")

    # ── Output Token Bounds (per stage) ───────────────────────────────────
    # Detection only needs a single `DOMINANT_LANGUAGE: <x>` line
    detection_max_tokens: int = Field(default=100, ge=16, le=1000)
    transcription_max_tokens: int = Field(default=1500, ge=100, le=16000)
    judge_max_tokens: int = Field(default=2000, ge=100, le=16000)
    summary_max_tokens: int = Field(default=2000, ge=100, le=16000)

    # What: Word budget written into the summary prompt
    summary_word_limit: int = Field(default=1000, ge=100, le=5000)

    # ── Retry Configuration ───────────────────────────────────────────────
    # What: Tenacity attempts per inference call. 1 = single attempt, no retry.
    # The summary call is always single-attempt regardless of this value.
    llm_max_attempts: int = Field(default=1, ge=1, le=10)
    retry_min_wait: int = Field(default=2, ge=1, le=30)
    retry_max_wait: int = Field(default=10, ge=5, le=120)

    # ── Uploads & Workspaces ──────────────────────────────────────────────
    # Default: 10MB = 10 * 1024 * 1024
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # What: Upper bound on items (images + text notes) in one workspace
    max_items_per_session: int = Field(default=50, ge=1, le=500)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:5173")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def has_api_key(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key != "your_openai_api_key_here"

    def require_api_key(self) -> str:
        """
        Return the inference credential or fail before any network attempt.

        Raises:
            ConfigurationError: OPENAI_API_KEY is missing or still the placeholder.
        """
        if not self.has_api_key:
            raise ConfigurationError(
                "OpenAI API key is not configured. Please set OPENAI_API_KEY in your environment variables.",
                context={"setting": "OPENAI_API_KEY"},
            )
        return self.openai_api_key


# Default instance, wired into services by inspectra.dependencies
settings = Settings()

"""
Configuration Management for Money Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable threshold of the metrics layer, every AI provider and the
storage location can be seen in one place and is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (primary AI provider)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class GroqSettings(BaseSettings):
    """Groq chat-completions configuration (fallback AI provider)."""

    model_config = SettingsConfigDict(
        env_prefix="GROQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Groq API key"
    )
    model_name: str = Field(
        default="llama-3.3-70b-versatile",
        description="Groq model to use"
    )
    api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for a single request"
    )


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_path: str = Field(
        default="money_manager_data.json",
        description="Path to the JSON file backing the key-value store"
    )
    default_spending_limit: float = Field(
        default=200.0,
        gt=0,
        description="Daily spending limit used until the user sets one"
    )

    @field_validator('data_path')
    @classmethod
    def validate_data_path(cls, v: str) -> str:
        """Warn if the parent directory is missing (it is created on first write)."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            import warnings
            warnings.warn(
                f"Storage directory {parent} does not exist yet. "
                "It will be created on the first write."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging and display
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Currency symbol used in AI prompts"
    )

    # Summary generation
    summary_period_days: int = Field(
        default=30,
        ge=1,
        description="Days between automatically generated summaries"
    )

    # Minimum sample sizes for insights
    anomaly_min_expenses: int = Field(default=5, ge=1)
    stability_min_expenses: int = Field(default=7, ge=1)
    trend_min_expenses: int = Field(default=14, ge=2)
    behavior_min_expenses: int = Field(default=10, ge=1)

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Log levels are matched case-insensitively."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def groq(self) -> GroqSettings:
        return GroqSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    The AI providers are only valid when an API key is present.
    """
    results = {}

    settings = get_settings()

    try:
        results["gemini"] = bool(settings.gemini.api_key)
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        results["groq"] = bool(settings.groq.api_key)
    except Exception as e:
        results["groq"] = False
        results["groq_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results

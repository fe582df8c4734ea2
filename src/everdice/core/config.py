"""Configuration management for Everdice.

Settings are loaded with pydantic-settings from environment variables and an
optional .env file. API keys are held as SecretStr.

Example:
    >>> from everdice.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.narrative.stalling_threshold
    0.4

Environment Variables:
    EVERDICE_AI_API_KEY: API key for the OpenAI-compatible narrator endpoint
    EVERDICE_AI_MODEL: Chat model used for narration
    EVERDICE_DATABASE_PATH: Path to the SQLite database file
    EVERDICE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from everdice.core.exceptions import ConfigurationError


DifficultyTierName = Literal[
    "Easy - Relaxed Story",
    "Normal - Balanced Challenge",
    "Hard - Challenging Adventure",
    "Deadly - Extreme Danger",
]


class AIProviderSettings(BaseSettings):
    """Configuration for the narrator's chat-completion provider.

    Attributes:
        api_key: API key for the provider.
        base_url: Optional base URL for OpenAI-compatible gateways.
        model: Chat model identifier.
        temperature: Sampling temperature for narration.
        max_tokens: Maximum completion tokens per request.
        max_retries: Maximum transport retry attempts.
        timeout_seconds: API request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVERDICE_AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="Narrator API key",
    )
    base_url: str | None = Field(
        default=None,
        description="Base URL for an OpenAI-compatible endpoint",
    )
    model: str = Field(
        default="gpt-4o",
        description="Chat model used for narration",
    )
    temperature: float = Field(
        default=0.8,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: int = Field(
        default=1500,
        ge=64,
        le=16000,
        description="Maximum completion tokens",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum API retry attempts",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="API request timeout",
    )


class StorageSettings(BaseSettings):
    """Configuration for persistence.

    Attributes:
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVERDICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path("data/everdice.db"),
        description="Path to SQLite database",
    )

    @field_validator("database_path", mode="after")
    @classmethod
    def ensure_parent_exists(cls, value: Path) -> Path:
        """Create the database directory if necessary."""
        value.parent.mkdir(parents=True, exist_ok=True)
        return value


class NarrativeSettings(BaseSettings):
    """Configuration for prompt building and stalling detection.

    Attributes:
        stalling_threshold: Repetition ratio above which a narrative stalls.
        stalling_phrase: Phrase that marks a narrative as looping.
        recap_session_count: Number of past sessions included in recaps.
        recent_roll_window_minutes: Age limit for rolls fed to the DM.
        recent_roll_limit: Maximum number of recent rolls fed to the DM.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVERDICE_NARRATIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    stalling_threshold: float = Field(
        default=0.4,
        gt=0.0,
        lt=1.0,
        description="Repetition ratio that flags stalling",
    )
    stalling_phrase: str = Field(
        default="you find yourself where you started",
        min_length=1,
        description="Phrase that flags stalling",
    )
    recap_session_count: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Sessions included in recap prompts",
    )
    recent_roll_window_minutes: int = Field(
        default=10,
        ge=1,
        le=1440,
        description="Recent dice roll window",
    )
    recent_roll_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum recent rolls in a prompt",
    )


class RulesSettings(BaseSettings):
    """Configuration for rules defaults.

    Attributes:
        default_difficulty: Difficulty tier used when a campaign names none.
        critical_hit_rule: Critical hit damage calculation rule.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVERDICE_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_difficulty: DifficultyTierName = Field(
        default="Normal - Balanced Challenge",
        description="Default adventure difficulty tier",
    )
    critical_hit_rule: Literal["double_dice", "double_damage", "max_plus_roll"] = Field(
        default="double_dice",
        description="Critical hit damage calculation",
    )


class APISettings(BaseSettings):
    """Configuration for the HTTP API.

    Attributes:
        title: OpenAPI title.
        cors_origins: Allowed CORS origins.
        default_user_id: User id recorded on rows created by requests.
        host: Interface the server binds to.
        port: Port the server listens on.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVERDICE_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    title: str = Field(default="Everdice API", description="API title")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="CORS origins")
    default_user_id: int = Field(default=1, ge=1, description="Acting user id")
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Listen port")


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Emit JSON logs instead of console output.
        log_file: Optional file that also receives log lines.
        ai: Narrator provider settings.
        storage: Persistence settings.
        narrative: Prompt and stalling settings.
        rules: Rules defaults.
        api: HTTP API settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVERDICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="Everdice", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(default=False, description="JSON log output")
    log_file: Path | None = Field(default=None, description="Log file path")

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    narrative: NarrativeSettings = Field(default_factory=NarrativeSettings)
    rules: RulesSettings = Field(default_factory=RulesSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_logging(self) -> "Settings":
        """Reject DEBUG JSON logging outside debug mode.

        Raises:
            ConfigurationError: If DEBUG JSON logging is requested in production.
        """
        if self.log_level == "DEBUG" and not self.debug and self.log_json:
            raise ConfigurationError(
                "DEBUG logging with JSON output requires debug mode",
                config_key="log_level",
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "DifficultyTierName",
    "AIProviderSettings",
    "StorageSettings",
    "NarrativeSettings",
    "RulesSettings",
    "APISettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]

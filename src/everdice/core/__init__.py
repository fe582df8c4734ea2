"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        EverdiceError: Base exception for all application errors.
        ConfigurationError, ValidationError, StorageError, RecordNotFoundError,
        GameEngineError, DiceRollError, TraceError, AIControlError and its
        subclasses.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from everdice.core.config import (
    AIProviderSettings,
    APISettings,
    NarrativeSettings,
    RulesSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from everdice.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
    DiceRollError,
    EverdiceError,
    GameEngineError,
    RecordNotFoundError,
    StorageError,
    TraceError,
    ValidationError,
)
from everdice.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Configuration
    "AIProviderSettings",
    "APISettings",
    "NarrativeSettings",
    "RulesSettings",
    "Settings",
    "StorageSettings",
    "clear_settings_cache",
    "get_settings",
    # Exceptions
    "AIConnectionError",
    "AIControlError",
    "AIRateLimitError",
    "AIResponseError",
    "ConfigurationError",
    "DiceRollError",
    "EverdiceError",
    "GameEngineError",
    "RecordNotFoundError",
    "StorageError",
    "TraceError",
    "ValidationError",
    # Logging
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
]

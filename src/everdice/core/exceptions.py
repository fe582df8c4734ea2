"""Exception hierarchy for Everdice.

Every error raised by the package derives from :class:`EverdiceError`, so API
handlers can catch one type and still report what went wrong. Subclasses take
their context as keyword arguments (``entity``, ``record_id``, ``model`` and
so on); non-empty values land in ``details`` next to anything passed there
explicitly.

Hierarchy::

    EverdiceError
    ├── ConfigurationError
    ├── ValidationError
    ├── StorageError
    │   └── RecordNotFoundError
    ├── GameEngineError
    │   └── DiceRollError
    ├── TraceError
    └── AIControlError
        ├── AIConnectionError
        ├── AIResponseError
        └── AIRateLimitError
"""

from __future__ import annotations

from typing import Any


def _merge_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    merged = {key: value for key, value in context.items() if value is not None}
    merged.update(details or {})
    return merged


class EverdiceError(Exception):
    """Root of all Everdice errors.

    Attributes:
        message: Human-readable description.
        details: Structured context, rendered after the message by ``str()``.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details) if details else {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{context}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Settings and input
# =============================================================================


class ConfigurationError(EverdiceError):
    """Settings are missing, malformed or contradict each other."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, config_key=config_key))


class ValidationError(EverdiceError):
    """A value is outside what the game rules accept (level 25, party size 0)."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_merge_context(details, field_name=field_name, invalid_value=invalid_value),
        )


# =============================================================================
# Persistence
# =============================================================================


class StorageError(EverdiceError):
    """The SQLite store failed or was asked about an unknown entity."""

    def __init__(
        self,
        message: str,
        *,
        entity: str | None = None,
        record_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message, details=_merge_context(details, entity=entity, record_id=record_id)
        )


class RecordNotFoundError(StorageError):
    """No record with the requested id. Mapped to HTTP 404 by the API."""


# =============================================================================
# Rules engine and trace
# =============================================================================


class GameEngineError(EverdiceError):
    """Rules or dice machinery could not resolve a request."""


class DiceRollError(GameEngineError):
    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, expression=expression))


class TraceError(EverdiceError):
    """A CAMLTrace event or payload was rejected."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, kind=kind))


# =============================================================================
# Language model provider
# =============================================================================


class AIControlError(EverdiceError):
    """The narrator could not get a usable answer from the model provider."""

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_merge_context(details, model=model, provider=provider))


class AIConnectionError(AIControlError):
    """Network failure or timeout talking to the provider."""


class AIResponseError(AIControlError):
    """Empty or unparseable model output."""


class AIRateLimitError(AIControlError):
    """Provider throttled the request."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            model=model,
            provider=provider,
            details=_merge_context(details, retry_after_seconds=retry_after_seconds),
        )


__all__ = [
    "EverdiceError",
    "ConfigurationError",
    "ValidationError",
    "StorageError",
    "RecordNotFoundError",
    "GameEngineError",
    "DiceRollError",
    "TraceError",
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AIRateLimitError",
]

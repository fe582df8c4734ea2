"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

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


class TestEverdiceError:
    """Tests for the base EverdiceError exception."""

    def test_basic_message(self) -> None:
        exc = EverdiceError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        exc = EverdiceError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        repr_str = repr(EverdiceError("Test", details={"x": 1}))
        assert "EverdiceError" in repr_str
        assert "Test" in repr_str


class TestDomainExceptions:
    """Tests for keyword context folded into details."""

    def test_configuration_error(self) -> None:
        exc = ConfigurationError("Bad key", config_key="ai.api_key")
        assert exc.details["config_key"] == "ai.api_key"

    def test_validation_error(self) -> None:
        exc = ValidationError("Out of range", field_name="level", invalid_value=25)
        assert exc.details == {"field_name": "level", "invalid_value": 25}

    def test_record_not_found_is_storage_error(self) -> None:
        exc = RecordNotFoundError("Missing", entity="characters", record_id=7)
        assert isinstance(exc, StorageError)
        assert exc.details["record_id"] == 7
        assert "entity='characters'" in str(exc)

    def test_dice_roll_error(self) -> None:
        exc = DiceRollError("Invalid", expression="1d")
        assert isinstance(exc, GameEngineError)
        assert exc.details["expression"] == "1d"

    def test_trace_error(self) -> None:
        exc = TraceError("Bad payload", kind="dnd5e.roll")
        assert exc.details["kind"] == "dnd5e.roll"

    def test_rate_limit_error(self) -> None:
        exc = AIRateLimitError("Slow down", retry_after_seconds=2.5, model="gpt-4o")
        assert isinstance(exc, AIControlError)
        assert exc.details["retry_after_seconds"] == 2.5
        assert exc.details["model"] == "gpt-4o"


@pytest.mark.parametrize(
    "exc_type",
    [
        ConfigurationError,
        ValidationError,
        StorageError,
        RecordNotFoundError,
        GameEngineError,
        DiceRollError,
        TraceError,
        AIControlError,
        AIConnectionError,
        AIResponseError,
        AIRateLimitError,
    ],
)
def test_all_exceptions_share_base(exc_type: type[EverdiceError]) -> None:
    """Every domain exception can be caught as EverdiceError."""
    with pytest.raises(EverdiceError):
        raise exc_type("boom")

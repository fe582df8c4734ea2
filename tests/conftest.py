"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Everdice test suite.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator

    from fastapi.testclient import TestClient

    from everdice.models import Campaign, Character
    from everdice.storage.database import Database


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Point storage at a temporary directory and reset cached singletons."""
    from everdice.core.config import clear_settings_cache
    from everdice.storage.database import reset_database

    monkeypatch.setenv("EVERDICE_DATABASE_PATH", str(tmp_path / "default.db"))
    clear_settings_cache()
    reset_database()
    yield
    clear_settings_cache()
    reset_database()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "EVERDICE_AI_API_KEY": "test-openai-key",
        "EVERDICE_AI_MODEL": "gpt-4o-mini",
        "EVERDICE_DEBUG": "true",
        "EVERDICE_LOG_LEVEL": "DEBUG",
        "EVERDICE_NARRATIVE_STALLING_THRESHOLD": "0.5",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def db(tmp_path: Path) -> Database:
    """A fresh database in a temporary directory."""
    from everdice.storage.database import Database

    return Database(tmp_path / "everdice-test.db")


@pytest.fixture
def sample_character_data() -> dict[str, Any]:
    """Provide sample character data in the JSON (camelCase) shape."""
    return {
        "name": "Mira Thornwood",
        "race": "Elf",
        "class": "Rogue",
        "level": 3,
        "dexterity": 16,
        "wisdom": 14,
        "hitPoints": 21,
        "maxHitPoints": 21,
        "armorClass": 14,
        "experience": 900,
        "skills": ["Stealth", "Perception"],
    }


@pytest.fixture
def sample_character(db: Database, sample_character_data: dict[str, Any]) -> Character:
    """A stored character."""
    from everdice.models import Character

    return db.create("characters", Character.model_validate(sample_character_data))


@pytest.fixture
def sample_campaign(db: Database) -> Campaign:
    """A stored campaign on the Normal tier."""
    from everdice.models import Campaign

    return db.create(
        "campaigns",
        Campaign(
            title="The Sunken Keep",
            description="A drowned fortress rises from the marsh.",
            narrative_style="grim",
        ),
    )


# =============================================================================
# Narrator Fixtures
# =============================================================================


class FakeChatClient:
    """Stands in for an OpenAI client; returns queued completions in order."""

    def __init__(self, responses: list[str | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def queue(self, *responses: str | Exception) -> None:
        self.responses.extend(responses)

    def _create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        message = SimpleNamespace(content=response)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def narrator(fake_client: FakeChatClient) -> Any:
    """A narrator backed by the fake client with no waits between retries."""
    from tenacity import wait_none

    from everdice.dm.narrator import Narrator

    return Narrator(client=fake_client, retry_wait=wait_none(), max_attempts=3)


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client(db: Database, narrator: Any) -> Generator[TestClient, None, None]:
    """API test client using the temporary database and fake narrator."""
    from fastapi.testclient import TestClient

    from everdice.api.app import create_app
    from everdice.api.deps import get_db, get_narrator

    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_narrator] = lambda: narrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> Any:
    """A seeded dice roller."""
    from everdice.engine.dice import DiceRoller

    return DiceRoller(seed=42)

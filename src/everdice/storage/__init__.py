"""SQLite persistence for Everdice records."""

from __future__ import annotations

from everdice.storage.database import (
    ENTITY_MODELS,
    Database,
    get_database,
    reset_database,
)


__all__ = [
    "ENTITY_MODELS",
    "Database",
    "get_database",
    "reset_database",
]

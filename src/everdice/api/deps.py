"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from functools import lru_cache

from everdice.core.config import get_settings
from everdice.dm.narrator import Narrator
from everdice.storage.database import Database, get_database


def get_db() -> Database:
    """Database used by request handlers."""
    return get_database()


@lru_cache
def get_narrator() -> Narrator:
    """Narrator shared across requests."""
    return Narrator()


def get_user_id() -> int:
    """The acting user; every request runs as the configured default user."""
    return get_settings().api.default_user_id


__all__ = ["get_db", "get_narrator", "get_user_id"]

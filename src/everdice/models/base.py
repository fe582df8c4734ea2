"""Shared pydantic base classes for persisted records."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class EverdiceModel(BaseModel):
    """Base model with camelCase JSON aliases.

    Python code uses snake_case attribute names, while the JSON surface keeps
    the camelCase keys clients already send and receive.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )


class Record(EverdiceModel):
    """A persisted entity.

    Attributes:
        id: Store-assigned identifier, None until the record is saved.
        created_at: ISO timestamp of creation.
        updated_at: ISO timestamp of the last update.
    """

    id: int | None = Field(default=None, description="Store-assigned ID")
    created_at: str | None = Field(default=None, description="Creation time")
    updated_at: str | None = Field(default=None, description="Last update time")


__all__ = [
    "utc_now_iso",
    "EverdiceModel",
    "Record",
]

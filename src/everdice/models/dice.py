"""Pydantic V2 schema for persisted dice rolls."""

from __future__ import annotations

from pydantic import Field

from everdice.models.base import Record


class DiceRoll(Record):
    """A dice roll kept in the roll history.

    Attributes:
        user_id: User who rolled.
        character_id: Character the roll was made for.
        campaign_id: Campaign the roll was made in.
        dice_type: Die rolled ('d20').
        result: Total including the modifier.
        modifier: Flat modifier added.
        count: Number of dice rolled.
        purpose: Reason for the roll ('Perception Check').
    """

    user_id: int = Field(default=1, ge=1)
    character_id: int | None = None
    campaign_id: int | None = None
    dice_type: str = "d20"
    result: int = 0
    modifier: int = 0
    count: int = Field(default=1, ge=1)
    purpose: str | None = None


__all__ = ["DiceRoll"]

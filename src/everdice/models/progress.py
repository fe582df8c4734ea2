"""Pydantic V2 schemas for adventure progress tracking."""

from __future__ import annotations

from pydantic import Field

from everdice.models.base import EverdiceModel, utc_now_iso


class EncounterCounts(EverdiceModel):
    """Encounter tallies by category."""

    combat: int = Field(default=0, ge=0)
    trap: int = Field(default=0, ge=0)
    treasure: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class AdventureRequirements(EverdiceModel):
    """Counters an adventure must reach to be complete."""

    encounters: EncounterCounts = Field(default_factory=EncounterCounts)
    puzzles: int = Field(default=0, ge=0)
    discoveries: int = Field(default=0, ge=0)
    subquests: int = Field(default=0, ge=0)


class SubquestRequirements(EverdiceModel):
    """What a single subquest takes to finish."""

    encounters: int = Field(ge=0)
    puzzles: int = Field(ge=0)


class AdventureProgress(EverdiceModel):
    """Mutable progress counters for a campaign's adventure.

    Attributes:
        encounters: Encounters survived, by category.
        puzzles: Puzzles solved.
        discoveries: Discoveries made.
        subquests_completed: Subquests finished.
        started_at: When tracking began.
        completed_at: When the adventure first became complete.
        is_complete: Whether every requirement has been met.
    """

    encounters: EncounterCounts = Field(default_factory=EncounterCounts)
    puzzles: int = Field(default=0, ge=0)
    discoveries: int = Field(default=0, ge=0)
    subquests_completed: int = Field(default=0, ge=0)
    started_at: str = Field(default_factory=utc_now_iso)
    completed_at: str | None = None
    is_complete: bool = False


class CompletionResult(EverdiceModel):
    """Outcome of comparing progress against requirements."""

    is_complete: bool
    percent_complete: int = Field(ge=0, le=100)
    remaining: AdventureRequirements


__all__ = [
    "EncounterCounts",
    "AdventureRequirements",
    "SubquestRequirements",
    "AdventureProgress",
    "CompletionResult",
]

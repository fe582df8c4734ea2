"""Pydantic V2 schema for player characters."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from everdice.models.base import Record
from everdice.models.enums import Ability, CharacterStatus


AbilityScore = Annotated[int, Field(ge=1, le=30)]


class Character(Record):
    """A player character with D&D 5E statistics.

    Attributes:
        user_id: Owning user.
        name: Character name.
        race: Character race.
        character_class: Character class, serialized as ``class``.
        level: Character level (1-20).
        strength: Strength score. The other five abilities follow.
        hit_points: Current hit points.
        max_hit_points: Maximum hit points.
        armor_class: Armor class.
        experience: Total experience points.
        status: Combat status.
        skills: Skill proficiencies.
        equipment: Carried equipment names.
    """

    user_id: int = Field(default=1, ge=1, description="Owning user")
    name: str = Field(min_length=1, max_length=100, description="Character name")
    race: str = Field(min_length=1, max_length=50, description="Character race")
    character_class: str = Field(
        alias="class", min_length=1, max_length=50, description="Character class"
    )
    level: int = Field(default=1, ge=1, le=20, description="Character level")
    background: str | None = Field(default=None, description="Background")
    alignment: str | None = Field(default=None, description="Alignment")

    strength: AbilityScore = 10
    dexterity: AbilityScore = 10
    constitution: AbilityScore = 10
    intelligence: AbilityScore = 10
    wisdom: AbilityScore = 10
    charisma: AbilityScore = 10

    hit_points: int = Field(default=10, description="Current hit points")
    max_hit_points: int = Field(default=10, ge=1, description="Maximum hit points")
    armor_class: int = Field(default=10, ge=0, description="Armor class")
    experience: int = Field(default=0, ge=0, description="Experience points")
    status: CharacterStatus = Field(default=CharacterStatus.CONSCIOUS)
    death_save_successes: int = Field(default=0, ge=0, le=3)
    death_save_failures: int = Field(default=0, ge=0, le=3)

    skills: list[str] = Field(default_factory=list, description="Skill proficiencies")
    equipment: list[str] = Field(default_factory=list, description="Equipment")
    equipped_weapon: str | None = None
    equipped_armor: str | None = None
    skill_progress: dict[str, Any] = Field(default_factory=dict)

    gold: int = Field(default=0, ge=0)
    silver: int = Field(default=0, ge=0)
    copper: int = Field(default=0, ge=0)
    platinum: int = Field(default=0, ge=0)

    appearance: str | None = None
    background_story: str | None = None

    def ability_score(self, ability: Ability | str) -> int:
        """Look up an ability score by name (e.g. 'dexterity')."""
        return int(getattr(self, Ability(ability).value))

    @property
    def is_conscious(self) -> bool:
        """Check whether the character can act."""
        return self.status == CharacterStatus.CONSCIOUS


__all__ = [
    "AbilityScore",
    "Character",
]

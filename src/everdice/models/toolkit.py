"""Pydantic V2 schemas for DM toolkit content.

Monsters, quests, magic items, locations, NPCs, encounters and rewards are
authored by the DM and stored independently of any single session.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from everdice.models.base import Record
from everdice.models.enums import QuestStatus, RewardType


class Monster(Record):
    """Monster stat block.

    Attributes:
        name: Monster name.
        type: Creature type (beast, humanoid, undead, ...).
        size: Size category.
        challenge_rating: Challenge rating as a string ('1/4', '5').
        armor_class: Armor class.
        hit_points: Average hit points.
        speed: Speed description.
        stats: Ability scores in display form.
    """

    name: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1)
    size: str = "medium"
    challenge_rating: str = "0"
    armor_class: int = Field(default=10, ge=0)
    hit_points: int = Field(default=1, ge=1)
    speed: str = "30 ft."
    stats: str = ""
    skills: list[str] = Field(default_factory=list)
    resistances: list[str] = Field(default_factory=list)
    immunities: list[str] = Field(default_factory=list)
    senses: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    abilities: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    description: str | None = None
    environment: list[str] = Field(default_factory=list)
    lore: str | None = None
    created_by: int = Field(default=1, ge=1)
    is_public: bool = False


class Quest(Record):
    """Quest hook or objective."""

    campaign_id: int | None = None
    title: str = Field(min_length=1, max_length=200)
    description: str
    rewards: dict[str, Any] = Field(default_factory=dict)
    status: QuestStatus = QuestStatus.DRAFT


class InventoryItem(Record):
    """Magic item or notable piece of equipment."""

    user_id: int = Field(default=1, ge=1)
    name: str = Field(min_length=1, max_length=100)
    type: str
    rarity: str = "common"
    description: str = ""
    requires_attunement: bool = False
    notes: str | None = None


class Location(Record):
    """A place in the campaign world."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    environment: str | None = None
    climate: str | None = None
    terrain: str | None = None
    notable_features: list[str] = Field(default_factory=list)
    inhabitants: list[str] = Field(default_factory=list)
    secrets: str | None = None
    hooks: list[str] = Field(default_factory=list)
    created_by: int = Field(default=1, ge=1)
    is_public: bool = False


class NPC(Record):
    """Non-player character, optionally a travelling companion."""

    name: str = Field(min_length=1, max_length=100)
    race: str
    occupation: str
    personality: str = ""
    appearance: str = ""
    motivation: str = ""
    is_companion: bool = False
    companion_type: str | None = None
    level: int = Field(default=1, ge=1, le=20)
    hit_points: int | None = None
    max_hit_points: int | None = None
    armor_class: int | None = None
    skills: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    status: str = "conscious"
    created_by: int = Field(default=1, ge=1)
    is_public: bool = False


class Encounter(Record):
    """Prepared encounter with its monster roster."""

    campaign_id: int | None = None
    title: str = Field(min_length=1, max_length=200)
    description: str
    monster_list: list[dict[str, Any]] = Field(default_factory=list)
    difficulty: str = "medium"
    environment: str | None = None
    treasure_rewards: list[dict[str, Any]] = Field(default_factory=list)
    xp_reward: int = Field(default=0, ge=0)
    notes: str | None = None
    created_by: int = Field(default=1, ge=1)


class Reward(Record):
    """Reward to hand out at the table."""

    campaign_id: int | None = None
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    reward_type: RewardType = RewardType.OTHER
    value: int = Field(default=0, ge=0)


__all__ = [
    "Monster",
    "Quest",
    "InventoryItem",
    "Location",
    "NPC",
    "Encounter",
    "Reward",
]

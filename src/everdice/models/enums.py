"""Enumeration types for Everdice.

These enums give type-safe names to the string values that travel through the
API and the trace log.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """D&D 5E ability scores."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation (e.g. 'DEX')."""
        return self.name


class DifficultyTier(StrEnum):
    """Adventure difficulty presets.

    The value is the exact display name stored on a campaign.
    """

    EASY = "Easy - Relaxed Story"
    NORMAL = "Normal - Balanced Challenge"
    HARD = "Hard - Challenging Adventure"
    DEADLY = "Deadly - Extreme Danger"


class CharacterStatus(StrEnum):
    """Combat status of a character."""

    CONSCIOUS = "conscious"
    UNCONSCIOUS = "unconscious"
    STABILIZED = "stabilized"
    DEAD = "dead"


class ParticipantRole(StrEnum):
    """Role of a participant within a campaign."""

    PLAYER = "player"
    DM = "dm"


class QuestStatus(StrEnum):
    """Lifecycle state of a quest."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class EncounterKind(StrEnum):
    """Encounter categories counted towards adventure completion."""

    COMBAT = "combat"
    TRAP = "trap"
    TREASURE = "treasure"


class ProgressCounter(StrEnum):
    """Counters that can be advanced on an adventure's progress."""

    COMBAT = "combat"
    TRAP = "trap"
    TREASURE = "treasure"
    PUZZLE = "puzzle"
    DISCOVERY = "discovery"
    SUBQUEST = "subquest"


class RewardType(StrEnum):
    """Kinds of rewards a DM can hand out."""

    GOLD = "gold"
    ITEM = "item"
    XP = "xp"
    OTHER = "other"


__all__ = [
    "Ability",
    "DifficultyTier",
    "CharacterStatus",
    "ParticipantRole",
    "QuestStatus",
    "EncounterKind",
    "ProgressCounter",
    "RewardType",
]

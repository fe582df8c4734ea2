"""Pydantic record schemas for every persisted Everdice entity."""

from __future__ import annotations

from everdice.models.base import EverdiceModel, Record, utc_now_iso
from everdice.models.campaign import (
    Campaign,
    CampaignParticipant,
    CampaignSession,
    StoryChoice,
)
from everdice.models.character import AbilityScore, Character
from everdice.models.dice import DiceRoll
from everdice.models.enums import (
    Ability,
    CharacterStatus,
    DifficultyTier,
    EncounterKind,
    ParticipantRole,
    ProgressCounter,
    QuestStatus,
    RewardType,
)
from everdice.models.progress import (
    AdventureProgress,
    AdventureRequirements,
    CompletionResult,
    EncounterCounts,
    SubquestRequirements,
)
from everdice.models.toolkit import (
    NPC,
    Encounter,
    InventoryItem,
    Location,
    Monster,
    Quest,
    Reward,
)


__all__ = [
    # Base
    "EverdiceModel",
    "Record",
    "utc_now_iso",
    # Enums
    "Ability",
    "CharacterStatus",
    "DifficultyTier",
    "EncounterKind",
    "ParticipantRole",
    "ProgressCounter",
    "QuestStatus",
    "RewardType",
    # Records
    "AbilityScore",
    "Character",
    "Campaign",
    "CampaignParticipant",
    "CampaignSession",
    "StoryChoice",
    "DiceRoll",
    "Monster",
    "Quest",
    "InventoryItem",
    "Location",
    "NPC",
    "Encounter",
    "Reward",
    # Progress
    "EncounterCounts",
    "AdventureRequirements",
    "SubquestRequirements",
    "AdventureProgress",
    "CompletionResult",
]

"""Experience points, levels and encounter XP for D&D 5E."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel

from everdice.core.exceptions import ValidationError


# =============================================================================
# Tables
# =============================================================================

XP_THRESHOLDS: tuple[int, ...] = (
    0,       # Level 1
    300,
    900,
    2700,
    6500,    # Level 5
    14000,
    23000,
    34000,
    48000,
    64000,   # Level 10
    85000,
    100000,
    120000,
    140000,
    165000,  # Level 15
    195000,
    225000,
    265000,
    305000,
    355000,  # Level 20
)
"""Minimum XP for each level, index 0 being level 1."""

MAX_LEVEL = 20

CR_XP_TABLE: dict[str, int] = {
    "0": 10,
    "1/8": 25,
    "1/4": 50,
    "1/2": 100,
    "1": 200,
    "2": 450,
    "3": 700,
    "4": 1100,
    "5": 1800,
    "6": 2300,
    "7": 2900,
    "8": 3900,
    "9": 5000,
    "10": 5900,
    "11": 7200,
    "12": 8400,
    "13": 10000,
    "14": 11500,
    "15": 13000,
    "16": 15000,
    "17": 18000,
    "18": 20000,
    "19": 22000,
    "20": 25000,
    "21": 33000,
    "22": 41000,
    "23": 50000,
    "24": 62000,
    "25": 75000,
    "26": 90000,
    "27": 105000,
    "28": 120000,
    "29": 135000,
    "30": 155000,
}

# (max creatures, multiplier)
ENCOUNTER_MULTIPLIERS: tuple[tuple[float, float], ...] = (
    (1, 1.0),
    (2, 1.5),
    (6, 2.0),
    (10, 2.5),
    (14, 3.0),
    (math.inf, 4.0),
)

ENCOUNTER_DIFFICULTY_BY_LEVEL: dict[int, dict[str, int]] = {
    1: {"easy": 25, "medium": 50, "hard": 75, "deadly": 100},
    2: {"easy": 50, "medium": 100, "hard": 150, "deadly": 200},
    3: {"easy": 75, "medium": 150, "hard": 225, "deadly": 400},
    4: {"easy": 125, "medium": 250, "hard": 375, "deadly": 500},
    5: {"easy": 250, "medium": 500, "hard": 750, "deadly": 1100},
    6: {"easy": 300, "medium": 600, "hard": 900, "deadly": 1400},
    7: {"easy": 350, "medium": 750, "hard": 1100, "deadly": 1700},
    8: {"easy": 450, "medium": 900, "hard": 1400, "deadly": 2100},
    9: {"easy": 550, "medium": 1100, "hard": 1600, "deadly": 2400},
    10: {"easy": 600, "medium": 1200, "hard": 1900, "deadly": 2800},
    11: {"easy": 800, "medium": 1600, "hard": 2400, "deadly": 3600},
    12: {"easy": 1000, "medium": 2000, "hard": 3000, "deadly": 4500},
    13: {"easy": 1100, "medium": 2200, "hard": 3400, "deadly": 5100},
    14: {"easy": 1250, "medium": 2500, "hard": 3800, "deadly": 5700},
    15: {"easy": 1400, "medium": 2800, "hard": 4300, "deadly": 6400},
    16: {"easy": 1600, "medium": 3200, "hard": 4800, "deadly": 7200},
    17: {"easy": 2000, "medium": 3900, "hard": 5900, "deadly": 8800},
    18: {"easy": 2100, "medium": 4200, "hard": 6300, "deadly": 9500},
    19: {"easy": 2400, "medium": 4900, "hard": 7300, "deadly": 10900},
    20: {"easy": 2800, "medium": 5700, "hard": 8500, "deadly": 12700},
}

QuestType = Literal["minor", "side", "major", "story"]

QUEST_XP_REWARDS: dict[str, tuple[int, int]] = {
    "minor": (25, 100),
    "side": (100, 300),
    "major": (300, 750),
    "story": (500, 1500),
}

EncounterDifficulty = Literal["trivial", "easy", "medium", "hard", "deadly"]


# =============================================================================
# Result Models
# =============================================================================


class LevelProgress(BaseModel):
    """Where a character stands between two levels."""

    current_level: int
    xp_needed: int
    xp_progress: int
    percent_complete: int


class MonsterXP(BaseModel):
    cr: str
    xp: int


class EncounterXP(BaseModel):
    """XP budget for an encounter.

    Attributes:
        base_xp: Sum of monster XP.
        adjusted_xp: Base XP scaled by the encounter multiplier.
        per_character_xp: Base XP split across the party.
        difficulty: Rating against level-5 party thresholds.
        breakdown: XP per monster.
    """

    base_xp: int
    adjusted_xp: int
    per_character_xp: int
    difficulty: EncounterDifficulty
    breakdown: list[MonsterXP]


# =============================================================================
# Levels
# =============================================================================


def get_level_from_xp(xp: int) -> int:
    """Highest level whose threshold the XP total reaches."""
    for index in range(len(XP_THRESHOLDS) - 1, -1, -1):
        if xp >= XP_THRESHOLDS[index]:
            return index + 1
    return 1


def get_xp_for_level(level: int) -> int:
    """Minimum XP for a level; clamps above 20 and returns 0 below 1."""
    if level < 1:
        return 0
    if level > MAX_LEVEL:
        return XP_THRESHOLDS[-1]
    return XP_THRESHOLDS[level - 1]


def get_xp_to_next_level(current_xp: int) -> LevelProgress:
    """Progress from the current level's threshold to the next one."""
    current_level = get_level_from_xp(current_xp)
    if current_level >= MAX_LEVEL:
        return LevelProgress(
            current_level=MAX_LEVEL,
            xp_needed=0,
            xp_progress=current_xp - XP_THRESHOLDS[-1],
            percent_complete=100,
        )

    current_threshold = XP_THRESHOLDS[current_level - 1]
    next_threshold = XP_THRESHOLDS[current_level]
    xp_into_level = current_xp - current_threshold
    return LevelProgress(
        current_level=current_level,
        xp_needed=next_threshold - current_xp,
        xp_progress=xp_into_level,
        percent_complete=(xp_into_level * 100) // (next_threshold - current_threshold),
    )


def format_xp_progress(current_xp: int) -> str:
    """Human-readable XP line, e.g. 'Level 3 - 1,200 XP (1,500 to next level, 16%)'."""
    progress = get_xp_to_next_level(current_xp)
    if progress.current_level >= MAX_LEVEL:
        return f"Level 20 (Max) - {current_xp:,} XP"
    return (
        f"Level {progress.current_level} - {current_xp:,} XP "
        f"({progress.xp_needed:,} to next level, {progress.percent_complete}%)"
    )


def validate_level(level: int) -> int:
    """Check a milestone level is between 1 and 20.

    Raises:
        ValidationError: If the level is out of range.
    """
    if not 1 <= level <= MAX_LEVEL:
        raise ValidationError(
            f"Level must be between 1 and {MAX_LEVEL}",
            field_name="level",
            invalid_value=level,
        )
    return level


# =============================================================================
# Encounters & Quests
# =============================================================================


def get_xp_from_cr(cr: str | int | float) -> int:
    """XP for a challenge rating; unknown ratings are worth nothing."""
    return CR_XP_TABLE.get(str(cr), 0)


def get_encounter_multiplier(creature_count: int) -> float:
    for max_creatures, multiplier in ENCOUNTER_MULTIPLIERS:
        if creature_count <= max_creatures:
            return multiplier
    return 4.0


def calculate_encounter_xp(
    monster_crs: list[str | int],
    party_size: int = 4,
) -> EncounterXP:
    """XP budget and difficulty for a group of monsters.

    Small parties (under 3) get a half-step harsher multiplier and large
    parties (over 5) a half-step gentler one.

    Args:
        monster_crs: Challenge rating of each monster.
        party_size: Number of characters in the party.

    Returns:
        EncounterXP with base, adjusted and per-character XP.
    """
    if party_size < 1:
        raise ValidationError(
            "Party size must be at least 1",
            field_name="party_size",
            invalid_value=party_size,
        )

    breakdown = [MonsterXP(cr=str(cr), xp=get_xp_from_cr(cr)) for cr in monster_crs]
    base_xp = sum(m.xp for m in breakdown)

    multiplier = get_encounter_multiplier(len(monster_crs))
    if party_size < 3:
        multiplier += 0.5
    elif party_size > 5:
        multiplier -= 0.5

    adjusted_xp = math.floor(base_xp * multiplier)
    per_character_xp = base_xp // party_size

    thresholds = ENCOUNTER_DIFFICULTY_BY_LEVEL[5]
    difficulty: EncounterDifficulty = "trivial"
    if adjusted_xp >= thresholds["deadly"] * party_size:
        difficulty = "deadly"
    elif adjusted_xp >= thresholds["hard"] * party_size:
        difficulty = "hard"
    elif adjusted_xp >= thresholds["medium"] * party_size:
        difficulty = "medium"
    elif adjusted_xp >= thresholds["easy"] * party_size:
        difficulty = "easy"

    return EncounterXP(
        base_xp=base_xp,
        adjusted_xp=adjusted_xp,
        per_character_xp=per_character_xp,
        difficulty=difficulty,
        breakdown=breakdown,
    )


def calculate_quest_xp(
    quest_type: QuestType,
    party_level: int = 1,
    party_size: int = 4,
) -> int:
    """Per-character XP for a quest, scaled 10% per party level above 1."""
    low, high = QUEST_XP_REWARDS[quest_type]
    level_multiplier = 1 + (party_level - 1) * 0.1
    base_xp = math.floor((low + high) / 2 * level_multiplier)
    return base_xp // party_size


# =============================================================================
# Bonuses
# =============================================================================


def get_proficiency_bonus(level: int) -> int:
    """Proficiency bonus by level, clamped to the 1-20 range."""
    if level < 1:
        return 2
    if level > MAX_LEVEL:
        return 6
    return (level - 1) // 4 + 2


def get_ability_modifier(score: int) -> int:
    """Standard ability modifier, floor((score - 10) / 2)."""
    return (score - 10) // 2


__all__ = [
    "XP_THRESHOLDS",
    "MAX_LEVEL",
    "CR_XP_TABLE",
    "ENCOUNTER_MULTIPLIERS",
    "ENCOUNTER_DIFFICULTY_BY_LEVEL",
    "QUEST_XP_REWARDS",
    "QuestType",
    "EncounterDifficulty",
    "LevelProgress",
    "MonsterXP",
    "EncounterXP",
    "get_level_from_xp",
    "get_xp_for_level",
    "get_xp_to_next_level",
    "format_xp_progress",
    "validate_level",
    "get_xp_from_cr",
    "get_encounter_multiplier",
    "calculate_encounter_xp",
    "calculate_quest_xp",
    "get_proficiency_bonus",
    "get_ability_modifier",
]

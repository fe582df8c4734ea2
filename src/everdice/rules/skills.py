"""Skill check modifiers and odds.

Used by the API to annotate the choices offered at the end of a session
with how likely each roll is to succeed.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, NamedTuple

from everdice.models.character import Character
from everdice.models.enums import Ability


SKILL_ABILITY_MAP: dict[str, str] = {
    # Strength
    "athletics": "strength",
    "strength": "strength",
    # Dexterity
    "acrobatics": "dexterity",
    "sleight_of_hand": "dexterity",
    "stealth": "dexterity",
    "dexterity": "dexterity",
    "thieves_tools": "dexterity",
    # Intelligence
    "arcana": "intelligence",
    "history": "intelligence",
    "investigation": "intelligence",
    "nature": "intelligence",
    "religion": "intelligence",
    "intelligence": "intelligence",
    # Wisdom
    "animal_handling": "wisdom",
    "insight": "wisdom",
    "medicine": "wisdom",
    "perception": "wisdom",
    "survival": "wisdom",
    "wisdom": "wisdom",
    # Charisma
    "deception": "charisma",
    "intimidation": "charisma",
    "performance": "charisma",
    "persuasion": "charisma",
    "charisma": "charisma",
    # Attacks default to strength; finesse weapons are not modelled
    "attack": "strength",
}

PROFICIENCY_SKILLS: tuple[str, ...] = (
    "athletics",
    "acrobatics",
    "sleight_of_hand",
    "stealth",
    "arcana",
    "history",
    "investigation",
    "nature",
    "religion",
    "animal_handling",
    "insight",
    "medicine",
    "perception",
    "survival",
    "deception",
    "intimidation",
    "performance",
    "persuasion",
)

_DC_PATTERN = re.compile(r"DC\s*(\d+)", re.IGNORECASE)


class SkillModifier(NamedTuple):
    """A check modifier with its human-readable derivation."""

    modifier: int
    breakdown: str


class Likelihood(NamedTuple):
    text: str
    color: str


def normalize_skill(skill: str) -> str:
    """Lower-case a skill name and join its words with underscores."""
    return re.sub(r"\s+", "_", skill.strip().lower())


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def _lookup(character: Character | Mapping[str, Any], name: str, default: Any) -> Any:
    if isinstance(character, Mapping):
        value = character.get(name)
    else:
        value = getattr(character, name, None)
    return value or default


def get_skill_modifier(
    character: Character | Mapping[str, Any] | None,
    skill: str,
) -> SkillModifier:
    """Modifier for a skill or ability check.

    Unknown skills use Strength. Proficiency applies when the character lists
    the skill, compared after normalizing case and whitespace.

    Args:
        character: The character making the check, or None.
        skill: Skill or ability name ("Sleight of Hand", "wisdom").

    Returns:
        The modifier and a breakdown like 'DEX +2 + Prof +2 = +4'.
    """
    if character is None:
        return SkillModifier(0, "No character data")

    normalized = normalize_skill(skill)
    ability_name = SKILL_ABILITY_MAP.get(normalized, Ability.STR.value)

    ability_mod = (int(_lookup(character, ability_name, 10)) - 10) // 2
    level = int(_lookup(character, "level", 1))
    prof_bonus = (level - 1) // 4 + 2

    known_skills = _lookup(character, "skills", [])
    is_proficient = any(normalize_skill(s) == normalized for s in known_skills)
    total = ability_mod + prof_bonus if is_proficient else ability_mod

    breakdown = f"{Ability(ability_name).abbreviation} {_signed(ability_mod)}"
    if is_proficient:
        breakdown += f" + Prof {_signed(prof_bonus)}"
    breakdown += f" = {_signed(total)}"
    return SkillModifier(total, breakdown)


def calculate_success_probability(dc: int, modifier: int) -> float:
    """Percent chance to meet a DC on a d20, clamped to 5..95.

    A natural 1 always fails and a natural 20 always succeeds.
    """
    needed_roll = dc - modifier
    raw = (21 - needed_roll) / 20 * 100
    return max(5.0, min(95.0, raw))


def parse_dc_from_text(text: str) -> int | None:
    """Extract the DC from choice text like 'Pick the lock (DC 15)'."""
    match = _DC_PATTERN.search(text)
    return int(match.group(1)) if match else None


def get_likelihood_description(probability: float) -> Likelihood:
    """Bucket a success probability into a label and display colour."""
    if probability >= 80:
        return Likelihood("Very Likely", "text-green-600 dark:text-green-400")
    if probability >= 60:
        return Likelihood("Likely", "text-emerald-600 dark:text-emerald-400")
    if probability >= 40:
        return Likelihood("Even Odds", "text-yellow-600 dark:text-yellow-400")
    if probability >= 20:
        return Likelihood("Unlikely", "text-orange-600 dark:text-orange-400")
    return Likelihood("Very Hard", "text-red-600 dark:text-red-400")


__all__ = [
    "SKILL_ABILITY_MAP",
    "PROFICIENCY_SKILLS",
    "SkillModifier",
    "Likelihood",
    "normalize_skill",
    "get_skill_modifier",
    "calculate_success_probability",
    "parse_dc_from_text",
    "get_likelihood_description",
]

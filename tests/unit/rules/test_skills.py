"""Tests for skill check modifiers and odds."""

from __future__ import annotations

import pytest

from everdice.models import Character
from everdice.rules.skills import (
    calculate_success_probability,
    get_likelihood_description,
    get_skill_modifier,
    normalize_skill,
    parse_dc_from_text,
)


@pytest.fixture
def rogue() -> Character:
    return Character(
        name="Mira",
        race="Elf",
        character_class="Rogue",
        level=5,
        dexterity=16,
        wisdom=9,
        skills=["Stealth", "Sleight of Hand"],
    )


class TestSkillModifier:
    def test_proficient_skill(self, rogue: Character) -> None:
        result = get_skill_modifier(rogue, "stealth")

        assert result.modifier == 6
        assert result.breakdown == "DEX +3 + Prof +3 = +6"

    def test_multi_word_skill(self, rogue: Character) -> None:
        assert get_skill_modifier(rogue, "Sleight of Hand").modifier == 6

    def test_untrained_skill(self, rogue: Character) -> None:
        result = get_skill_modifier(rogue, "Perception")

        assert result.modifier == -1
        assert result.breakdown == "WIS -1 = -1"

    def test_mapping_character(self) -> None:
        result = get_skill_modifier({"strength": 18, "level": 1, "skills": ["athletics"]}, "Athletics")

        assert result.modifier == 6

    def test_unknown_skill_uses_strength(self, rogue: Character) -> None:
        assert get_skill_modifier(rogue, "juggling").breakdown.startswith("STR")

    def test_no_character(self) -> None:
        assert get_skill_modifier(None, "stealth") == (0, "No character data")


def test_normalize_skill() -> None:
    assert normalize_skill("  Animal   Handling ") == "animal_handling"


@pytest.mark.parametrize(
    ("dc", "modifier", "probability"),
    [(15, 5, 55.0), (10, 0, 55.0), (30, 0, 5.0), (2, 10, 95.0)],
)
def test_success_probability(dc: int, modifier: int, probability: float) -> None:
    assert calculate_success_probability(dc, modifier) == pytest.approx(probability)


def test_parse_dc_from_text() -> None:
    assert parse_dc_from_text("Pick the lock (DC 15)") == 15
    assert parse_dc_from_text("dc12 to climb") == 12
    assert parse_dc_from_text("Just walk in") is None


@pytest.mark.parametrize(
    ("probability", "text"),
    [(95, "Very Likely"), (60, "Likely"), (45, "Even Odds"), (20, "Unlikely"), (5, "Very Hard")],
)
def test_likelihood_description(probability: float, text: str) -> None:
    assert get_likelihood_description(probability).text == text

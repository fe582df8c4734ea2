"""Tests for XP and level rules."""

from __future__ import annotations

import pytest

from everdice.core.exceptions import ValidationError
from everdice.rules.xp import (
    calculate_encounter_xp,
    calculate_quest_xp,
    format_xp_progress,
    get_ability_modifier,
    get_encounter_multiplier,
    get_level_from_xp,
    get_proficiency_bonus,
    get_xp_for_level,
    get_xp_from_cr,
    get_xp_to_next_level,
    validate_level,
)


class TestLevels:
    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (299, 1), (300, 2), (899, 2), (900, 3), (6500, 5), (355000, 20), (999999, 20)],
    )
    def test_level_from_xp(self, xp: int, level: int) -> None:
        assert get_level_from_xp(xp) == level

    def test_xp_for_level(self) -> None:
        assert get_xp_for_level(1) == 0
        assert get_xp_for_level(5) == 6500
        assert get_xp_for_level(0) == 0
        assert get_xp_for_level(25) == 355000

    def test_xp_to_next_level(self) -> None:
        progress = get_xp_to_next_level(1200)

        assert progress.current_level == 3
        assert progress.xp_needed == 1500
        assert progress.xp_progress == 300
        assert progress.percent_complete == 16

    def test_max_level_progress(self) -> None:
        progress = get_xp_to_next_level(400000)

        assert progress.current_level == 20
        assert progress.xp_needed == 0
        assert progress.percent_complete == 100

    def test_format_xp_progress(self) -> None:
        assert format_xp_progress(1200) == "Level 3 - 1,200 XP (1,500 to next level, 16%)"
        assert format_xp_progress(400000) == "Level 20 (Max) - 400,000 XP"

    @pytest.mark.parametrize("level", [0, 21, -3])
    def test_validate_level_rejects(self, level: int) -> None:
        with pytest.raises(ValidationError):
            validate_level(level)


class TestEncounters:
    def test_xp_from_cr(self) -> None:
        assert get_xp_from_cr("1/4") == 50
        assert get_xp_from_cr(5) == 1800
        assert get_xp_from_cr("99") == 0

    @pytest.mark.parametrize(
        ("count", "multiplier"),
        [(1, 1.0), (2, 1.5), (3, 2.0), (6, 2.0), (7, 2.5), (11, 3.0), (15, 4.0)],
    )
    def test_multiplier(self, count: int, multiplier: float) -> None:
        assert get_encounter_multiplier(count) == multiplier

    def test_calculate_encounter_xp(self) -> None:
        result = calculate_encounter_xp(["2", "2", "1/2"], party_size=4)

        assert result.base_xp == 1000
        assert result.adjusted_xp == 2000
        assert result.per_character_xp == 250
        assert result.difficulty == "medium"
        assert len(result.breakdown) == 3

    def test_small_party_harsher(self) -> None:
        assert calculate_encounter_xp(["1"], party_size=2).adjusted_xp == 300

    def test_party_size_validated(self) -> None:
        with pytest.raises(ValidationError):
            calculate_encounter_xp(["1"], party_size=0)

    def test_quest_xp(self) -> None:
        assert calculate_quest_xp("side", party_level=1, party_size=4) == 50
        assert calculate_quest_xp("story", party_level=3, party_size=4) == 300


class TestBonuses:
    @pytest.mark.parametrize(("level", "bonus"), [(1, 2), (4, 2), (5, 3), (9, 4), (17, 6), (30, 6)])
    def test_proficiency_bonus(self, level: int, bonus: int) -> None:
        assert get_proficiency_bonus(level) == bonus

    @pytest.mark.parametrize(("score", "modifier"), [(1, -5), (9, -1), (10, 0), (15, 2), (20, 5)])
    def test_ability_modifier(self, score: int, modifier: int) -> None:
        assert get_ability_modifier(score) == modifier

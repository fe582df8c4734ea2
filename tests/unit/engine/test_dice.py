"""Tests for dice rolling mechanics."""

from __future__ import annotations

import pytest

from everdice.core.exceptions import DiceRollError
from everdice.engine.dice import (
    DiceExpression,
    DicePoolResult,
    DiceRoller,
    RollType,
    parse_die_sides,
    roll,
)


class TestDiceRoller:
    """Tests for the DiceRoller class."""

    def test_simple_d20_roll(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll("1d20")

        assert isinstance(result, DiceExpression)
        assert 1 <= result.total <= 20
        assert len(result.dice) == 1
        assert result.roll_type == RollType.NORMAL

    def test_roll_with_modifier(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll("1d20+5")

        assert result.modifier == 5
        assert 6 <= result.total <= 25

    def test_roll_with_negative_modifier(self, dice_roller: DiceRoller) -> None:
        assert dice_roller.roll("1d20-3").modifier == -3

    def test_multiple_dice(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll("3d6")

        assert 3 <= result.total <= 18
        assert len(result.dice) == 3

    def test_advantage_keeps_one_die(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll("1d20+2", roll_type=RollType.ADVANTAGE)

        assert len(result.dice) == 1
        assert result.roll_type == RollType.ADVANTAGE
        assert result.total == result.dice[0] + 2

    def test_critical_flags_match_die(self, dice_roller: DiceRoller) -> None:
        for _ in range(50):
            result = dice_roller.roll("1d20")
            assert result.is_critical == (result.dice[0] == 20)
            assert result.is_fumble == (result.dice[0] == 1)

    def test_critical_flags_follow_the_d20_in_mixed_expressions(
        self, dice_roller: DiceRoller
    ) -> None:
        for _ in range(100):
            result = dice_roller.roll("1d4+1d20")
            d4_face, d20_face = result.dice
            assert 1 <= d4_face <= 4
            assert result.is_critical == (d20_face == 20)
            assert result.is_fumble == (d20_face == 1)

    def test_larger_dice_are_never_critical(self, dice_roller: DiceRoller) -> None:
        for _ in range(100):
            result = dice_roller.roll("1d200")
            assert not result.is_critical
            assert not result.is_fumble

    @pytest.mark.parametrize("expression", ["", "   ", "1d", "banana"])
    def test_invalid_expression(self, dice_roller: DiceRoller, expression: str) -> None:
        with pytest.raises(DiceRollError):
            dice_roller.roll(expression)

    def test_ability_check(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_ability_check(-1)

        assert result.expression == "1d20-1"
        assert 0 <= result.total <= 19


class TestDamageRolls:
    """Tests for damage and critical hit rules."""

    def test_normal_damage(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_damage("2d6+3")

        assert 5 <= result.total <= 15
        assert not result.is_critical

    def test_double_dice(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_damage("2d6+3", is_critical=True)

        assert len(result.dice) == 4
        assert 7 <= result.total <= 27

    def test_double_damage(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_damage("1d8+2", is_critical=True, critical_rule="double_damage")

        assert result.roll_type == RollType.CRITICAL
        assert result.total % 2 == 0
        assert 6 <= result.total <= 20

    def test_max_plus_roll(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_damage("1d8+2", is_critical=True, critical_rule="max_plus_roll")

        assert 13 <= result.total <= 20

    def test_unknown_rule_doubles_dice(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_damage("1d6", is_critical=True, critical_rule="triple")

        assert len(result.dice) == 2


class TestDicePool:
    """Tests for pooled dice-roller rolls."""

    def test_pool_total(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_pool("d6", count=3, modifier=2)

        assert isinstance(result, DicePoolResult)
        assert result.dice_type == "d6"
        assert len(result.rolls) == 3
        assert result.total == sum(result.rolls) + 2
        assert not result.is_critical
        assert not result.is_fumble

    def test_invalid_die_falls_back_to_d20(self, dice_roller: DiceRoller) -> None:
        result = dice_roller.roll_pool("dx", count=1)

        assert result.dice_type == "d20"
        assert 1 <= result.rolls[0] <= 20

    def test_d20_critical_and_fumble(self, dice_roller: DiceRoller) -> None:
        for _ in range(30):
            result = dice_roller.roll_pool("d20", count=4)
            assert result.is_critical == (20 in result.rolls)
            assert result.is_fumble == (1 in result.rolls)

    def test_count_must_be_positive(self, dice_roller: DiceRoller) -> None:
        with pytest.raises(DiceRollError):
            dice_roller.roll_pool("d6", count=0)


@pytest.mark.parametrize(
    ("dice_type", "sides"),
    [("d4", 4), ("D12", 12), ("d100", 100), ("d0", 20), ("", 20), (None, 20), ("6", 20)],
)
def test_parse_die_sides(dice_type: str | None, sides: int) -> None:
    assert parse_die_sides(dice_type) == sides


def test_module_roll() -> None:
    assert 2 <= roll("2d4").total <= 8

"""Game engine: dice rolling."""

from __future__ import annotations

from everdice.engine.dice import (
    CriticalRule,
    DiceExpression,
    DicePoolResult,
    DiceRoller,
    RollType,
    get_dice_roller,
    roll,
)


__all__ = [
    "CriticalRule",
    "DiceExpression",
    "DicePoolResult",
    "DiceRoller",
    "RollType",
    "get_dice_roller",
    "roll",
]

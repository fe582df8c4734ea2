"""Dice rolling for Everdice.

All randomness goes through the d20 library. An expression such as
``"1d20+5"`` is parsed into a d20 AST and rolled; advantage and disadvantage
are rewrites of the d20 term into keep-highest or keep-lowest. Dice pools back
the dice roller endpoint, where a player asks for N identical dice plus a flat
modifier.

Example:
    >>> from everdice.engine.dice import roll, RollType
    >>> roll("1d20+3", roll_type=RollType.ADVANTAGE).total
"""

from __future__ import annotations

import random
import re
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

import d20

from everdice.core.exceptions import DiceRollError
from everdice.core.logging import get_logger


logger = get_logger(__name__)

DEFAULT_DIE = "d20"

_DIE_NAME = re.compile(r"^d(\d+)$", re.IGNORECASE)
_DICE_TERM = re.compile(r"(\d*)d(\d+)")
_SINGLE_D20 = re.compile(r"\b1?d20\b")


class RollType(StrEnum):
    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"
    CRITICAL = "critical"


class CriticalRule(StrEnum):
    """How a critical hit changes a damage roll."""

    DOUBLE_DICE = "double_dice"
    DOUBLE_DAMAGE = "double_damage"
    MAX_PLUS_ROLL = "max_plus_roll"


# d20 keep-highest / keep-lowest forms for a single d20 term
_D20_REWRITES: dict[RollType, str] = {
    RollType.ADVANTAGE: "2d20kh1",
    RollType.DISADVANTAGE: "2d20kl1",
}


@dataclass(frozen=True)
class DiceExpression:
    """Outcome of rolling one expression.

    ``dice`` holds only kept faces, so an advantage roll lists one d20.
    ``modifier`` is whatever the total adds on top of those faces.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int
    is_critical: bool
    is_fumble: bool
    roll_type: RollType


@dataclass(frozen=True)
class DicePoolResult:
    """N identical dice plus a flat modifier.

    Attributes:
        dice_type: The die actually rolled; an invalid request becomes "d20".
        count: How many dice.
        rolls: Each face, in roll order.
        modifier: Flat bonus or penalty.
        total: ``sum(rolls) + modifier``.
        is_critical: A d20 pool contains a natural 20.
        is_fumble: A d20 pool contains a natural 1.
    """

    dice_type: str
    count: int
    rolls: list[int] = field(default_factory=list)
    modifier: int = 0
    total: int = 0
    is_critical: bool = False
    is_fumble: bool = False


def parse_die_sides(dice_type: str | None) -> int:
    """Faces on a die named like ``"d8"``. Anything else is treated as a d20."""
    match = _DIE_NAME.match((dice_type or "").strip())
    sides = int(match.group(1)) if match else 0
    if sides < 1:
        logger.warning("Unrecognised die, rolling d20 instead", dice_type=dice_type)
        return 20
    return sides


def _kept_faces(node: Any) -> Iterator[int]:
    if isinstance(node, d20.Dice):
        yield from (die.number for die in node.values if die.kept)
        return
    for child in getattr(node, "children", ()):
        yield from _kept_faces(child)


def _natural_d20(node: Any) -> int | None:
    """Kept face of the first d20 in an expression tree, if there is one."""
    if isinstance(node, d20.Dice):
        if node.size != 20:
            return None
        return next((die.number for die in node.values if die.kept), None)
    for child in getattr(node, "children", ()):
        natural = _natural_d20(child)
        if natural is not None:
            return natural
    return None


def _evaluate(expression: str, *, original: str | None = None) -> d20.RollResult:
    try:
        return d20.roll(expression)
    except d20.RollError as exc:
        raise DiceRollError(
            f"Invalid dice expression: {exc}", expression=original or expression
        ) from exc


def _maximum(expression: str) -> int:
    """Highest total ``expression`` can produce, e.g. 10 for ``1d8+2``."""

    def as_product(match: re.Match[str]) -> str:
        return f"({int(match.group(1) or 1)}*{match.group(2)})"

    return max(0, _evaluate(_DICE_TERM.sub(as_product, expression), original=expression).total)


def _double_dice(expression: str) -> str:
    """``2d6+3`` becomes ``4d6+3``."""
    return _DICE_TERM.sub(lambda m: f"{int(m.group(1) or 1) * 2}d{m.group(2)}", expression)


class DiceRoller:
    """Rolls expressions, ability checks, damage and dice pools.

    Passing ``seed`` seeds the global ``random`` module that d20 draws from,
    which makes a test run repeatable.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> roller.roll_ability_check(3).expression
        '1d20+3'
        >>> roller.roll_pool("d6", count=3, modifier=2).total
    """

    def __init__(self, *, seed: int | None = None) -> None:
        if seed is not None:
            random.seed(seed)
        self.seed = seed

    def roll(
        self,
        expression: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll a dice expression.

        Args:
            expression: d20 notation such as ``"1d20+5"`` or ``"2d6+3"``.
            roll_type: Advantage and disadvantage apply to a single d20 term.

        Returns:
            The kept dice, the modifier and the critical and fumble flags.

        Raises:
            DiceRollError: The expression is empty or not valid d20 notation.
        """
        if not (expression or "").strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        rewrite = _D20_REWRITES.get(roll_type)
        to_roll = _SINGLE_D20.sub(rewrite, expression) if rewrite else expression

        rolled = _evaluate(to_roll, original=expression)
        faces = list(_kept_faces(rolled.expr))
        natural = _natural_d20(rolled.expr)

        result = DiceExpression(
            expression=expression,
            total=rolled.total,
            dice=faces,
            modifier=rolled.total - sum(faces),
            is_critical=natural == 20,
            is_fumble=natural == 1,
            roll_type=roll_type,
        )
        logger.info(
            "Dice rolled",
            expression=expression,
            roll_type=roll_type.value,
            total=result.total,
            is_critical=result.is_critical,
        )
        return result

    def roll_ability_check(
        self,
        modifier: int,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        return self.roll(f"1d20{modifier:+d}", roll_type=roll_type)

    def roll_damage(
        self,
        damage_expression: str,
        *,
        is_critical: bool = False,
        critical_rule: CriticalRule | str = CriticalRule.DOUBLE_DICE,
    ) -> DiceExpression:
        """Roll damage, applying a critical hit rule when ``is_critical``.

        Args:
            damage_expression: Damage dice such as ``"2d6+3"``.
            is_critical: The attack was a critical hit.
            critical_rule: ``double_dice`` rolls twice the dice,
                ``double_damage`` doubles the rolled total, and
                ``max_plus_roll`` adds the maximum to a normal roll. Unknown
                names fall back to ``double_dice``.
        """
        if not is_critical:
            return self.roll(damage_expression)

        try:
            rule = CriticalRule(critical_rule)
        except ValueError:
            logger.warning("Unknown critical rule, using double_dice", critical_rule=critical_rule)
            rule = CriticalRule.DOUBLE_DICE

        if rule is CriticalRule.DOUBLE_DICE:
            return self.roll(_double_dice(damage_expression))

        base = self.roll(damage_expression)
        if rule is CriticalRule.DOUBLE_DAMAGE:
            return replace(
                base,
                expression=f"({damage_expression}) x 2",
                total=base.total * 2,
                modifier=base.modifier * 2,
                is_critical=True,
                is_fumble=False,
                roll_type=RollType.CRITICAL,
            )
        return replace(
            base,
            expression=f"MAX({damage_expression}) + {damage_expression}",
            total=_maximum(damage_expression) + base.total,
            is_critical=True,
            is_fumble=False,
            roll_type=RollType.CRITICAL,
        )

    def roll_pool(
        self,
        dice_type: str | None = DEFAULT_DIE,
        count: int = 1,
        modifier: int = 0,
    ) -> DicePoolResult:
        """Roll ``count`` dice of one kind and add ``modifier``.

        Raises:
            DiceRollError: ``count`` is below 1.
        """
        if count < 1:
            raise DiceRollError("Dice count must be at least 1", details={"count": count})

        sides = parse_die_sides(dice_type)
        faces = self.roll(f"{count}d{sides}").dice
        pool = DicePoolResult(
            dice_type=f"d{sides}",
            count=count,
            rolls=faces,
            modifier=modifier,
            total=sum(faces) + modifier,
            is_critical=sides == 20 and 20 in faces,
            is_fumble=sides == 20 and 1 in faces,
        )
        logger.info("Dice pool rolled", dice_type=pool.dice_type, count=count, total=pool.total)
        return pool


_roller: DiceRoller | None = None


def get_dice_roller() -> DiceRoller:
    """Shared roller used by the API."""
    global _roller  # noqa: PLW0603
    if _roller is None:
        _roller = DiceRoller()
    return _roller


def roll(expression: str, *, roll_type: RollType = RollType.NORMAL) -> DiceExpression:
    """Roll ``expression`` with the shared roller."""
    return get_dice_roller().roll(expression, roll_type=roll_type)


__all__ = [
    "DEFAULT_DIE",
    "RollType",
    "CriticalRule",
    "DiceExpression",
    "DicePoolResult",
    "DiceRoller",
    "parse_die_sides",
    "get_dice_roller",
    "roll",
]

"""The single source of randomness for combat resolution."""

from __future__ import annotations

import logging
from random import Random
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

D10_SIDES = 10


class DiceRoller(Protocol):
    def roll_d10(self) -> int: ...


class D10Roller:
    """Uniform d10 backed by a seeded Random."""

    def __init__(self, rng: Random | None = None) -> None:
        self._rng = rng if rng is not None else Random()

    def roll_d10(self) -> int:
        value = self._rng.randint(1, D10_SIDES)
        logger.debug("d10 -> %d", value)
        return value


DiceProvider = Callable[[str, str], DiceRoller]


def roll_d10(dice: DiceRoller | None = None) -> int:
    """Roll once on the given roller, or on a fresh unseeded one."""
    roller = dice if dice is not None else D10Roller()
    return roller.roll_d10()

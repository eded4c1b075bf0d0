"""Skill and opposed checks: d10 plus the rating bonus."""

from __future__ import annotations

from dataclasses import dataclass

from mercs_sim.domain.types import Rating, Unit
from mercs_sim.rules.ruleset import Ruleset
from mercs_sim.sim.dice import DiceRoller


@dataclass(frozen=True)
class SkillCheckResult:
    natural: int
    bonus: int
    total: int
    rating: Rating
    zero_supply: bool = False


@dataclass(frozen=True)
class OpposedCheckResult:
    attacker: SkillCheckResult
    defender: SkillCheckResult
    winner: str  # "attacker" | "defender" | "tie"
    is_critical: bool
    difference: int


def skill_check(unit: Unit, dice: DiceRoller, rules: Ruleset) -> SkillCheckResult:
    bonus = rules.rating(unit.rating).bonus
    natural = dice.roll_d10()
    return SkillCheckResult(natural=natural, bonus=bonus, total=natural + bonus, rating=unit.rating)


def _side_check(unit: Unit, dice: DiceRoller, rules: Ruleset) -> SkillCheckResult:
    if unit.supply.current > 0:
        return skill_check(unit, dice, rules)
    first = skill_check(unit, dice, rules)
    second = skill_check(unit, dice, rules)
    worse = first if first.total <= second.total else second
    return SkillCheckResult(
        natural=worse.natural, bonus=worse.bonus, total=worse.total, rating=worse.rating, zero_supply=True
    )


def opposed_check(attacker: Unit, defender: Unit, dice: DiceRoller, rules: Ruleset) -> OpposedCheckResult:
    attacker_result = _side_check(attacker, dice, rules)
    defender_result = _side_check(defender, dice, rules)

    difference = abs(attacker_result.total - defender_result.total)
    if attacker_result.total > defender_result.total:
        winner = "attacker"
    elif defender_result.total > attacker_result.total:
        winner = "defender"
    else:
        winner = "tie"

    return OpposedCheckResult(
        attacker=attacker_result,
        defender=defender_result,
        winner=winner,
        is_critical=difference >= rules.combat.critical_margin,
        difference=difference,
    )

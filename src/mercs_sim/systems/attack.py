"""Attack resolution: validation, accuracy, hit determination and damage.

Everything here is pure with respect to unit state. ``resolve_attack`` makes
exactly one die roll and returns a fully-modified ``AttackOutcome``; applying
or deferring the damage is the caller's job (see ``systems.damage``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mercs_sim.domain.combat_models import (
    AccuracyResult,
    AttackOutcome,
    DamageModifier,
    DamageResult,
    HitResult,
    ValidationResult,
)
from mercs_sim.domain.types import AttackType, HitType, TraitId, Unit, Weapon
from mercs_sim.rules.ruleset import CombatConfig, Ruleset
from mercs_sim.sim.dice import DiceRoller

logger = logging.getLogger(__name__)

_RATIO_EPSILON = 1e-9


@dataclass(frozen=True)
class UnitPenalties:
    casualty: int
    readiness_accuracy: int
    readiness_damage: int


@dataclass(frozen=True)
class AttackContext:
    """Round-scoped facts the calculators cannot read off the units themselves."""

    attacker_assault_target: str | None = None
    target_disordered: bool = False
    assault_order: str = "assault"


def derive_penalties(unit: Unit, config: CombatConfig) -> UnitPenalties:
    strength_max = max(0, unit.strength.max)
    if strength_max > 0:
        lost = strength_max - min(strength_max, max(0, unit.strength.value))
        casualty = (lost * config.casualty_steps) // strength_max
    else:
        casualty = config.casualty_steps

    readiness_ratio = unit.readiness.ratio
    return UnitPenalties(
        casualty=casualty,
        readiness_accuracy=1 if readiness_ratio <= config.readiness_accuracy_ratio + _RATIO_EPSILON else 0,
        readiness_damage=-1 if readiness_ratio <= config.readiness_damage_ratio + _RATIO_EPSILON else 0,
    )


def validate_attack(weapon: Weapon, target: Unit) -> ValidationResult:
    is_flying = target.has_trait(TraitId.FLYING)
    is_hovering = target.has_trait(TraitId.HOVER)

    if is_flying and not is_hovering and weapon.attack_type != AttackType.ANTI_AIR:
        return ValidationResult(
            valid=False,
            reason=f"{target.name} is Flying; only Anti-Air weapons can target it.",
        )
    if weapon.attack_type == AttackType.ANTI_AIR and not is_flying:
        return ValidationResult(
            valid=False,
            reason=f"{weapon.name} (Anti-Air) can only target units with the Flying trait.",
        )

    soft_vs_heavy = weapon.attack_type == AttackType.SOFT and target.has_trait(TraitId.HEAVY)
    return ValidationResult(valid=True, reason=None, soft_vs_heavy=soft_vs_heavy)


def calculate_accuracy(
    weapon: Weapon,
    attacker: Unit,
    rules: Ruleset,
    target: Unit | None = None,
    *,
    context: AttackContext | None = None,
) -> AccuracyResult:
    config = rules.combat
    rating = rules.ratings.get(attacker.rating)
    base = rating.accuracy if rating is not None else config.default_accuracy

    accurate_mod = max(0, weapon.accurate)
    inaccurate_mod = max(0, weapon.inaccurate)
    readiness_mod = derive_penalties(attacker, config).readiness_accuracy
    ewar_mod = max(0, target.ewar) if target is not None else 0
    disordered_mod = 1 if target is not None and context is not None and context.target_disordered else 0

    raw = base - accurate_mod + inaccurate_mod + readiness_mod + ewar_mod - disordered_mod
    effective = max(config.accuracy_floor, min(config.accuracy_ceiling, raw))

    return AccuracyResult(
        base=base,
        effective=effective,
        readiness_mod=readiness_mod,
        ewar_mod=ewar_mod,
        accurate_mod=accurate_mod,
        inaccurate_mod=inaccurate_mod,
        disordered_mod=disordered_mod,
    )


def determine_hit_result(roll: int, effective_accuracy: int) -> HitResult:
    if roll == 1:
        return HitResult(hit=False, type=HitType.CRITICAL_MISS)
    if roll == 10:
        return HitResult(hit=True, type=HitType.CRITICAL_HIT)
    if roll < effective_accuracy:
        return HitResult(hit=False, type=HitType.MISS)
    if roll == effective_accuracy:
        return HitResult(hit=True, type=HitType.PARTIAL)
    return HitResult(hit=True, type=HitType.HIT)


def calculate_damage(
    weapon: Weapon,
    attacker: Unit,
    target: Unit,
    hit_type: HitType,
    rules: Ruleset,
    *,
    context: AttackContext | None = None,
) -> DamageResult:
    """Run the damage pipeline; modifier order is part of the contract."""
    context = context or AttackContext()
    base = weapon.damage
    modifiers: list[DamageModifier] = []
    damage = base

    if hit_type == HitType.CRITICAL_HIT:
        damage += 1
        modifiers.append(DamageModifier("Critical Hit", +1))
    elif hit_type == HitType.PARTIAL:
        damage -= 1
        modifiers.append(DamageModifier("Partial Success", -1))

    penalties = derive_penalties(attacker, rules.combat)
    if penalties.casualty > 0:
        damage -= penalties.casualty
        modifiers.append(DamageModifier("Casualty Penalty", -penalties.casualty))

    if penalties.readiness_damage != 0:
        damage += penalties.readiness_damage
        modifiers.append(DamageModifier("Low Readiness", penalties.readiness_damage))

    if (
        attacker.current_order == context.assault_order
        and context.attacker_assault_target
        and context.attacker_assault_target == target.id
    ):
        damage += 1
        modifiers.append(DamageModifier("Assault (+1 damage)", +1))

    if target.current_order == context.assault_order:
        damage += 1
        modifiers.append(DamageModifier("Target assaulting (+1 incoming)", +1))

    if context.target_disordered:
        damage += 1
        modifiers.append(DamageModifier("Target disordered (+1 incoming)", +1))

    is_infantry = target.has_trait(TraitId.INFANTRY)
    if weapon.area and is_infantry:
        damage += 1
        modifiers.append(DamageModifier("Area vs Infantry", +1))

    if weapon.attack_type == AttackType.HARD and is_infantry:
        before = damage
        damage = damage // 2
        modifiers.append(DamageModifier("Hard vs Infantry (half)", damage - before))

    armor = target.trait_value(TraitId.ARMORED) if target.has_trait(TraitId.ARMORED) else 0
    if armor > 0:
        damage -= armor
        modifiers.append(DamageModifier(f"Armored[{armor}]", -armor))

    if target.has_trait(TraitId.ENTRENCHED):
        damage -= 1
        modifiers.append(DamageModifier("Entrenched", -1))

    if target.has_trait(TraitId.FORTIFIED):
        damage -= 2
        modifiers.append(DamageModifier("Fortified", -2))

    # A landed hit always does at least 1.
    return DamageResult(final=max(1, damage), base=base, modifiers=modifiers)


def resolve_attack(
    weapon: Weapon,
    attacker: Unit,
    target: Unit,
    dice: DiceRoller,
    rules: Ruleset,
    *,
    context: AttackContext | None = None,
) -> AttackOutcome:
    def invalid(reason: str) -> AttackOutcome:
        return AttackOutcome(
            attacker_id=attacker.id,
            target_id=target.id,
            weapon_id=weapon.id,
            valid=False,
            reason=reason,
            roll=None,
            accuracy=None,
            hit_result=None,
            damage=None,
        )

    if not attacker.in_play:
        return invalid(f"{attacker.name} is out of action.")
    if not target.in_play:
        return invalid(f"{target.name} is no longer a valid target.")

    validation = validate_attack(weapon, target)
    if not validation.valid:
        return invalid(validation.reason or "Invalid attack")

    accuracy = calculate_accuracy(weapon, attacker, rules, target, context=context)
    roll = dice.roll_d10()
    hit_result = determine_hit_result(roll, accuracy.effective)

    if validation.soft_vs_heavy and roll != 10:
        hit_result = HitResult(hit=False, type=HitType.MISS)

    damage: DamageResult | None = None
    if hit_result.hit:
        if validation.soft_vs_heavy:
            damage = DamageResult(
                final=1,
                base=weapon.damage,
                modifiers=[DamageModifier("Soft vs Heavy (fixed)", None)],
            )
        else:
            damage = calculate_damage(weapon, attacker, target, hit_result.type, rules, context=context)

    logger.debug(
        "%s fires %s at %s: roll %d vs %d -> %s (%s dmg)",
        attacker.id,
        weapon.id,
        target.id,
        roll,
        accuracy.effective,
        hit_result.type.value,
        damage.final if damage else 0,
    )
    return AttackOutcome(
        attacker_id=attacker.id,
        target_id=target.id,
        weapon_id=weapon.id,
        valid=True,
        reason=None,
        roll=roll,
        accuracy=accuracy,
        hit_result=hit_result,
        damage=damage,
        soft_vs_heavy=validation.soft_vs_heavy,
    )

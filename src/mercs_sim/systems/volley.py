"""Batched fire.

A unit's whole volley is resolved against the pre-volley state before any
damage lands, so a target cannot dodge part of a volley by being destroyed
hit-by-hit:

1. resolve every targeted weapon (no mutation);
2. group landed hits by target, one readiness loss per hit;
3. queue the totals while a round is active, otherwise apply them at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mercs_sim.domain.combat_models import (
    AttackOutcome,
    HitRecord,
    PendingDamage,
    TargetVolleySummary,
    VolleyResult,
)
from mercs_sim.domain.types import Unit, Weapon
from mercs_sim.sim.dice import DiceRoller
from mercs_sim.systems.attack import resolve_attack
from mercs_sim.systems.damage import apply_pending_damage, queue_damage, readiness_loss_for_hit
from mercs_sim.systems.targeting import check_fire_legality

if TYPE_CHECKING:
    from mercs_sim.sim.session import CombatSession

logger = logging.getLogger(__name__)


@dataclass()
class _TargetTally:
    target: Unit
    hits: list[HitRecord] = field(default_factory=list)

    @property
    def strength(self) -> int:
        return sum(hit.damage for hit in self.hits)

    @property
    def readiness(self) -> int:
        return sum(hit.readiness_loss for hit in self.hits)


def roll_all_attacks(
    session: "CombatSession",
    attacker_id: str,
    dice: DiceRoller,
    *,
    check_legality: bool = False,
) -> VolleyResult:
    attacker = session.unit(attacker_id)
    weapons = [weapon for weapon in attacker.weapons if weapon.target_id]
    return _fire(session, attacker, weapons, dice, check_legality=check_legality)


def fire_weapon(
    session: "CombatSession",
    attacker_id: str,
    weapon_id: str,
    dice: DiceRoller,
    *,
    check_legality: bool = False,
) -> VolleyResult:
    attacker = session.unit(attacker_id)
    weapon = attacker.weapon(weapon_id)
    if not weapon.target_id:
        raise ValueError(f"{weapon.name} has no assigned target")
    return _fire(session, attacker, [weapon], dice, check_legality=check_legality)


def _invalid(attacker: Unit, weapon: Weapon, reason: str) -> AttackOutcome:
    return AttackOutcome(
        attacker_id=attacker.id,
        target_id=weapon.target_id,
        weapon_id=weapon.id,
        valid=False,
        reason=reason,
        roll=None,
        accuracy=None,
        hit_result=None,
        damage=None,
    )


def _fire(
    session: "CombatSession",
    attacker: Unit,
    weapons: list[Weapon],
    dice: DiceRoller,
    *,
    check_legality: bool,
) -> VolleyResult:
    outcomes: list[AttackOutcome] = []
    for weapon in weapons:
        target = session.units.get(weapon.target_id)
        if target is None:
            logger.warning("%s/%s targets unknown unit %s", attacker.id, weapon.id, weapon.target_id)
            outcomes.append(_invalid(attacker, weapon, f"Target {weapon.target_id} not found."))
            continue
        if check_legality:
            permission = check_fire_legality(session, attacker, weapon, target)
            if not permission.allowed:
                outcomes.append(_invalid(attacker, weapon, permission.reason or "Illegal attack"))
                continue
        outcome = resolve_attack(
            weapon,
            attacker,
            target,
            dice,
            session.rules,
            context=session.attack_context(attacker, target),
        )
        outcomes.append(outcome)

    tallies: dict[str, _TargetTally] = {}
    for outcome in outcomes:
        if not outcome.hit:
            continue
        target = session.unit(outcome.target_id)
        tally = tallies.setdefault(target.id, _TargetTally(target=target))
        weapon = attacker.weapon(outcome.weapon_id)
        damage = outcome.final_damage
        tally.hits.append(
            HitRecord(
                source=attacker.name,
                weapon=weapon.name,
                damage=damage,
                readiness_loss=readiness_loss_for_hit(target, damage, session.rules.combat),
            )
        )

    fired = sum(1 for outcome in outcomes if outcome.valid)
    if fired:
        session.state_for(attacker.id).weapons_fired += fired

    deferred = session.round_active
    summaries: list[TargetVolleySummary] = []
    for target_id, tally in tallies.items():
        application = None
        if deferred:
            for hit in tally.hits:
                queue_damage(session, target_id, hit.damage, hit.readiness_loss, hit.source, hit.weapon)
        else:
            pending = PendingDamage()
            for hit in tally.hits:
                pending.add(hit)
            application = apply_pending_damage(tally.target, pending)
        summaries.append(
            TargetVolleySummary(
                target_id=target_id,
                strength_damage=tally.strength,
                readiness_loss=tally.readiness,
                hits=list(tally.hits),
                deferred=deferred,
                application=application,
            )
        )

    for outcome in outcomes:
        _log_outcome(session, attacker, outcome)
    for summary in summaries:
        verb = "queued" if summary.deferred else "applied"
        session.log.add(
            "damage",
            f"{summary.target_id}: -{summary.strength_damage} STR, -{summary.readiness_loss} RDY {verb}",
            target_id=summary.target_id,
            strength=summary.strength_damage,
            readiness=summary.readiness_loss,
            deferred=summary.deferred,
        )

    return VolleyResult(attacker_id=attacker.id, outcomes=outcomes, targets=summaries, weapons_fired=fired)


def _log_outcome(session: "CombatSession", attacker: Unit, outcome: AttackOutcome) -> None:
    if not outcome.valid:
        session.log.add(
            "attack",
            f"{attacker.name} cannot fire {outcome.weapon_id}: {outcome.reason}",
            attacker_id=attacker.id,
            weapon_id=outcome.weapon_id,
            target_id=outcome.target_id,
            valid=False,
        )
        return
    assert outcome.hit_result is not None and outcome.accuracy is not None
    session.log.add(
        "attack",
        f"{attacker.name} {outcome.weapon_id} -> {outcome.target_id}: "
        f"{outcome.roll} vs {outcome.accuracy.effective} {outcome.hit_result.type.label}"
        + (f" ({outcome.final_damage} dmg)" if outcome.hit else ""),
        attacker_id=attacker.id,
        weapon_id=outcome.weapon_id,
        target_id=outcome.target_id,
        roll=outcome.roll,
        hit=outcome.hit,
        damage=outcome.final_damage,
    )

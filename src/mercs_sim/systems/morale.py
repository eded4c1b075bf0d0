"""Morale engine.

A morale roll passes when ``d10 - damage_taken - isolation > readiness``; a
natural 1 always fails. Status transitions run once per unit per
consolidation:

    normal --fail--> breaking
    breaking/broken --undamaged--> normal
    breaking/broken --damaged, pass--> normal
    breaking/broken --damaged, fail--> surrendered (terminal)

Assaulting units skip the regular check and resolve against their declared
target instead (``run_assault_resolution``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mercs_sim.domain.hexgrid import HexCoord
from mercs_sim.domain.reports import AssaultRecord, MoraleCheckRecord, MoraleRoll, WithdrawTestRecord
from mercs_sim.domain.types import MoraleStatus, TraitId, Unit
from mercs_sim.rules.ruleset import MoraleConfig
from mercs_sim.sim.dice import DiceRoller

if TYPE_CHECKING:
    from mercs_sim.sim.session import CombatSession

logger = logging.getLogger(__name__)

DEFAULT_ISOLATION_PENALTY = 2


@dataclass(frozen=True)
class CommsSupport:
    isolated: bool
    command_nearby: bool


@dataclass(frozen=True)
class MoraleOutcome:
    roll: MoraleRoll
    reroll: MoraleRoll | None
    passed: bool


def evaluate_morale_roll(
    die: int,
    damage_taken: int,
    comms_isolated: bool,
    readiness: int,
    *,
    isolation_penalty: int = DEFAULT_ISOLATION_PENALTY,
) -> MoraleRoll:
    if die == 1:
        return MoraleRoll(die=die, total=die, passed=False, auto_fail=True)
    total = die - max(0, damage_taken) - (isolation_penalty if comms_isolated else 0)
    return MoraleRoll(die=die, total=total, passed=total > readiness)


def comms_support(session: "CombatSession", unit: Unit) -> CommsSupport:
    """A unit is isolated when no living friendly is within comms range of it."""
    if unit.position is None:
        return CommsSupport(isolated=True, command_nearby=False)

    in_range = False
    command_nearby = False
    for friendly in session.friendlies(unit):
        if friendly.destroyed or friendly.position is None:
            continue
        distance = session.board.get_hex_distance(unit.position, friendly.position)
        if distance <= max(unit.comms, friendly.comms):
            in_range = True
            if friendly.has_trait(TraitId.COMMAND):
                command_nearby = True
    return CommsSupport(isolated=not in_range, command_nearby=command_nearby)


def roll_morale(
    dice: DiceRoller,
    unit: Unit,
    *,
    damage_taken: int,
    support: CommsSupport,
    config: MoraleConfig,
) -> MoraleOutcome:
    readiness = unit.readiness.value

    def one_roll() -> MoraleRoll:
        return evaluate_morale_roll(
            dice.roll_d10(),
            damage_taken,
            support.isolated,
            readiness,
            isolation_penalty=config.isolation_penalty,
        )

    first = one_roll()
    reroll = None
    if not first.passed and support.command_nearby:
        reroll = one_roll()
    passed = first.passed or (reroll is not None and reroll.passed)
    return MoraleOutcome(roll=first, reroll=reroll, passed=passed)


def surrender(unit: Unit) -> None:
    unit.morale = MoraleStatus.SURRENDERED
    unit.strength.value = 0


def _damage_taken(session: "CombatSession", unit_id: str) -> int:
    state = session.peek_state(unit_id)
    return state.damage_taken if state is not None else 0


def run_morale_checks(session: "CombatSession", dice: DiceRoller) -> list[MoraleCheckRecord]:
    config = session.rules.morale
    records: list[MoraleCheckRecord] = []

    for unit in session.iter_units():
        if not unit.in_play or unit.current_order == config.assault_order:
            continue

        before = unit.morale
        readiness = unit.readiness.value
        damage_taken = _damage_taken(session, unit.id)

        if unit.wavering and damage_taken == 0:
            unit.morale = MoraleStatus.NORMAL
            records.append(
                MoraleCheckRecord(
                    unit_id=unit.id,
                    readiness=readiness,
                    status_before=before,
                    status_after=unit.morale,
                    passed=True,
                )
            )
            session.log.add("morale", f"{unit.name} rallies; no damage this turn.", unit_id=unit.id)
            continue

        if not unit.wavering and readiness >= config.check_below_readiness:
            continue

        support = comms_support(session, unit)
        outcome = roll_morale(dice, unit, damage_taken=damage_taken, support=support, config=config)

        if unit.wavering:
            if outcome.passed:
                unit.morale = MoraleStatus.NORMAL
            else:
                surrender(unit)
        elif not outcome.passed:
            unit.morale = MoraleStatus.BREAKING

        record = MoraleCheckRecord(
            unit_id=unit.id,
            readiness=readiness,
            status_before=before,
            status_after=unit.morale,
            passed=outcome.passed,
            roll=outcome.roll,
            reroll=outcome.reroll,
            isolated=support.isolated,
            damage_taken=damage_taken,
        )
        records.append(record)
        logger.debug("Morale check %s", record)
        session.log.add(
            "morale",
            f"{unit.name} morale check: {outcome.roll.total} vs {readiness} "
            f"{'passed' if outcome.passed else 'failed'} ({before.value} -> {unit.morale.value})",
            unit_id=unit.id,
            passed=outcome.passed,
            status=unit.morale.value,
        )

    return records


def retreat_hexes(session: "CombatSession", unit: Unit) -> list[HexCoord]:
    if unit.position is None:
        return []
    is_vehicle = unit.has_trait(TraitId.VEHICLE)
    hexes: list[HexCoord] = []
    for coord in session.board.adjacent(unit.position):
        if session.occupied(coord, exclude=unit.id):
            continue
        terrain = session.board.terrain_at(coord)
        if is_vehicle and terrain is not None and terrain.impassable_vehicle:
            continue
        hexes.append(coord)
    return hexes


def has_retreat_path(session: "CombatSession", unit: Unit) -> bool:
    # Off-board units leave placement to the host.
    if unit.position is None:
        return True
    return bool(retreat_hexes(session, unit))


def run_assault_resolution(session: "CombatSession", dice: DiceRoller) -> list[AssaultRecord]:
    config = session.rules.morale
    records: list[AssaultRecord] = []

    for attacker in session.iter_units():
        if attacker.current_order != config.assault_order or not attacker.in_play:
            continue
        state = session.peek_state(attacker.id)
        if state is None or not state.assault_target:
            continue
        defender = session.units.get(state.assault_target)
        if defender is None or not defender.in_play:
            continue

        attacker_roll = evaluate_morale_roll(
            dice.roll_d10(), _damage_taken(session, attacker.id), False, attacker.readiness.value
        )
        defender_roll = evaluate_morale_roll(
            dice.roll_d10(), _damage_taken(session, defender.id), False, defender.readiness.value
        )
        loss = config.assault_readiness_loss
        retreat_to: HexCoord | None = None

        if attacker_roll.passed and defender_roll.passed:
            outcome = "stalemate"
        elif defender_roll.passed:
            attacker.morale = MoraleStatus.BREAKING
            attacker.readiness.adjust(-loss)
            outcome = "repelled"
        elif attacker_roll.passed:
            defender.readiness.adjust(-loss)
            if has_retreat_path(session, defender):
                defender.morale = MoraleStatus.BROKEN
                hexes = retreat_hexes(session, defender)
                if hexes:
                    retreat_to = hexes[0]
                    defender.position = retreat_to
                outcome = "defender_broken"
            else:
                surrender(defender)
                outcome = "defender_surrendered"
        else:
            attacker.morale = MoraleStatus.BREAKING
            defender.morale = MoraleStatus.BREAKING
            attacker.readiness.adjust(-loss)
            defender.readiness.adjust(-loss)
            outcome = "both_falter"

        record = AssaultRecord(
            attacker_id=attacker.id,
            defender_id=defender.id,
            attacker_roll=attacker_roll,
            defender_roll=defender_roll,
            outcome=outcome,
            attacker_status=attacker.morale,
            defender_status=defender.morale,
            retreat_to=retreat_to,
        )
        records.append(record)
        session.log.add(
            "assault",
            f"Assault {attacker.name} vs {defender.name}: {outcome.replace('_', ' ')}",
            attacker_id=attacker.id,
            defender_id=defender.id,
            outcome=outcome,
        )

    return records


def run_withdraw_tests(session: "CombatSession", dice: DiceRoller) -> list[WithdrawTestRecord]:
    config = session.rules.morale
    records: list[WithdrawTestRecord] = []
    for unit in session.iter_units():
        if unit.current_order != config.withdraw_order or not unit.in_play:
            continue
        support = comms_support(session, unit)
        outcome = roll_morale(dice, unit, damage_taken=0, support=support, config=config)
        if not outcome.passed:
            session.state_for(unit.id).disordered = True
        records.append(
            WithdrawTestRecord(
                unit_id=unit.id,
                roll=outcome.roll,
                reroll=outcome.reroll,
                passed=outcome.passed,
                isolated=support.isolated,
            )
        )
        session.log.add(
            "morale",
            f"{unit.name} withdraws {'in good order' if outcome.passed else 'in disorder'}",
            unit_id=unit.id,
            passed=outcome.passed,
        )
    return records

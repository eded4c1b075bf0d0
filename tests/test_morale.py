from __future__ import annotations

from mercs_sim.domain.hexgrid import HexCoord
from mercs_sim.domain.types import MoraleStatus, Rating, TraitId
from mercs_sim.systems.morale import (
    CommsSupport,
    comms_support,
    evaluate_morale_roll,
    retreat_hexes,
    roll_morale,
    run_assault_resolution,
    run_morale_checks,
    run_withdraw_tests,
)
from tests.helpers.factories import ScriptedDice, default_rules, make_session, make_unit
from tests.helpers.invariants import assert_morale_status


def test_natural_one_always_fails() -> None:
    roll = evaluate_morale_roll(1, 0, False, -50)

    assert roll.passed is False
    assert roll.auto_fail is True
    assert roll.total == 1


def test_roll_subtracts_damage_and_isolation() -> None:
    roll = evaluate_morale_roll(9, 2, True, 4)

    assert roll.total == 5
    assert roll.passed is True
    assert evaluate_morale_roll(9, 2, True, 5).passed is False
    assert evaluate_morale_roll(9, 2, False, 5).passed is True


def test_comms_support_range_uses_the_larger_comms_value() -> None:
    unit = make_unit("unit", position=HexCoord(0, 0), comms=1)
    relay = make_unit("relay", position=HexCoord(3, 0), comms=3)
    session = make_session(unit, relay)

    support = comms_support(session, unit)

    assert support.isolated is False
    assert support.command_nearby is False


def test_comms_support_ignores_enemies_and_the_dead() -> None:
    unit = make_unit("unit", position=HexCoord(0, 0))
    enemy = make_unit("enemy", team="bravo", position=HexCoord(1, 0))
    dead_hq = make_unit("dead-hq", position=HexCoord(0, 1), strength=0, strength_max=6, traits=[TraitId.COMMAND])
    far = make_unit("far", position=HexCoord(6, 0))
    session = make_session(unit, enemy, dead_hq, far)

    assert comms_support(session, unit).isolated is True


def test_command_in_range_is_reported() -> None:
    unit = make_unit("unit", position=HexCoord(0, 0))
    hq = make_unit("hq", position=HexCoord(2, 0), traits=[TraitId.COMMAND])
    session = make_session(unit, hq)

    assert comms_support(session, unit) == CommsSupport(isolated=False, command_nearby=True)


def test_off_board_unit_is_isolated() -> None:
    unit = make_unit("unit")
    session = make_session(unit, make_unit("friend", position=HexCoord(0, 0)))

    assert comms_support(session, unit).isolated is True


def test_command_grants_one_reroll_on_failure() -> None:
    config = default_rules().morale
    unit = make_unit("unit", readiness=5)
    dice = ScriptedDice([1, 10])

    outcome = roll_morale(
        dice, unit, damage_taken=0, support=CommsSupport(isolated=False, command_nearby=True), config=config
    )

    assert outcome.roll.passed is False
    assert outcome.reroll is not None and outcome.reroll.passed is True
    assert outcome.passed is True
    assert dice.calls == 2


def test_no_reroll_after_a_pass_or_without_command() -> None:
    config = default_rules().morale
    unit = make_unit("unit", readiness=5)

    passed = roll_morale(
        ScriptedDice([9]), unit, damage_taken=0, support=CommsSupport(False, True), config=config
    )
    failed = roll_morale(
        ScriptedDice([1]), unit, damage_taken=0, support=CommsSupport(False, False), config=config
    )

    assert passed.reroll is None and passed.passed is True
    assert failed.reroll is None and failed.passed is False


def test_natural_one_breaks_a_normal_unit_below_ten_readiness() -> None:
    unit = make_unit("unit", readiness=8)
    session = make_session(unit)

    records = run_morale_checks(session, ScriptedDice([1]))

    assert len(records) == 1
    assert records[0].roll is not None and records[0].roll.auto_fail is True
    assert unit.morale == MoraleStatus.BREAKING


def test_high_readiness_units_skip_the_check() -> None:
    unit = make_unit("veteran", rating=Rating.VETERAN, readiness=12)
    session = make_session(unit)

    assert run_morale_checks(session, ScriptedDice([])) == []
    assert unit.morale == MoraleStatus.NORMAL


def test_undamaged_breaking_unit_recovers_without_rolling() -> None:
    unit = make_unit("unit", readiness=2)
    unit.morale = MoraleStatus.BREAKING
    session = make_session(unit)
    dice = ScriptedDice([])

    records = run_morale_checks(session, dice)

    assert unit.morale == MoraleStatus.NORMAL
    assert records[0].passed is True
    assert records[0].roll is None
    assert dice.calls == 0


def test_damaged_breaking_unit_surrenders_on_failure() -> None:
    unit = make_unit("unit", readiness=5)
    unit.morale = MoraleStatus.BROKEN
    session = make_session(unit)
    session.state_for("unit").damage_taken = 3

    records = run_morale_checks(session, ScriptedDice([2]))

    assert records[0].status_after == MoraleStatus.SURRENDERED
    assert records[0].damage_taken == 3
    assert unit.strength.value == 0
    assert_morale_status(unit)


def test_damaged_breaking_unit_recovers_on_a_pass() -> None:
    unit = make_unit("unit", readiness=2)
    unit.morale = MoraleStatus.BREAKING
    session = make_session(unit)
    session.state_for("unit").damage_taken = 1

    records = run_morale_checks(session, ScriptedDice([9]))

    # 9 - 1 damage - 2 isolated = 6 > 2
    assert records[0].roll is not None and records[0].roll.total == 6
    assert unit.morale == MoraleStatus.NORMAL


def test_isolation_penalty_can_decide_the_check() -> None:
    alone = make_unit("alone", readiness=5, position=HexCoord(0, 0))
    session = make_session(alone)
    run_morale_checks(session, ScriptedDice([7]))
    assert alone.morale == MoraleStatus.BREAKING

    covered = make_unit("covered", readiness=5, position=HexCoord(0, 0))
    buddy = make_unit("buddy", rating=Rating.VETERAN, position=HexCoord(1, 0))
    session = make_session(covered, buddy)
    run_morale_checks(session, ScriptedDice([7]))
    assert covered.morale == MoraleStatus.NORMAL


def test_assaulting_and_out_of_play_units_skip_regular_checks() -> None:
    stormer = make_unit("stormer", readiness=3, order="assault")
    wreck = make_unit("wreck", readiness=3, strength=0, strength_max=10)
    session = make_session(stormer, wreck)

    assert run_morale_checks(session, ScriptedDice([])) == []


def _assault(rolls: list[int], *, bounded: bool = False):
    attacker = make_unit("stormer", readiness=5, order="assault", position=HexCoord(0, 0))
    defender = make_unit("holder", team="bravo", readiness=5, position=HexCoord(1, 0))
    terrain = {HexCoord(0, 0): "plain", HexCoord(1, 0): "plain"} if bounded else None
    session = make_session(attacker, defender, terrain=terrain, bounded=bounded)
    session.state_for("stormer").assault_target = "holder"
    records = run_assault_resolution(session, ScriptedDice(rolls))
    return records, attacker, defender


def test_assault_stalemate_changes_nothing() -> None:
    records, attacker, defender = _assault([9, 9])

    assert records[0].outcome == "stalemate"
    assert attacker.readiness.value == 5
    assert defender.readiness.value == 5


def test_repelled_assault_breaks_the_attacker() -> None:
    records, attacker, defender = _assault([2, 9])

    assert records[0].outcome == "repelled"
    assert attacker.morale == MoraleStatus.BREAKING
    assert attacker.readiness.value == 3
    assert defender.morale == MoraleStatus.NORMAL


def test_broken_defender_retreats_to_a_free_hex() -> None:
    records, attacker, defender = _assault([9, 2])

    assert records[0].outcome == "defender_broken"
    assert defender.morale == MoraleStatus.BROKEN
    assert defender.readiness.value == 3
    assert records[0].retreat_to == HexCoord(2, 0)
    assert defender.position == HexCoord(2, 0)


def test_cornered_defender_surrenders() -> None:
    records, attacker, defender = _assault([9, 2], bounded=True)

    assert records[0].outcome == "defender_surrendered"
    assert defender.morale == MoraleStatus.SURRENDERED
    assert defender.strength.value == 0
    assert defender.position == HexCoord(1, 0)


def test_both_sides_falter() -> None:
    records, attacker, defender = _assault([2, 2])

    assert records[0].outcome == "both_falter"
    assert attacker.morale == MoraleStatus.BREAKING
    assert defender.morale == MoraleStatus.BREAKING
    assert attacker.readiness.value == 3
    assert defender.readiness.value == 3


def test_vehicles_cannot_retreat_into_impassable_terrain() -> None:
    tank = make_unit("tank", traits=[TraitId.VEHICLE], position=HexCoord(0, 0))
    terrain = {HexCoord(0, 0): "plain", HexCoord(1, 0): "mountain", HexCoord(0, 1): "plain"}
    session = make_session(tank, terrain=terrain, bounded=True)

    assert retreat_hexes(session, tank) == [HexCoord(0, 1)]


def test_failed_withdraw_leaves_the_unit_disordered() -> None:
    unit = make_unit("unit", readiness=5, order="withdraw")
    session = make_session(unit)

    records = run_withdraw_tests(session, ScriptedDice([3]))

    assert records[0].passed is False
    assert records[0].isolated is True
    assert session.state_for("unit").disordered is True


def test_orderly_withdraw_is_not_disordered() -> None:
    unit = make_unit("unit", readiness=5, order="withdraw")
    session = make_session(unit)

    records = run_withdraw_tests(session, ScriptedDice([10]))

    assert records[0].passed is True
    assert session.peek_state("unit") is None

from __future__ import annotations

import pytest

from mercs_sim.domain.actions import (
    AssignOrder,
    AssignTarget,
    DeclareAssault,
    FireAllWeapons,
    FireWeapon,
    MoveUnit,
    NextPhase,
    PreviousPhase,
)
from mercs_sim.domain.hexgrid import HexCoord
from mercs_sim.domain.types import UnknownEntityError
from mercs_sim.sim.reducer import apply_action
from mercs_sim.sim.session import CONSOLIDATION, TACTICAL
from tests.helpers.factories import make_scenario_session, make_session, make_unit, make_weapon


def _skirmish(phase_index: int = TACTICAL, target_at: HexCoord = HexCoord(2, 0)):
    shooter = make_unit("shooter", position=HexCoord(0, 0), weapons=[make_weapon("gun", range=3)])
    target = make_unit("target", team="bravo", position=target_at)
    return make_session(shooter, target, phase_index=phase_index)


def test_next_phase_advances_and_counts_actions() -> None:
    session = make_session()

    result = apply_action(session, NextPhase())

    assert result.ok is True
    assert result.message == "Round 1: Orders"
    assert session.action_seq == 1
    assert [event.kind for event in result.events] == ["phase"]


def test_previous_phase_at_round_start_fails_without_counting() -> None:
    session = make_session()

    result = apply_action(session, PreviousPhase())

    assert result.ok is False
    assert result.message == "Already at the start of the round."
    assert result.message_kind == "error"
    assert session.action_seq == 0


def test_next_phase_on_inactive_session_fails() -> None:
    session = make_session()
    session.active = False

    result = apply_action(session, NextPhase())

    assert result.ok is False
    assert "not active" in (result.message or "")


def test_order_assignment_result() -> None:
    session = make_session(make_unit("unit"))

    refused = apply_action(session, AssignOrder(unit_id="unit", order_key="hold"))
    assert refused.ok is False
    assert refused.message == "Orders can only be assigned during the orders phase."

    apply_action(session, NextPhase())
    accepted = apply_action(session, AssignOrder(unit_id="unit", order_key="hold"))
    assert accepted.ok is True
    assert accepted.message_kind == "accent"
    assert session.unit("unit").current_order == "hold"


def test_target_then_fire_defers_damage() -> None:
    session = _skirmish()

    assigned = apply_action(session, AssignTarget(unit_id="shooter", weapon_id="gun", target_id="target"))
    fired = apply_action(session, FireAllWeapons(unit_id="shooter"))

    assert assigned.ok is True
    assert fired.ok is True
    assert fired.volley is not None
    assert fired.volley.weapons_fired == 1
    assert session.unit("target").strength.value == 10
    assert session.action_seq == 2
    assert any(event.kind == "attack" for event in fired.events)


def test_fire_single_weapon() -> None:
    session = _skirmish()
    apply_action(session, AssignTarget(unit_id="shooter", weapon_id="gun", target_id="target"))

    result = apply_action(session, FireWeapon(unit_id="shooter", weapon_id="gun"))

    assert result.ok is True
    assert result.volley is not None
    assert [outcome.weapon_id for outcome in result.volley.outcomes] == ["gun"]


def test_fire_failures() -> None:
    session = _skirmish()
    no_targets = apply_action(session, FireAllWeapons(unit_id="shooter"))
    assert no_targets.ok is False
    assert no_targets.message == "Shooter has no assigned targets."

    unassigned = apply_action(session, FireWeapon(unit_id="shooter", weapon_id="gun"))
    assert unassigned.ok is False

    far = _skirmish(target_at=HexCoord(6, 0))
    apply_action(far, AssignTarget(unit_id="shooter", weapon_id="gun", target_id="target"))
    out_of_range = apply_action(far, FireAllWeapons(unit_id="shooter"))
    assert out_of_range.ok is False
    assert out_of_range.message == "Target is out of range (6 > 3)."
    assert out_of_range.volley is not None

    wrong_phase = _skirmish(phase_index=CONSOLIDATION)
    blocked = apply_action(wrong_phase, FireAllWeapons(unit_id="shooter"))
    assert blocked.message == "Attacks are not allowed during the consolidation phase."


def test_move_action() -> None:
    session = _skirmish()

    moved = apply_action(session, MoveUnit(unit_id="shooter", destination=HexCoord(1, 0)))
    blocked = apply_action(session, MoveUnit(unit_id="shooter", destination=HexCoord(2, 0)))

    assert moved.ok is True
    assert moved.message == "Moved to 1,0"
    assert blocked.ok is False
    assert "occupied" in (blocked.message or "")


def test_declare_assault_action() -> None:
    session = make_scenario_session()
    apply_action(session, NextPhase())
    apply_action(session, AssignOrder(unit_id="alpha-armor", order_key="assault"))

    result = apply_action(session, DeclareAssault(unit_id="alpha-armor", target_id="bravo-militia"))

    assert result.ok is True
    assert session.state_for("alpha-armor").assault_target == "bravo-militia"


def test_unknown_units_raise() -> None:
    session = make_session()

    with pytest.raises(UnknownEntityError):
        apply_action(session, FireAllWeapons(unit_id="ghost"))


def test_unknown_action_fails() -> None:
    result = apply_action(make_session(), object())  # type: ignore[arg-type]

    assert result.ok is False
    assert result.message == "Unknown action"


def test_full_round_on_the_default_scenario() -> None:
    session = make_scenario_session(seed=11)
    apply_action(session, NextPhase())
    apply_action(session, AssignOrder(unit_id="alpha-rifles", order_key="hold"))
    apply_action(session, AssignTarget(unit_id="alpha-rifles", weapon_id="mortars", target_id="bravo-militia"))
    apply_action(session, NextPhase())

    fired = apply_action(session, FireWeapon(unit_id="alpha-rifles", weapon_id="mortars"))
    consolidation = apply_action(session, NextPhase())
    next_round = apply_action(session, NextPhase())

    assert fired.ok is True
    assert consolidation.report is not None
    assert any(item.unit_id == "alpha-rifles" for item in consolidation.report.supply)
    assert next_round.ok is True
    assert session.round == 2
    assert session.unit("alpha-rifles").current_order == ""
    assert session.unit("alpha-rifles").weapon("mortars").target_id == ""

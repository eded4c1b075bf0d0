from __future__ import annotations

from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule, run_state_machine_as_test

from mercs_sim.domain.actions import (
    AssignOrder,
    AssignTarget,
    DeclareAssault,
    FireAllWeapons,
    MoveUnit,
    NextPhase,
    PreviousPhase,
)
from mercs_sim.sim.reducer import apply_action
from tests.helpers.factories import default_rules, make_scenario_session
from tests.helpers.invariants import assert_morale_status, assert_unit_clamped
from tests.helpers.strategies import hex_strategy

_SESSION = make_scenario_session()
UNIT_IDS = sorted(_SESSION.units)
WEAPON_SLOTS = sorted((unit.id, weapon.id) for unit in _SESSION.units.values() for weapon in unit.weapons)
ORDER_KEYS = sorted(default_rules().orders)


class CombatReducerStateMachine(RuleBasedStateMachine):
    def __init__(self) -> None:
        super().__init__()
        self.session = make_scenario_session(seed=5)

    @rule()
    def next_phase(self) -> None:
        result = apply_action(self.session, NextPhase())
        assert result.ok is True

    @rule()
    def previous_phase(self) -> None:
        result = apply_action(self.session, PreviousPhase())
        assert result.ok in (True, False)

    @rule(unit_id=st.sampled_from(UNIT_IDS), order_key=st.sampled_from(ORDER_KEYS))
    def assign_order(self, unit_id: str, order_key: str) -> None:
        result = apply_action(self.session, AssignOrder(unit_id=unit_id, order_key=order_key))
        assert result.ok in (True, False)

    @rule(slot=st.sampled_from(WEAPON_SLOTS), target_id=st.sampled_from(UNIT_IDS))
    def assign_target(self, slot: tuple[str, str], target_id: str) -> None:
        unit_id, weapon_id = slot
        result = apply_action(self.session, AssignTarget(unit_id=unit_id, weapon_id=weapon_id, target_id=target_id))
        assert result.ok in (True, False)

    @rule(target_id=st.sampled_from(UNIT_IDS))
    def declare_assault(self, target_id: str) -> None:
        result = apply_action(self.session, DeclareAssault(unit_id="alpha-armor", target_id=target_id))
        assert result.ok in (True, False)

    @rule(unit_id=st.sampled_from(UNIT_IDS))
    def fire_all(self, unit_id: str) -> None:
        before = self.session.action_seq
        result = apply_action(self.session, FireAllWeapons(unit_id=unit_id))
        assert self.session.action_seq == before + (1 if result.ok else 0)

    @rule(unit_id=st.sampled_from(UNIT_IDS), destination=hex_strategy(radius=5))
    def move(self, unit_id, destination) -> None:
        result = apply_action(self.session, MoveUnit(unit_id=unit_id, destination=destination))
        assert result.ok in (True, False)

    @invariant()
    def invariants_hold(self) -> None:
        assert self.session.round >= 1
        assert 0 <= self.session.phase_index <= 3
        positions = [unit.position for unit in self.session.units.values() if not unit.destroyed and unit.position]
        assert len(positions) == len(set(positions))
        for unit in self.session.units.values():
            assert_unit_clamped(unit)
            assert_morale_status(unit)


def test_combat_reducer_state_machine() -> None:
    run_state_machine_as_test(
        CombatReducerStateMachine,
        settings=settings(max_examples=15, stateful_step_count=30, deadline=None),
    )

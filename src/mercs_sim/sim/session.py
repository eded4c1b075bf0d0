"""Combat session container: unit registry, round clock and per-round state."""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import TYPE_CHECKING, Iterator

from mercs_sim.domain.combat_models import PendingDamage
from mercs_sim.domain.events import EventLog, EventScope
from mercs_sim.domain.hexgrid import HexBoard, HexCoord
from mercs_sim.domain.types import UnknownEntityError, Unit
from mercs_sim.rules.ruleset import OrderDef, Ruleset
from mercs_sim.sim.dice import D10Roller, DiceProvider
from mercs_sim.sim.rng import derive_seed

if TYPE_CHECKING:
    from mercs_sim.domain.reports import ConsolidationReport
    from mercs_sim.systems.attack import AttackContext


PHASES: tuple[str, ...] = ("preparation", "orders", "tactical", "consolidation")
PREPARATION, ORDERS, TACTICAL, CONSOLIDATION = range(4)


@dataclass(frozen=True)
class PhaseRule:
    allows_movement: bool
    allows_attack: bool


PHASE_RULES: dict[str, PhaseRule] = {
    "preparation": PhaseRule(allows_movement=False, allows_attack=False),
    "orders": PhaseRule(allows_movement=False, allows_attack=False),
    "tactical": PhaseRule(allows_movement=True, allows_attack=True),
    "consolidation": PhaseRule(allows_movement=True, allows_attack=False),
}


@dataclass(frozen=True)
class Permission:
    allowed: bool
    reason: str | None = None


@dataclass()
class UnitRoundState:
    movement_used: float = 0.0
    move_destination: HexCoord | None = None
    weapons_fired: int = 0
    pending_damage: PendingDamage | None = None
    assault_target: str | None = None
    disordered: bool = False
    damage_taken: int = 0
    order_assigned: bool = False


@dataclass()
class CombatSession:
    units: dict[str, Unit]
    board: HexBoard
    rules: Ruleset
    rng_seed: int = 0
    round: int = 1
    phase_index: int = PREPARATION
    action_seq: int = 0
    active: bool = True
    round_state: dict[str, UnitRoundState] = field(default_factory=dict)
    log: EventLog = field(default_factory=EventLog)
    last_report: "ConsolidationReport | None" = None

    def __post_init__(self) -> None:
        self.log.scope = self.scope

    @property
    def phase(self) -> str:
        return PHASES[self.phase_index]

    @property
    def phase_rule(self) -> PhaseRule:
        return PHASE_RULES[self.phase]

    @property
    def scope(self) -> EventScope:
        return EventScope(round=self.round, phase=self.phase)

    @property
    def round_active(self) -> bool:
        """Damage is deferred to consolidation while a round is running."""
        return self.active

    def unit(self, unit_id: str) -> Unit:
        try:
            return self.units[unit_id]
        except KeyError as exc:
            raise UnknownEntityError(f"Unknown unit: {unit_id}") from exc

    def iter_units(self) -> Iterator[Unit]:
        # Registry insertion order is the resolution order.
        return iter(list(self.units.values()))

    def state_for(self, unit_id: str) -> UnitRoundState:
        self.unit(unit_id)
        state = self.round_state.get(unit_id)
        if state is None:
            state = UnitRoundState()
            self.round_state[unit_id] = state
        return state

    def peek_state(self, unit_id: str) -> UnitRoundState | None:
        return self.round_state.get(unit_id)

    def order_for(self, unit: Unit) -> OrderDef | None:
        return self.rules.order(unit.current_order)

    def friendlies(self, unit: Unit) -> list[Unit]:
        return [other for other in self.iter_units() if other.team == unit.team and other.id != unit.id]

    def occupied(self, coord: HexCoord, *, exclude: str | None = None) -> bool:
        for unit in self.iter_units():
            if unit.id == exclude or unit.destroyed:
                continue
            if unit.position == coord:
                return True
        return False

    def attack_context(self, attacker: Unit, target: Unit) -> "AttackContext":
        from mercs_sim.systems.attack import AttackContext

        attacker_state = self.peek_state(attacker.id)
        target_state = self.peek_state(target.id)
        return AttackContext(
            attacker_assault_target=attacker_state.assault_target if attacker_state else None,
            target_disordered=bool(target_state and target_state.disordered),
            assault_order=self.rules.morale.assault_order,
        )

    def can_move(self, unit: Unit) -> Permission:
        if not unit.in_play:
            return Permission(False, f"{unit.name} is out of action.")
        if not self.phase_rule.allows_movement:
            return Permission(False, f"Movement is not allowed during the {self.phase} phase.")
        if self.phase_index == TACTICAL:
            order = self.order_for(unit)
            if order is not None and not order.allows_movement:
                return Permission(False, f"The {order.name} order does not allow movement.")
        return Permission(True)

    def can_attack(self, unit: Unit) -> Permission:
        if not unit.in_play:
            return Permission(False, f"{unit.name} is out of action.")
        if not self.phase_rule.allows_attack:
            return Permission(False, f"Attacks are not allowed during the {self.phase} phase.")
        if self.phase_index == TACTICAL:
            order = self.order_for(unit)
            if order is not None and not order.allows_attack:
                return Permission(False, f"The {order.name} order does not allow attacks.")
        return Permission(True)

    def dice_provider(self, action_seq: int | None = None) -> DiceProvider:
        seq = self.action_seq if action_seq is None else action_seq

        def provider(stream: str, purpose: str) -> D10Roller:
            seed = derive_seed(
                self.rng_seed, round_number=self.round, action_seq=seq, stream=stream, purpose=purpose
            )
            return D10Roller(Random(seed))

        return provider

    def dice(self, stream: str, purpose: str) -> D10Roller:
        return self.dice_provider()(stream, purpose)

    def next_phase(self, dice_provider: DiceProvider | None = None) -> "ConsolidationReport | None":
        from mercs_sim.sim.phase_machine import advance_phase

        return advance_phase(self, dice_provider or self.dice_provider())

    def previous_phase(self) -> None:
        from mercs_sim.sim.phase_machine import retreat_phase

        retreat_phase(self)

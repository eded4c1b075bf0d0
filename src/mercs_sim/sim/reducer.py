from __future__ import annotations

from dataclasses import dataclass

from mercs_sim.domain.actions import (
    Action,
    AssignOrder,
    AssignTarget,
    DeclareAssault,
    FireAllWeapons,
    FireWeapon,
    MoveUnit,
    NextPhase,
    PreviousPhase,
)
from mercs_sim.domain.combat_models import VolleyResult
from mercs_sim.domain.events import CombatEvent
from mercs_sim.domain.reports import ConsolidationReport
from mercs_sim.sim.phase_machine import PhaseAdvanceError, advance_phase, retreat_phase
from mercs_sim.sim.session import CombatSession
from mercs_sim.systems import orders
from mercs_sim.systems.movement import move_unit
from mercs_sim.systems.volley import fire_weapon, roll_all_attacks


@dataclass()
class ActionResult:
    ok: bool
    message: str | None
    message_kind: str | None
    session: CombatSession
    events: list[CombatEvent]
    report: ConsolidationReport | None = None
    volley: VolleyResult | None = None


def apply_action(session: CombatSession, action: Action) -> ActionResult:
    """Apply one host action. Unknown unit or weapon ids propagate as UnknownEntityError."""
    next_seq = session.action_seq + 1
    dice_provider = session.dice_provider(next_seq)
    event_start = len(session.log.events)

    def ok(
        message: str | None,
        kind: str = "info",
        *,
        report: ConsolidationReport | None = None,
        volley: VolleyResult | None = None,
    ) -> ActionResult:
        session.action_seq = next_seq
        return ActionResult(
            ok=True,
            message=message,
            message_kind=kind,
            session=session,
            events=list(session.log.events[event_start:]),
            report=report,
            volley=volley,
        )

    def fail(message: str, volley: VolleyResult | None = None) -> ActionResult:
        return ActionResult(
            ok=False,
            message=message,
            message_kind="error",
            session=session,
            events=list(session.log.events[event_start:]),
            volley=volley,
        )

    if isinstance(action, NextPhase):
        try:
            report = advance_phase(session, dice_provider)
            return ok(f"Round {session.round}: {session.phase.title()}", "info", report=report)
        except PhaseAdvanceError as exc:
            return fail(str(exc))

    if isinstance(action, PreviousPhase):
        if session.phase_index == 0:
            return fail("Already at the start of the round.")
        retreat_phase(session)
        return ok(f"Round {session.round}: {session.phase.title()}", "info")

    if isinstance(action, AssignOrder):
        try:
            order = orders.assign_order(session, action.unit_id, action.order_key)
            return ok(f"{session.unit(action.unit_id).name}: {order.name}", "accent")
        except ValueError as exc:
            return fail(str(exc))

    if isinstance(action, AssignTarget):
        try:
            orders.assign_target(session, action.unit_id, action.weapon_id, action.target_id)
            return ok("Target assigned" if action.target_id else "Target cleared", "info")
        except ValueError as exc:
            return fail(str(exc))

    if isinstance(action, DeclareAssault):
        try:
            orders.declare_assault(session, action.unit_id, action.target_id)
            return ok("Assault declared", "accent")
        except ValueError as exc:
            return fail(str(exc))

    if isinstance(action, (FireWeapon, FireAllWeapons)):
        attacker = session.unit(action.unit_id)
        permission = session.can_attack(attacker)
        if not permission.allowed:
            return fail(permission.reason or "Attack not allowed")
        try:
            dice = dice_provider("combat", action.unit_id)
            if isinstance(action, FireWeapon):
                volley = fire_weapon(session, action.unit_id, action.weapon_id, dice, check_legality=True)
            else:
                volley = roll_all_attacks(session, action.unit_id, dice, check_legality=True)
        except ValueError as exc:
            return fail(str(exc))
        if not volley.outcomes:
            return fail(f"{attacker.name} has no assigned targets.", volley)
        if volley.weapons_fired == 0:
            return fail(volley.outcomes[0].reason or "No weapon could fire", volley)
        hits = sum(1 for outcome in volley.outcomes if outcome.hit)
        return ok(f"{attacker.name} fires {volley.weapons_fired} weapon(s): {hits} hit(s)", "accent", volley=volley)

    if isinstance(action, MoveUnit):
        try:
            record = move_unit(session, action.unit_id, action.destination)
            return ok(f"Moved to {record.destination.to_key()}", "info")
        except ValueError as exc:
            return fail(str(exc))

    return fail("Unknown action")

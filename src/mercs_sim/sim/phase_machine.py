"""Round phase sequencing.

preparation -> orders -> tactical -> consolidation, then the next round's
preparation. Entering tactical runs the withdraw tests; entering
consolidation runs the batched effects pipeline; leaving consolidation
resets all round-scoped state.
"""

from __future__ import annotations

import logging

from mercs_sim.domain.reports import (
    ConsolidationReport,
    ReadinessCostRecord,
    UnitDamageSummary,
)
from mercs_sim.sim.dice import DiceProvider
from mercs_sim.sim.session import CONSOLIDATION, PHASES, TACTICAL, CombatSession
from mercs_sim.systems import morale
from mercs_sim.systems.damage import apply_pending_damage
from mercs_sim.systems.supply import consume_supply

logger = logging.getLogger(__name__)


class PhaseAdvanceError(RuntimeError):
    pass


def advance_phase(session: CombatSession, dice_provider: DiceProvider) -> ConsolidationReport | None:
    if not session.active:
        raise PhaseAdvanceError("Combat session is not active")

    current = session.phase_index
    upcoming = current + 1
    report: ConsolidationReport | None = None

    if upcoming == TACTICAL:
        morale.run_withdraw_tests(session, dice_provider("morale", "withdraw"))

    if upcoming == CONSOLIDATION:
        report = run_consolidation_effects(session, dice_provider)
        session.last_report = report

    if current == CONSOLIDATION:
        run_consolidation_cleanup(session)

    if upcoming >= len(PHASES):
        session.round += 1
        session.phase_index = 0
    else:
        session.phase_index = upcoming

    session.log.scope = session.scope
    logger.debug("Round %d: entering %s", session.round, session.phase)
    session.log.add("phase", f"Round {session.round}: {session.phase.title()}", round=session.round)
    return report


def retreat_phase(session: CombatSession) -> None:
    """Step back within the round without re-running or undoing effects."""
    if session.phase_index <= 0:
        return
    session.phase_index -= 1
    session.log.scope = session.scope
    session.log.add("phase", f"Round {session.round}: {session.phase.title()}", round=session.round)


def run_consolidation_effects(session: CombatSession, dice_provider: DiceProvider) -> ConsolidationReport:
    report = ConsolidationReport(round=session.round)
    rules = session.rules
    units = list(session.iter_units())

    for unit in units:
        state = session.peek_state(unit.id)
        if state is None or state.pending_damage is None:
            continue
        pending = state.pending_damage
        state.pending_damage = None
        if pending.empty:
            continue
        application = apply_pending_damage(unit, pending)
        state.damage_taken += pending.strength
        report.damage.append(
            UnitDamageSummary(
                unit_id=unit.id,
                strength_damage=pending.strength,
                readiness_loss=pending.readiness,
                hits=list(pending.hits),
                application=application,
            )
        )
        if application.destroyed:
            status = "DESTROYED"
        elif application.routed:
            status = "ROUTED"
        else:
            status = f"STR {application.new_strength} | RDY {application.new_readiness}"
        session.log.add(
            "damage",
            f"{unit.name}: -{pending.strength} STR, -{pending.readiness} RDY ({status})",
            unit_id=unit.id,
            destroyed=application.destroyed,
            routed=application.routed,
        )

    for unit in units:
        if not unit.in_play:
            continue
        order = session.order_for(unit)
        if order is None or order.readiness_cost == 0:
            continue
        applied = unit.readiness.adjust(order.readiness_cost)
        report.readiness.append(
            ReadinessCostRecord(unit_id=unit.id, order=order.key, cost=order.readiness_cost, applied=applied)
        )
        if applied:
            session.log.add("readiness", f"{unit.name}: order readiness {applied:+d} ({order.name})", unit_id=unit.id)

    for unit in units:
        state = session.peek_state(unit.id)
        if not unit.in_play or state is None or not state.disordered:
            continue
        loss = rules.morale.disordered_readiness_loss
        applied = unit.readiness.adjust(-loss)
        report.readiness.append(
            ReadinessCostRecord(
                unit_id=unit.id, order=unit.current_order, cost=-loss, applied=applied, source="disordered"
            )
        )
        session.log.add("readiness", f"{unit.name}: disordered {applied:+d} readiness", unit_id=unit.id)

    for unit in units:
        if not unit.in_play:
            continue
        state = session.peek_state(unit.id)
        record = consume_supply(unit, session.order_for(unit), state.weapons_fired if state else 0)
        if record is None:
            continue
        report.supply.append(record)
        session.log.add(
            "supply",
            f"{unit.name}: supply -{record.consumed} ({record.remaining}/{unit.supply.capacity} left)",
            unit_id=unit.id,
        )

    report.morale.extend(morale.run_morale_checks(session, dice_provider("morale", "consolidation")))
    report.assaults.extend(morale.run_assault_resolution(session, dice_provider("morale", "assault")))
    return report


def run_consolidation_cleanup(session: CombatSession) -> None:
    for unit in session.iter_units():
        for weapon in unit.weapons:
            weapon.target_id = ""
        unit.current_order = ""
    session.round_state.clear()

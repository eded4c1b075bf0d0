from __future__ import annotations

from mercs_sim.domain.combat_models import AttackOutcome, VolleyResult
from mercs_sim.domain.events import CombatEvent
from mercs_sim.domain.reports import ConsolidationReport
from mercs_sim.domain.types import Unit
from mercs_sim.sim.session import CombatSession
from mercs_sim.systems.checks import OpposedCheckResult, SkillCheckResult
from mercs_sim.systems.orders import available_orders
from mercs_server.api import schemas

LOG_TAIL = 50


def build_state_response(session: CombatSession) -> schemas.CombatStateResponse:
    return schemas.CombatStateResponse(
        round=session.round,
        phase=session.phase,
        phase_index=session.phase_index,
        action_seq=session.action_seq,
        units=[_unit_view(session, unit) for unit in session.iter_units()],
        board=_board_view(session),
        log=[event_view(event) for event in session.log.events[-LOG_TAIL:]],
    )


def event_view(event: CombatEvent) -> schemas.EventView:
    return schemas.EventView(
        kind=event.kind,
        message=event.message,
        round=event.scope.round if event.scope else None,
        phase=event.scope.phase if event.scope else None,
        data=event.data,
    )


def _unit_view(session: CombatSession, unit: Unit) -> schemas.UnitView:
    state = session.peek_state(unit.id)
    round_state = None
    if state is not None:
        pending = state.pending_damage
        round_state = schemas.RoundStateView(
            movement_used=state.movement_used,
            move_destination=state.move_destination.to_key() if state.move_destination else None,
            weapons_fired=state.weapons_fired,
            pending_strength=pending.strength if pending else 0,
            pending_readiness=pending.readiness if pending else 0,
            assault_target=state.assault_target,
            disordered=state.disordered,
            damage_taken=state.damage_taken,
        )
    return schemas.UnitView(
        id=unit.id,
        name=unit.name,
        team=unit.team,
        rating=unit.rating.value,
        strength=schemas.PoolView(value=unit.strength.value, max=unit.strength.max),
        readiness=schemas.PoolView(value=unit.readiness.value, max=unit.readiness.max),
        supply=schemas.SupplyView(
            current=unit.supply.current, capacity=unit.supply.capacity, usage=unit.supply.usage
        ),
        speed=unit.speed,
        sensors=unit.sensors,
        signature=unit.signature,
        ewar=unit.ewar,
        comms=unit.comms,
        current_order=unit.current_order,
        morale=unit.morale.value,
        destroyed=unit.destroyed,
        routed=unit.routed,
        in_play=unit.in_play,
        position=unit.position.to_key() if unit.position else None,
        traits=[
            schemas.TraitView(id=trait.id.value, label=trait.display_name, value=trait.value, active=trait.active)
            for trait in unit.traits
        ],
        weapons=[
            schemas.WeaponView(
                id=weapon.id,
                name=weapon.name,
                attack_type=weapon.attack_type.value,
                damage=weapon.damage,
                range=weapon.range,
                indirect=weapon.indirect,
                area=weapon.area,
                accurate=weapon.accurate,
                inaccurate=weapon.inaccurate,
                target_id=weapon.target_id,
            )
            for weapon in unit.weapons
        ],
        available_orders=[order.key for order in available_orders(unit, session.rules)],
        can_move=session.can_move(unit).allowed,
        can_attack=session.can_attack(unit).allowed,
        round_state=round_state,
    )


def _board_view(session: CombatSession) -> schemas.BoardView:
    return schemas.BoardView(
        bounded=session.board.bounded,
        hexes=[
            schemas.HexView(coord=coord.to_key(), terrain=terrain)
            for coord, terrain in sorted(session.board.terrain.items())
        ],
    )


def _outcome_view(outcome: AttackOutcome) -> schemas.AttackOutcomeView:
    return schemas.AttackOutcomeView(
        weapon_id=outcome.weapon_id,
        target_id=outcome.target_id,
        valid=outcome.valid,
        reason=outcome.reason,
        roll=outcome.roll,
        effective_accuracy=outcome.accuracy.effective if outcome.accuracy else None,
        hit_type=outcome.hit_result.type.value if outcome.hit_result else None,
        damage=outcome.final_damage,
        modifiers=[
            schemas.DamageModifierView(label=modifier.label, value=modifier.value)
            for modifier in (outcome.damage.modifiers if outcome.damage else [])
        ],
        soft_vs_heavy=outcome.soft_vs_heavy,
    )


def volley_view(volley: VolleyResult) -> schemas.VolleyView:
    return schemas.VolleyView(
        attacker_id=volley.attacker_id,
        weapons_fired=volley.weapons_fired,
        outcomes=[_outcome_view(outcome) for outcome in volley.outcomes],
        targets=[
            schemas.TargetSummaryView(
                target_id=summary.target_id,
                strength_damage=summary.strength_damage,
                readiness_loss=summary.readiness_loss,
                deferred=summary.deferred,
            )
            for summary in volley.targets
        ],
    )


def report_view(report: ConsolidationReport) -> schemas.ConsolidationReportView:
    return schemas.ConsolidationReportView(
        round=report.round,
        damage=[
            schemas.DamageSummaryView(
                unit_id=item.unit_id,
                strength_damage=item.strength_damage,
                readiness_loss=item.readiness_loss,
                destroyed=item.application.destroyed,
                routed=item.application.routed,
            )
            for item in report.damage
        ],
        readiness=[
            schemas.ReadinessChangeView(unit_id=item.unit_id, source=item.source, applied=item.applied)
            for item in report.readiness
        ],
        supply=[
            schemas.SupplyChangeView(unit_id=item.unit_id, consumed=item.consumed, remaining=item.remaining)
            for item in report.supply
        ],
        morale=[
            schemas.MoraleCheckView(
                unit_id=item.unit_id,
                passed=item.passed,
                status_before=item.status_before.value,
                status_after=item.status_after.value,
                roll=item.roll.die if item.roll else None,
                total=item.roll.total if item.roll else None,
                reroll=item.reroll.die if item.reroll else None,
                isolated=item.isolated,
            )
            for item in report.morale
        ],
        assaults=[
            schemas.AssaultView(
                attacker_id=item.attacker_id,
                defender_id=item.defender_id,
                outcome=item.outcome,
                retreat_to=item.retreat_to.to_key() if item.retreat_to else None,
            )
            for item in report.assaults
        ],
    )


def _skill_view(unit_id: str, result: SkillCheckResult) -> schemas.SkillCheckView:
    return schemas.SkillCheckView(
        unit_id=unit_id,
        natural=result.natural,
        bonus=result.bonus,
        total=result.total,
        rating=result.rating.value,
        zero_supply=result.zero_supply,
    )


def opposed_view(attacker_id: str, defender_id: str, result: OpposedCheckResult) -> schemas.OpposedCheckResponse:
    return schemas.OpposedCheckResponse(
        attacker=_skill_view(attacker_id, result.attacker),
        defender=_skill_view(defender_id, result.defender),
        winner=result.winner,
        is_critical=result.is_critical,
        difference=result.difference,
    )

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from mercs_sim.domain.combat_models import DamageApplication, HitRecord, PendingDamage
from mercs_sim.domain.types import Unit
from mercs_sim.rules.ruleset import CombatConfig, Ruleset

if TYPE_CHECKING:
    from mercs_sim.sim.session import CombatSession

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _default_combat() -> CombatConfig:
    return Ruleset.default().combat


def readiness_loss_for_hit(unit: Unit, damage: int, config: CombatConfig | None = None) -> int:
    """Heavy hits (over a quarter of max strength) cost 2 readiness, others 1."""
    config = config or _default_combat()
    if damage > unit.strength.max * config.heavy_hit_fraction:
        return config.heavy_hit_readiness_loss
    return config.hit_readiness_loss


def _unchanged(unit: Unit) -> DamageApplication:
    return DamageApplication(
        new_strength=unit.strength.value,
        new_readiness=unit.readiness.value,
        readiness_lost=0,
        destroyed=unit.destroyed,
        routed=unit.routed,
    )


def apply_damage(unit: Unit, damage: int, config: CombatConfig | None = None) -> DamageApplication:
    if not unit.in_play or damage <= 0:
        return _unchanged(unit)

    readiness_lost = readiness_loss_for_hit(unit, damage, config)
    strength_lost = -unit.strength.adjust(-damage)
    unit.readiness.adjust(-readiness_lost)

    application = DamageApplication(
        new_strength=unit.strength.value,
        new_readiness=unit.readiness.value,
        readiness_lost=readiness_lost,
        destroyed=unit.destroyed,
        routed=unit.routed,
        strength_lost=strength_lost,
    )
    logger.debug("%s takes %d damage -> %s", unit.id, damage, application)
    return application


def queue_damage(
    session: "CombatSession",
    unit_id: str,
    amount: int,
    readiness_loss: int,
    source: str,
    weapon: str,
) -> PendingDamage | None:
    unit = session.unit(unit_id)
    if not unit.in_play:
        logger.warning("Ignoring damage queued against %s; unit is out of play", unit_id)
        return None
    state = session.state_for(unit_id)
    if state.pending_damage is None:
        state.pending_damage = PendingDamage()
    state.pending_damage.add(
        HitRecord(source=source, weapon=weapon, damage=max(0, amount), readiness_loss=max(0, readiness_loss))
    )
    return state.pending_damage


def apply_pending_damage(unit: Unit, pending: PendingDamage) -> DamageApplication:
    if not unit.in_play or pending.empty:
        return _unchanged(unit)

    strength_lost = -unit.strength.adjust(-max(0, pending.strength))
    unit.readiness.adjust(-max(0, pending.readiness))
    return DamageApplication(
        new_strength=unit.strength.value,
        new_readiness=unit.readiness.value,
        readiness_lost=max(0, pending.readiness),
        destroyed=unit.destroyed,
        routed=unit.routed,
        strength_lost=strength_lost,
    )

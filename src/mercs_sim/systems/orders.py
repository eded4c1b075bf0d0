"""Order eligibility, order assignment, assault declaration and weapon targeting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mercs_sim.domain.types import Unit
from mercs_sim.rules.ruleset import OrderDef, Ruleset

if TYPE_CHECKING:
    from mercs_sim.sim.session import CombatSession

logger = logging.getLogger(__name__)


def available_orders(unit: Unit, rules: Ruleset) -> list[OrderDef]:
    if not unit.in_play:
        return []
    if unit.wavering:
        allowed = rules.morale.wavering_orders
        return [order for key, order in rules.orders.items() if key in allowed]
    orders: list[OrderDef] = []
    for order in rules.orders.values():
        if order.required_trait is not None and not unit.has_trait(order.required_trait):
            continue
        orders.append(order)
    return orders


def assign_order(session: "CombatSession", unit_id: str, order_key: str) -> OrderDef:
    unit = session.unit(unit_id)
    if session.phase != "orders":
        raise ValueError("Orders can only be assigned during the orders phase.")
    state = session.state_for(unit_id)
    if state.order_assigned:
        raise ValueError(f"{unit.name} already has orders this round.")
    order = session.rules.order(order_key)
    if order is None:
        raise ValueError(f"Unknown order: {order_key}")
    if order not in available_orders(unit, session.rules):
        raise ValueError(f"{unit.name} cannot take the {order.name} order.")

    unit.current_order = order.key
    state.order_assigned = True
    session.log.add("order", f"{unit.name} ordered to {order.name}", unit_id=unit.id, order=order.key)
    return order


def _check_enemy_target(unit: Unit, target: Unit) -> None:
    if target.team == unit.team:
        raise ValueError(f"{target.name} is a friendly unit.")
    if not target.in_play:
        raise ValueError(f"{target.name} is no longer a valid target.")


def declare_assault(session: "CombatSession", unit_id: str, target_id: str) -> None:
    unit = session.unit(unit_id)
    target = session.unit(target_id)
    if session.phase not in ("orders", "tactical"):
        raise ValueError(f"Assaults cannot be declared during the {session.phase} phase.")
    if not unit.in_play:
        raise ValueError(f"{unit.name} is out of action.")
    if unit.current_order != session.rules.morale.assault_order:
        raise ValueError(f"{unit.name} is not under the assault order.")
    _check_enemy_target(unit, target)

    session.state_for(unit_id).assault_target = target.id
    for weapon in unit.weapons:
        weapon.target_id = target.id
    session.log.add("assault", f"{unit.name} declares an assault on {target.name}", unit_id=unit.id, target_id=target.id)


def assign_target(session: "CombatSession", unit_id: str, weapon_id: str, target_id: str) -> None:
    """Assign (or clear, with an empty target id) a weapon's planned target."""
    unit = session.unit(unit_id)
    weapon = unit.weapon(weapon_id)
    if session.phase == "consolidation":
        raise ValueError("Targets cannot be assigned during the consolidation phase.")
    if not unit.in_play:
        raise ValueError(f"{unit.name} is out of action.")
    if not target_id:
        weapon.target_id = ""
        return
    target = session.unit(target_id)
    _check_enemy_target(unit, target)
    weapon.target_id = target.id
    logger.debug("%s/%s targets %s", unit.id, weapon.id, target.id)

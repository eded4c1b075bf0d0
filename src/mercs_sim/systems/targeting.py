"""Fire legality: the caller-side pre-check before an attack is resolved."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mercs_sim.domain.types import Unit, Weapon

if TYPE_CHECKING:
    from mercs_sim.sim.session import CombatSession, Permission


def effective_range(session: "CombatSession", attacker: Unit, weapon: Weapon) -> int:
    bonus = 0
    if attacker.position is not None:
        terrain = session.board.terrain_at(attacker.position)
        if terrain is not None and terrain.elevation_bonus:
            bonus = 1
    return weapon.range + bonus


def check_fire_legality(
    session: "CombatSession", attacker: Unit, weapon: Weapon, target: Unit
) -> "Permission":
    """Checks run in a fixed order and the first failure wins."""
    from mercs_sim.sim.session import Permission

    permission = session.can_attack(attacker)
    if not permission.allowed:
        return permission
    if not target.in_play:
        return Permission(False, f"{target.name} is no longer a valid target.")
    if target.team == attacker.team:
        return Permission(False, f"{target.name} is a friendly unit.")
    if attacker.supply.current <= 0:
        return Permission(False, f"{attacker.name} has no supply left.")

    if attacker.position is None or target.position is None:
        # Off-board units are left to the host's own geometry.
        return Permission(True)

    distance = session.board.get_hex_distance(attacker.position, target.position)
    max_range = effective_range(session, attacker, weapon)
    if distance > max_range:
        return Permission(False, f"{target.name} is out of range ({distance} > {max_range}).")

    if not weapon.indirect:
        terrain = session.board.terrain_at(attacker.position)
        if terrain is not None and terrain.max_fire_range is not None and distance > terrain.max_fire_range:
            return Permission(
                False,
                f"{terrain.name} limits direct fire to {terrain.max_fire_range} hexes.",
            )
        if not session.board.has_line_of_sight(attacker.position, target.position):
            return Permission(False, f"No line of sight to {target.name}.")

    return Permission(True)

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mercs_sim.domain.hexgrid import HexCoord
from mercs_sim.domain.types import TraitId

if TYPE_CHECKING:
    from mercs_sim.sim.session import CombatSession


@dataclass(frozen=True)
class MoveRecord:
    unit_id: str
    origin: HexCoord
    destination: HexCoord
    cost: float
    movement_used: float


def move_unit(session: "CombatSession", unit_id: str, destination: HexCoord) -> MoveRecord:
    """Move along the straight hex line, paying each entered hex's terrain cost."""
    unit = session.unit(unit_id)
    permission = session.can_move(unit)
    if not permission.allowed:
        raise ValueError(permission.reason or "Movement not allowed")
    if unit.position is None:
        raise ValueError(f"{unit.name} is not on the board.")
    if destination == unit.position:
        raise ValueError(f"{unit.name} is already at {destination.to_key()}.")
    if not session.board.contains(destination):
        raise ValueError(f"{destination.to_key()} is off the board.")
    if session.occupied(destination, exclude=unit.id):
        raise ValueError(f"{destination.to_key()} is occupied.")

    path = unit.position.line_to(destination)[1:]
    if unit.has_trait(TraitId.VEHICLE):
        for coord in path:
            terrain = session.board.terrain_at(coord)
            if terrain is not None and terrain.impassable_vehicle:
                raise ValueError(f"{terrain.name} at {coord.to_key()} is impassable to vehicles.")

    state = session.state_for(unit_id)
    cost = session.board.movement_cost(path)
    if state.movement_used + cost > unit.speed:
        raise ValueError(
            f"{unit.name} needs {cost:g} movement but has {unit.speed - state.movement_used:g} left."
        )

    origin = unit.position
    unit.position = destination
    state.movement_used += cost
    state.move_destination = destination
    session.log.add(
        "move",
        f"{unit.name} moves {origin.to_key()} -> {destination.to_key()} ({cost:g} MP)",
        unit_id=unit.id,
        destination=destination.to_key(),
    )
    return MoveRecord(
        unit_id=unit.id,
        origin=origin,
        destination=destination,
        cost=cost,
        movement_used=state.movement_used,
    )

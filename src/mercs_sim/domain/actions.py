"""Action definitions for reducer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, Union

from mercs_sim.domain.hexgrid import HexCoord


@dataclass(frozen=True)
class NextPhase:
    pass


@dataclass(frozen=True)
class PreviousPhase:
    pass


@dataclass(frozen=True)
class AssignOrder:
    unit_id: str
    order_key: str


@dataclass(frozen=True)
class AssignTarget:
    unit_id: str
    weapon_id: str
    target_id: str


@dataclass(frozen=True)
class DeclareAssault:
    unit_id: str
    target_id: str


@dataclass(frozen=True)
class FireWeapon:
    unit_id: str
    weapon_id: str


@dataclass(frozen=True)
class FireAllWeapons:
    unit_id: str


@dataclass(frozen=True)
class MoveUnit:
    unit_id: str
    destination: HexCoord


Action: TypeAlias = Union[
    NextPhase,
    PreviousPhase,
    AssignOrder,
    AssignTarget,
    DeclareAssault,
    FireWeapon,
    FireAllWeapons,
    MoveUnit,
]

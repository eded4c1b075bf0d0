"""Axial hex coordinates and the terrain board.

Coordinates are axial (q, r); the implicit third cube axis is s = -q - r.
Distance is the cube-coordinate Manhattan distance halved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Protocol

if TYPE_CHECKING:
    from mercs_sim.rules.ruleset import TerrainDef


DEFAULT_TERRAIN = "plain"

_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)


@dataclass(frozen=True, order=True)
class HexCoord:
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def distance_to(self, other: "HexCoord") -> int:
        dq = self.q - other.q
        dr = self.r - other.r
        return (abs(dq) + abs(dr) + abs(dq + dr)) // 2

    def neighbors(self) -> list["HexCoord"]:
        return [HexCoord(self.q + dq, self.r + dr) for dq, dr in _DIRECTIONS]

    def line_to(self, other: "HexCoord") -> list["HexCoord"]:
        """Hexes on the straight line from self to other, both ends included."""
        steps = self.distance_to(other)
        if steps == 0:
            return [self]
        # Nudge off exact edges so rounding is stable.
        aq, ar = self.q + 1e-6, self.r + 1e-6
        bq, br = other.q + 1e-6, other.r + 1e-6
        line: list[HexCoord] = []
        for i in range(steps + 1):
            t = i / steps
            line.append(_cube_round(aq + (bq - aq) * t, ar + (br - ar) * t))
        return line

    def to_key(self) -> str:
        return f"{self.q},{self.r}"

    @classmethod
    def parse(cls, value: object) -> "HexCoord":
        if isinstance(value, HexCoord):
            return value
        if isinstance(value, str):
            parts = value.split(",")
            if len(parts) == 2:
                return cls(int(parts[0]), int(parts[1]))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(int(value[0]), int(value[1]))
        if isinstance(value, dict) and "q" in value and "r" in value:
            return cls(int(value["q"]), int(value["r"]))
        raise ValueError(f"Invalid hex coordinate: {value!r}")


def _cube_round(fq: float, fr: float) -> HexCoord:
    fs = -fq - fr
    q, r, s = round(fq), round(fr), round(fs)
    dq, dr, ds = abs(q - fq), abs(r - fr), abs(s - fs)
    if dq > dr and dq > ds:
        q = -r - s
    elif dr > ds:
        r = -q - s
    return HexCoord(int(q), int(r))


class GridGeometry(Protocol):
    """Grid queries the combat core needs from its host."""

    def get_hex_distance(self, a: HexCoord, b: HexCoord) -> int: ...

    def has_line_of_sight(self, a: HexCoord, b: HexCoord) -> bool: ...


@dataclass()
class HexBoard:
    terrain_rules: dict[str, "TerrainDef"]
    terrain: dict[HexCoord, str] = field(default_factory=dict)
    bounded: bool = False

    def terrain_at(self, coord: HexCoord) -> "TerrainDef | None":
        key = self.terrain.get(coord, DEFAULT_TERRAIN)
        return self.terrain_rules.get(key)

    def contains(self, coord: HexCoord) -> bool:
        if not self.bounded:
            return True
        return coord in self.terrain

    def get_hex_distance(self, a: HexCoord, b: HexCoord) -> int:
        return a.distance_to(b)

    def has_line_of_sight(self, a: HexCoord, b: HexCoord) -> bool:
        # Only hexes strictly between the endpoints can block.
        for coord in a.line_to(b)[1:-1]:
            terrain = self.terrain_at(coord)
            if terrain is not None and terrain.blocks_los:
                return False
        return True

    def movement_cost(self, path: Iterable[HexCoord]) -> float:
        total = 0.0
        for coord in path:
            terrain = self.terrain_at(coord)
            total += terrain.movement_cost if terrain is not None else 1.0
        return total

    def adjacent(self, coord: HexCoord) -> list[HexCoord]:
        return [n for n in coord.neighbors() if self.contains(n)]

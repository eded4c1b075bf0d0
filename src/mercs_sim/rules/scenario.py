from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from mercs_sim.domain.hexgrid import DEFAULT_TERRAIN, HexBoard, HexCoord
from mercs_sim.domain.types import (
    AttackType,
    Pool,
    Rating,
    SupplyState,
    Trait,
    TraitId,
    Unit,
    Weapon,
)
from mercs_sim.rules.ruleset import Ruleset
from mercs_sim.sim.session import CombatSession

DEFAULT_SCENARIO = Path(__file__).resolve().parents[1] / "data" / "scenarios" / "default.json"

_TRAIT_PATTERN = re.compile(r"^\s*([A-Za-z_ -]+?)\s*(?:\[\s*(\d+)\s*\])?\s*$")


class ScenarioError(ValueError):
    pass


def load_session(path: Path, rules: Ruleset | None = None, seed: int | None = None) -> CombatSession:
    data = _load_json(path)
    return build_session(data, rules or Ruleset.default(), seed=seed)


def build_session(data: object, rules: Ruleset, *, seed: int | None = None) -> CombatSession:
    if not isinstance(data, dict):
        raise ScenarioError("Scenario root must be an object")
    base_seed = seed if seed is not None else data.get("seed", 0)
    if not isinstance(base_seed, int):
        raise ScenarioError("seed must be an integer")

    board = parse_board(data.get("board"), rules)
    units_raw = _require_list(data, "units")
    units: dict[str, Unit] = {}
    positions: dict[HexCoord, str] = {}
    for item in units_raw:
        unit = parse_unit(item, rules)
        if unit.id in units:
            raise ScenarioError(f"Duplicate unit id: {unit.id}")
        if unit.position is not None:
            if not board.contains(unit.position):
                raise ScenarioError(f"Unit {unit.id} is placed off the board at {unit.position.to_key()}")
            if unit.position in positions:
                raise ScenarioError(
                    f"Units {positions[unit.position]} and {unit.id} share hex {unit.position.to_key()}"
                )
            positions[unit.position] = unit.id
        units[unit.id] = unit

    return CombatSession(units=units, board=board, rules=rules, rng_seed=base_seed)


def parse_board(data: object, rules: Ruleset) -> HexBoard:
    if data is None:
        return HexBoard(terrain_rules=rules.terrain)
    if not isinstance(data, dict):
        raise ScenarioError("board must be an object")

    default_terrain = str(data.get("default_terrain", DEFAULT_TERRAIN))
    _check_terrain(default_terrain, rules)
    terrain: dict[HexCoord, str] = {}

    radius = data.get("radius")
    if radius is not None:
        if not isinstance(radius, int) or radius < 0:
            raise ScenarioError("board.radius must be a non-negative integer")
        origin = HexCoord(0, 0)
        for q in range(-radius, radius + 1):
            for r in range(-radius, radius + 1):
                coord = HexCoord(q, r)
                if origin.distance_to(coord) <= radius:
                    terrain[coord] = default_terrain

    overlay = data.get("terrain", {})
    if not isinstance(overlay, dict):
        raise ScenarioError("board.terrain must be an object of 'q,r' -> terrain id")
    for key, terrain_id in overlay.items():
        coord = _parse_coord(key, "board.terrain")
        _check_terrain(str(terrain_id), rules)
        terrain[coord] = str(terrain_id)

    bounded = bool(data.get("bounded", radius is not None))
    return HexBoard(terrain_rules=rules.terrain, terrain=terrain, bounded=bounded)


def parse_unit(data: object, rules: Ruleset) -> Unit:
    if not isinstance(data, dict):
        raise ScenarioError("unit entries must be objects")
    unit_id = data.get("id")
    if not isinstance(unit_id, str) or not unit_id:
        raise ScenarioError("unit.id must be a non-empty string")

    try:
        rating = Rating(str(data.get("rating", Rating.GREEN.value)).lower())
    except ValueError as exc:
        raise ScenarioError(f"{unit_id}: unknown rating {data.get('rating')!r}") from exc

    strength = _parse_pool(data.get("strength", 10), f"{unit_id}.strength")
    readiness_max = rules.rating(rating).readiness_pool
    readiness_raw = data.get("readiness")
    readiness_value = readiness_max
    if isinstance(readiness_raw, dict):
        readiness_value = int(readiness_raw.get("value", readiness_max))
    elif isinstance(readiness_raw, int):
        readiness_value = readiness_raw
    elif readiness_raw is not None:
        raise ScenarioError(f"{unit_id}.readiness must be an integer or object")
    readiness = Pool(value=readiness_value, max=readiness_max)

    supply_raw = data.get("supply", {})
    if not isinstance(supply_raw, dict):
        raise ScenarioError(f"{unit_id}.supply must be an object")
    capacity = int(supply_raw.get("capacity", 10))
    supply = SupplyState(
        current=int(supply_raw.get("current", capacity)),
        capacity=capacity,
        usage=int(supply_raw.get("usage", 1)),
    )

    order = str(data.get("order", ""))
    if order and rules.order(order) is None:
        raise ScenarioError(f"{unit_id}: unknown order {order!r}")

    position = None
    if data.get("position") is not None:
        position = _parse_coord(data["position"], f"{unit_id}.position")

    unit = Unit(
        id=unit_id,
        name=str(data.get("name", unit_id)),
        team=str(data.get("team", "a")),
        rating=rating,
        strength=strength,
        readiness=readiness,
        supply=supply,
        speed=int(data.get("speed", 4)),
        sensors=int(data.get("sensors", 2)),
        signature=int(data.get("signature", 2)),
        ewar=int(data.get("ewar", 0)),
        comms=int(data.get("comms", 3)),
        current_order=order,
        traits=[parse_trait(item, unit_id) for item in _as_list(data.get("traits", []), f"{unit_id}.traits")],
        weapons=[parse_weapon(item, unit_id) for item in _as_list(data.get("weapons", []), f"{unit_id}.weapons")],
        position=position,
    )
    unit.clamp()
    return unit


def parse_trait(data: object, unit_id: str = "") -> Trait:
    """Accepts "Armored[2]" style strings or {"id", "value", "active"} objects."""
    active = True
    if isinstance(data, str):
        match = _TRAIT_PATTERN.match(data)
        if not match:
            raise ScenarioError(f"{unit_id}: malformed trait {data!r}")
        name, value = match.group(1), int(match.group(2) or 0)
    elif isinstance(data, dict):
        name = str(data.get("id", ""))
        value = int(data.get("value", 0))
        active = bool(data.get("active", True))
    else:
        raise ScenarioError(f"{unit_id}: trait must be a string or object")
    try:
        trait_id = TraitId.parse(name)
    except ValueError as exc:
        raise ScenarioError(f"{unit_id}: {exc}") from exc
    return Trait(id=trait_id, value=max(0, value), active=active)


def parse_weapon(data: object, unit_id: str = "") -> Weapon:
    if not isinstance(data, dict):
        raise ScenarioError(f"{unit_id}: weapon entries must be objects")
    weapon_id = data.get("id")
    if not isinstance(weapon_id, str) or not weapon_id:
        raise ScenarioError(f"{unit_id}: weapon.id must be a non-empty string")
    try:
        attack_type = AttackType.parse(str(data.get("attack_type", "soft")))
    except ValueError as exc:
        raise ScenarioError(f"{unit_id}/{weapon_id}: unknown attack type {data.get('attack_type')!r}") from exc
    return Weapon(
        id=weapon_id,
        name=str(data.get("name", weapon_id)),
        attack_type=attack_type,
        damage=max(0, int(data.get("damage", 1))),
        range=max(0, int(data.get("range", 1))),
        indirect=bool(data.get("indirect", False)),
        area=bool(data.get("area", False)),
        accurate=max(0, int(data.get("accurate", 0))),
        inaccurate=max(0, int(data.get("inaccurate", 0))),
        target_id=str(data.get("target_id", "")),
    )


def _parse_pool(value: object, key: str) -> Pool:
    if isinstance(value, int):
        return Pool(value=value, max=value)
    if isinstance(value, dict) and isinstance(value.get("max"), int):
        return Pool(value=int(value.get("value", value["max"])), max=value["max"])
    raise ScenarioError(f"{key} must be an integer or an object with 'max'")


def _parse_coord(value: object, key: str) -> HexCoord:
    try:
        return HexCoord.parse(value)
    except (TypeError, ValueError) as exc:
        raise ScenarioError(f"{key}: invalid hex coordinate {value!r}") from exc


def _check_terrain(terrain_id: str, rules: Ruleset) -> None:
    if terrain_id not in rules.terrain:
        raise ScenarioError(f"Unknown terrain: {terrain_id}")


def _as_list(value: object, key: str) -> list[Any]:
    if not isinstance(value, list):
        raise ScenarioError(f"{key} must be an array")
    return value


def _require_list(data: dict, key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise ScenarioError(f"{key} must be an array")
    return value


def _load_json(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise ScenarioError(f"Scenario not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ScenarioError(f"Invalid JSON in scenario: {exc}") from exc

"""Data-driven rules engine."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mercs_sim.domain.types import Rating, TraitId

DEFAULT_RULES_DIR = Path(__file__).resolve().parents[1] / "data" / "rules"

_SUPPLY_MODIFIER = re.compile(r"^(\d+)x$", re.IGNORECASE)


class RulesError(ValueError):
    """Error loading or validating rules."""


@dataclass(frozen=True)
class RatingDef:
    """Skill tier: base hit threshold, readiness pool and skill bonus."""

    id: Rating
    name: str
    accuracy: int
    readiness_pool: int
    bonus: int


@dataclass(frozen=True)
class OrderDef:
    """A behaviour template a unit may adopt for one round."""

    key: str
    name: str
    category: str
    allows_movement: bool
    allows_attack: bool
    readiness_cost: int
    supply_modifier: str
    required_trait: TraitId | None = None
    description: str = ""

    @property
    def supply_multiplier(self) -> int:
        return parse_supply_multiplier(self.supply_modifier)


@dataclass(frozen=True)
class TerrainDef:
    id: str
    name: str
    movement_cost: float
    signature_mod: int
    infantry_cover: bool
    infantry_heavy_cover: bool
    max_fire_range: int | None
    damage_to_non_flying: int
    impassable_vehicle: bool
    no_fortification: bool
    has_road: bool
    elevation_bonus: bool
    blocks_los: bool


@dataclass(frozen=True)
class CombatConfig:
    accuracy_floor: int
    accuracy_ceiling: int
    default_accuracy: int
    readiness_accuracy_ratio: float
    readiness_damage_ratio: float
    casualty_steps: int
    heavy_hit_fraction: float
    heavy_hit_readiness_loss: int
    hit_readiness_loss: int
    critical_margin: int


@dataclass(frozen=True)
class MoraleConfig:
    check_below_readiness: int
    isolation_penalty: int
    assault_readiness_loss: int
    disordered_readiness_loss: int
    wavering_orders: tuple[str, ...]
    assault_order: str
    withdraw_order: str


@dataclass(frozen=True)
class Ruleset:
    """Loaded and validated ruleset."""

    ratings: dict[Rating, RatingDef]
    orders: dict[str, OrderDef]
    terrain: dict[str, TerrainDef]
    combat: CombatConfig
    morale: MoraleConfig

    @staticmethod
    def load(data_dir: Path) -> "Ruleset":
        """Load ruleset from JSON files in data directory."""
        ratings = _load_ratings(data_dir / "ratings.json")
        orders = _load_orders(data_dir / "orders.json")
        terrain = _load_terrain(data_dir / "terrain.json")
        combat, morale = _load_combat(data_dir / "combat.json")

        missing = [key for key in (morale.assault_order, morale.withdraw_order) if key not in orders]
        missing += [key for key in morale.wavering_orders if key not in orders]
        if missing:
            raise RulesError(f"{data_dir}: morale config references unknown orders {sorted(set(missing))}")

        return Ruleset(
            ratings=ratings,
            orders=orders,
            terrain=terrain,
            combat=combat,
            morale=morale,
        )

    @staticmethod
    def default() -> "Ruleset":
        return Ruleset.load(DEFAULT_RULES_DIR)

    def rating(self, rating: Rating) -> RatingDef:
        return self.ratings[rating]

    def order(self, key: str) -> OrderDef | None:
        if not key:
            return None
        return self.orders.get(key)


def parse_supply_multiplier(modifier: str | None) -> int:
    """'2x' -> 2; anything unparseable counts as 1x."""
    if not modifier:
        return 1
    match = _SUPPLY_MODIFIER.match(modifier.strip())
    return int(match.group(1)) if match else 1


def _load_json(path: Path) -> dict[str, Any]:
    """Load JSON file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise RulesError(f"Rules file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise RulesError(f"Invalid JSON in {path}: {exc}") from exc


def _load_ratings(path: Path) -> dict[Rating, RatingDef]:
    data = _load_json(path)
    if "ratings" not in data:
        raise RulesError(f"{path}: missing 'ratings' key")
    ratings: dict[Rating, RatingDef] = {}
    for item in data["ratings"]:
        if not isinstance(item, dict):
            raise RulesError(f"{path}: rating entry must be object")
        try:
            rating_id = Rating(str(item.get("id")))
        except ValueError as exc:
            raise RulesError(f"{path}: unknown rating {item.get('id')!r}") from exc
        ratings[rating_id] = RatingDef(
            id=rating_id,
            name=str(item.get("name", rating_id.value.title())),
            accuracy=int(item.get("accuracy", 7)),
            readiness_pool=int(item.get("readiness_pool", 5)),
            bonus=int(item.get("bonus", 0)),
        )
    absent = [rating.value for rating in Rating if rating not in ratings]
    if absent:
        raise RulesError(f"{path}: missing ratings {absent}")
    return ratings


def _load_orders(path: Path) -> dict[str, OrderDef]:
    data = _load_json(path)
    if "orders" not in data:
        raise RulesError(f"{path}: missing 'orders' key")
    orders: dict[str, OrderDef] = {}
    for item in data["orders"]:
        if not isinstance(item, dict):
            raise RulesError(f"{path}: order entry must be object")
        key = item.get("key")
        if not isinstance(key, str) or not key:
            raise RulesError(f"{path}: order.key must be string")
        category = str(item.get("category", "standard"))
        if category not in ("standard", "special"):
            raise RulesError(f"{path}: order {key} has unknown category {category!r}")
        required_raw = item.get("required_trait") or ""
        try:
            required_trait = TraitId.parse(required_raw) if required_raw else None
        except ValueError as exc:
            raise RulesError(f"{path}: order {key}: {exc}") from exc
        if category == "special" and required_trait is None:
            raise RulesError(f"{path}: special order {key} needs required_trait")
        orders[key] = OrderDef(
            key=key,
            name=str(item.get("name", key.title())),
            category=category,
            allows_movement=bool(item.get("allows_movement", True)),
            allows_attack=bool(item.get("allows_attack", False)),
            readiness_cost=int(item.get("readiness_cost", 0)),
            supply_modifier=str(item.get("supply_modifier", "1x")),
            required_trait=required_trait,
            description=str(item.get("description", "")),
        )
    return orders


def _load_terrain(path: Path) -> dict[str, TerrainDef]:
    data = _load_json(path)
    if "terrain" not in data:
        raise RulesError(f"{path}: missing 'terrain' key")
    terrain: dict[str, TerrainDef] = {}
    for item in data["terrain"]:
        if not isinstance(item, dict):
            raise RulesError(f"{path}: terrain entry must be object")
        terrain_id = item.get("id")
        if not isinstance(terrain_id, str):
            raise RulesError(f"{path}: terrain.id must be string")
        max_fire_range = item.get("max_fire_range")
        terrain[terrain_id] = TerrainDef(
            id=terrain_id,
            name=str(item.get("name", terrain_id)),
            movement_cost=float(item.get("movement_cost", 1)),
            signature_mod=int(item.get("signature_mod", 0)),
            infantry_cover=bool(item.get("infantry_cover", False)),
            infantry_heavy_cover=bool(item.get("infantry_heavy_cover", False)),
            max_fire_range=int(max_fire_range) if max_fire_range is not None else None,
            damage_to_non_flying=int(item.get("damage_to_non_flying", 0)),
            impassable_vehicle=bool(item.get("impassable_vehicle", False)),
            no_fortification=bool(item.get("no_fortification", False)),
            has_road=bool(item.get("has_road", False)),
            elevation_bonus=bool(item.get("elevation_bonus", False)),
            blocks_los=bool(item.get("blocks_los", False)),
        )
    if "plain" not in terrain:
        raise RulesError(f"{path}: 'plain' terrain is required as the default")
    return terrain


def _load_combat(path: Path) -> tuple[CombatConfig, MoraleConfig]:
    data = _load_json(path)
    accuracy = data.get("accuracy", {})
    damage = data.get("damage", {})
    morale_data = data.get("morale", {})

    combat = CombatConfig(
        accuracy_floor=int(accuracy.get("floor", 2)),
        accuracy_ceiling=int(accuracy.get("ceiling", 10)),
        default_accuracy=int(accuracy.get("default", 7)),
        readiness_accuracy_ratio=float(accuracy.get("readiness_penalty_ratio", 0.7)),
        readiness_damage_ratio=float(damage.get("readiness_penalty_ratio", 0.4)),
        casualty_steps=int(damage.get("casualty_steps", 5)),
        heavy_hit_fraction=float(damage.get("heavy_hit_fraction", 0.25)),
        heavy_hit_readiness_loss=int(damage.get("heavy_hit_readiness_loss", 2)),
        hit_readiness_loss=int(damage.get("hit_readiness_loss", 1)),
        critical_margin=int(data.get("critical_margin", 10)),
    )
    if combat.accuracy_floor > combat.accuracy_ceiling:
        raise RulesError(f"{path}: accuracy floor exceeds ceiling")

    wavering = morale_data.get("wavering_orders", ["hold", "withdraw"])
    if not isinstance(wavering, list):
        raise RulesError(f"{path}: morale.wavering_orders must be array")
    morale = MoraleConfig(
        check_below_readiness=int(morale_data.get("check_below_readiness", 10)),
        isolation_penalty=int(morale_data.get("isolation_penalty", 2)),
        assault_readiness_loss=int(morale_data.get("assault_readiness_loss", 2)),
        disordered_readiness_loss=int(morale_data.get("disordered_readiness_loss", 1)),
        wavering_orders=tuple(str(key) for key in wavering),
        assault_order=str(morale_data.get("assault_order", "assault")),
        withdraw_order=str(morale_data.get("withdraw_order", "withdraw")),
    )
    return combat, morale

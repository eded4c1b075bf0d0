from __future__ import annotations

from mercs_sim.domain.types import TraitId
from mercs_sim.rules.ruleset import Ruleset
from mercs_sim.sim.session import PHASE_RULES, PHASES


def build_catalog(rules: Ruleset) -> dict:
    def labelize(value: str) -> str:
        return value.replace("_", " ").title()

    def describe_order(order) -> str:
        parts = []
        parts.append("move" if order.allows_movement else "no move")
        parts.append("attack" if order.allows_attack else "no attack")
        if order.readiness_cost:
            parts.append(f"{order.readiness_cost:+d} readiness")
        parts.append(f"supply {order.supply_modifier}")
        return ", ".join(parts)

    return {
        "phases": [
            {
                "id": phase,
                "label": labelize(phase),
                "allowsMovement": PHASE_RULES[phase].allows_movement,
                "allowsAttack": PHASE_RULES[phase].allows_attack,
            }
            for phase in PHASES
        ],
        "ratings": [
            {
                "id": rating.id.value,
                "label": rating.name,
                "accuracy": rating.accuracy,
                "readinessPool": rating.readiness_pool,
                "bonus": rating.bonus,
            }
            for rating in rules.ratings.values()
        ],
        "orders": [
            {
                "id": order.key,
                "label": order.name,
                "category": order.category,
                "requiredTrait": order.required_trait.value if order.required_trait else None,
                "summary": describe_order(order),
                "description": order.description,
            }
            for order in rules.orders.values()
        ],
        "terrain": [
            {
                "id": terrain.id,
                "label": terrain.name,
                "movementCost": terrain.movement_cost,
                "maxFireRange": terrain.max_fire_range,
                "blocksLos": terrain.blocks_los,
                "elevationBonus": terrain.elevation_bonus,
            }
            for terrain in rules.terrain.values()
        ],
        "traits": [{"id": trait.value, "label": labelize(trait.value)} for trait in TraitId],
    }

from __future__ import annotations

from mercs_sim.domain.reports import SupplyConsumptionRecord
from mercs_sim.domain.types import Unit
from mercs_sim.rules.ruleset import OrderDef


def consume_supply(unit: Unit, order: OrderDef | None, weapons_fired: int) -> SupplyConsumptionRecord | None:
    """Consume ``usage x order multiplier + weapons fired``; nothing once supply is empty."""
    supply = unit.supply
    if supply.current <= 0:
        return None
    multiplier = order.supply_multiplier if order is not None else 1
    base = max(0, supply.usage) * multiplier
    fired = max(0, weapons_fired)
    total = base + fired
    if total <= 0:
        return None
    before = supply.current
    supply.current = max(0, supply.current - total)
    return SupplyConsumptionRecord(
        unit_id=unit.id,
        base=base,
        multiplier=multiplier,
        weapons_fired=fired,
        consumed=before - supply.current,
        remaining=supply.current,
    )

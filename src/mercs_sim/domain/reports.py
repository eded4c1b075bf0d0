"""Consolidation and morale reports."""

from __future__ import annotations

from dataclasses import dataclass, field

from mercs_sim.domain.combat_models import DamageApplication, HitRecord
from mercs_sim.domain.hexgrid import HexCoord
from mercs_sim.domain.types import MoraleStatus


@dataclass(frozen=True)
class MoraleRoll:
    die: int
    total: int
    passed: bool
    auto_fail: bool = False


@dataclass(frozen=True)
class MoraleCheckRecord:
    unit_id: str
    readiness: int
    status_before: MoraleStatus
    status_after: MoraleStatus
    passed: bool
    roll: MoraleRoll | None = None  # None when status recovered without a roll
    reroll: MoraleRoll | None = None
    isolated: bool = False
    damage_taken: int = 0


@dataclass(frozen=True)
class AssaultRecord:
    attacker_id: str
    defender_id: str
    attacker_roll: MoraleRoll
    defender_roll: MoraleRoll
    outcome: str  # "stalemate" | "repelled" | "defender_broken" | "defender_surrendered" | "both_falter"
    attacker_status: MoraleStatus
    defender_status: MoraleStatus
    retreat_to: HexCoord | None = None


@dataclass(frozen=True)
class WithdrawTestRecord:
    unit_id: str
    roll: MoraleRoll
    reroll: MoraleRoll | None
    passed: bool
    isolated: bool


@dataclass(frozen=True)
class UnitDamageSummary:
    unit_id: str
    strength_damage: int
    readiness_loss: int
    hits: list[HitRecord]
    application: DamageApplication


@dataclass(frozen=True)
class ReadinessCostRecord:
    unit_id: str
    order: str
    cost: int
    applied: int
    source: str = "order"  # "order" | "disordered"


@dataclass(frozen=True)
class SupplyConsumptionRecord:
    unit_id: str
    base: int
    multiplier: int
    weapons_fired: int
    consumed: int
    remaining: int


@dataclass()
class ConsolidationReport:
    round: int
    damage: list[UnitDamageSummary] = field(default_factory=list)
    readiness: list[ReadinessCostRecord] = field(default_factory=list)
    supply: list[SupplyConsumptionRecord] = field(default_factory=list)
    morale: list[MoraleCheckRecord] = field(default_factory=list)
    assaults: list[AssaultRecord] = field(default_factory=list)

"""Attack resolution result models."""

from __future__ import annotations

from dataclasses import dataclass, field

from mercs_sim.domain.types import HitType


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None
    soft_vs_heavy: bool = False


@dataclass(frozen=True)
class AccuracyResult:
    base: int
    effective: int
    readiness_mod: int = 0
    ewar_mod: int = 0
    accurate_mod: int = 0
    inaccurate_mod: int = 0
    disordered_mod: int = 0


@dataclass(frozen=True)
class HitResult:
    hit: bool
    type: HitType


@dataclass(frozen=True)
class DamageModifier:
    label: str
    value: int | None


@dataclass(frozen=True)
class DamageResult:
    final: int
    base: int
    modifiers: list[DamageModifier] = field(default_factory=list)


@dataclass(frozen=True)
class AttackOutcome:
    attacker_id: str
    target_id: str
    weapon_id: str
    valid: bool
    reason: str | None
    roll: int | None
    accuracy: AccuracyResult | None
    hit_result: HitResult | None
    damage: DamageResult | None
    soft_vs_heavy: bool = False

    @property
    def hit(self) -> bool:
        return self.hit_result is not None and self.hit_result.hit

    @property
    def final_damage(self) -> int:
        if not self.hit or self.damage is None:
            return 0
        return self.damage.final


@dataclass(frozen=True)
class DamageApplication:
    new_strength: int
    new_readiness: int
    readiness_lost: int
    destroyed: bool
    routed: bool
    strength_lost: int = 0


@dataclass(frozen=True)
class HitRecord:
    source: str
    weapon: str
    damage: int
    readiness_loss: int


@dataclass()
class PendingDamage:
    strength: int = 0
    readiness: int = 0
    hits: list[HitRecord] = field(default_factory=list)

    def add(self, record: HitRecord) -> None:
        self.strength += record.damage
        self.readiness += record.readiness_loss
        self.hits.append(record)

    @property
    def empty(self) -> bool:
        return self.strength <= 0 and self.readiness <= 0


@dataclass(frozen=True)
class TargetVolleySummary:
    target_id: str
    strength_damage: int
    readiness_loss: int
    hits: list[HitRecord]
    deferred: bool
    application: DamageApplication | None = None


@dataclass(frozen=True)
class VolleyResult:
    attacker_id: str
    outcomes: list[AttackOutcome]
    targets: list[TargetVolleySummary]
    weapons_fired: int

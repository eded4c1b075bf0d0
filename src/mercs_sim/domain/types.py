"""Common types and enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mercs_sim.domain.hexgrid import HexCoord


class Rating(str, Enum):
    GREEN = "green"
    TRAINED = "trained"
    EXPERIENCED = "experienced"
    VETERAN = "veteran"
    ELITE = "elite"


class AttackType(str, Enum):
    SOFT = "soft"
    HARD = "hard"
    ANTI_AIR = "anti_air"

    @classmethod
    def parse(cls, value: str) -> "AttackType":
        normalized = value.strip().lower().replace("-", "_")
        if normalized == "antiair":
            normalized = "anti_air"
        return cls(normalized)


class TraitId(str, Enum):
    FLYING = "flying"
    HOVER = "hover"
    HEAVY = "heavy"
    INFANTRY = "infantry"
    VEHICLE = "vehicle"
    ARMORED = "armored"
    ENTRENCHED = "entrenched"
    FORTIFIED = "fortified"
    COMMAND = "command"
    ASSAULT = "assault"
    RECON = "recon"
    STEALTH = "stealth"

    @classmethod
    def parse(cls, value: str) -> "TraitId":
        """Case-insensitive lookup; raises ValueError for unknown names."""
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown trait: {value}") from exc


class MoraleStatus(str, Enum):
    NORMAL = "normal"
    BREAKING = "breaking"
    BROKEN = "broken"
    SURRENDERED = "surrendered"


class HitType(str, Enum):
    CRITICAL_MISS = "critical_miss"
    MISS = "miss"
    PARTIAL = "partial"
    HIT = "hit"
    CRITICAL_HIT = "critical_hit"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass()
class Pool:
    value: int
    max: int

    @property
    def ratio(self) -> float:
        if self.max <= 0:
            return 0.0
        return self.value / self.max

    def clamp(self) -> None:
        self.max = max(0, self.max)
        self.value = min(self.max, max(0, self.value))

    def adjust(self, delta: int) -> int:
        """Shift the pool by delta, clamped to [0, max]. Returns the applied change."""
        before = self.value
        self.value = min(self.max, max(0, self.value + delta))
        return self.value - before


@dataclass()
class SupplyState:
    current: int
    capacity: int
    usage: int

    def clamp(self) -> None:
        self.capacity = max(0, self.capacity)
        self.usage = max(0, self.usage)
        self.current = min(self.capacity, max(0, self.current))


@dataclass(frozen=True)
class Trait:
    id: TraitId
    value: int = 0
    active: bool = True

    @property
    def display_name(self) -> str:
        name = self.id.value.title()
        if self.value > 0:
            return f"{name}[{self.value}]"
        return name


@dataclass()
class Weapon:
    id: str
    name: str
    attack_type: AttackType
    damage: int
    range: int
    indirect: bool = False
    area: bool = False
    accurate: int = 0
    inaccurate: int = 0
    target_id: str = ""


@dataclass()
class Unit:
    id: str
    name: str
    team: str
    rating: Rating
    strength: Pool
    readiness: Pool
    supply: SupplyState
    speed: int = 4
    sensors: int = 2
    signature: int = 2
    ewar: int = 0
    comms: int = 3
    current_order: str = ""
    traits: list[Trait] = field(default_factory=list)
    weapons: list[Weapon] = field(default_factory=list)
    position: HexCoord | None = None
    morale: MoraleStatus = MoraleStatus.NORMAL

    @property
    def destroyed(self) -> bool:
        return self.strength.value <= 0

    @property
    def surrendered(self) -> bool:
        return self.morale == MoraleStatus.SURRENDERED

    @property
    def in_play(self) -> bool:
        return not self.destroyed and not self.surrendered

    @property
    def routed(self) -> bool:
        # Readiness exhaustion; independent of the morale status flags.
        return not self.destroyed and self.readiness.value <= 0

    @property
    def wavering(self) -> bool:
        return self.morale in (MoraleStatus.BREAKING, MoraleStatus.BROKEN)

    def has_trait(self, trait_id: TraitId) -> bool:
        return any(trait.id == trait_id and trait.active for trait in self.traits)

    def trait_value(self, trait_id: TraitId) -> int:
        for trait in self.traits:
            if trait.id == trait_id and trait.active:
                return trait.value
        return 0

    def weapon(self, weapon_id: str) -> Weapon:
        for weapon in self.weapons:
            if weapon.id == weapon_id:
                return weapon
        raise UnknownEntityError(f"Unit {self.id} has no weapon {weapon_id}")

    def clamp(self) -> None:
        self.strength.clamp()
        self.readiness.clamp()
        self.supply.clamp()


class UnknownEntityError(KeyError):
    """Raised when a unit or weapon reference does not resolve."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown entity"

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_by_name=True)


class PoolView(CamelModel):
    value: int
    max: int


class SupplyView(CamelModel):
    current: int
    capacity: int
    usage: int


class TraitView(CamelModel):
    id: str
    label: str
    value: int
    active: bool


class WeaponView(CamelModel):
    id: str
    name: str
    attack_type: str = Field(..., alias="attackType")
    damage: int
    range: int
    indirect: bool
    area: bool
    accurate: int
    inaccurate: int
    target_id: str = Field("", alias="targetId")


class RoundStateView(CamelModel):
    movement_used: float = Field(..., alias="movementUsed")
    move_destination: Optional[str] = Field(None, alias="moveDestination")
    weapons_fired: int = Field(..., alias="weaponsFired")
    pending_strength: int = Field(0, alias="pendingStrength")
    pending_readiness: int = Field(0, alias="pendingReadiness")
    assault_target: Optional[str] = Field(None, alias="assaultTarget")
    disordered: bool
    damage_taken: int = Field(0, alias="damageTaken")


class UnitView(CamelModel):
    id: str
    name: str
    team: str
    rating: str
    strength: PoolView
    readiness: PoolView
    supply: SupplyView
    speed: int
    sensors: int
    signature: int
    ewar: int
    comms: int
    current_order: str = Field("", alias="currentOrder")
    morale: str
    destroyed: bool
    routed: bool
    in_play: bool = Field(..., alias="inPlay")
    position: Optional[str] = None
    traits: List[TraitView]
    weapons: List[WeaponView]
    available_orders: List[str] = Field(default_factory=list, alias="availableOrders")
    can_move: bool = Field(..., alias="canMove")
    can_attack: bool = Field(..., alias="canAttack")
    round_state: Optional[RoundStateView] = Field(None, alias="roundState")


class HexView(CamelModel):
    coord: str
    terrain: str


class BoardView(CamelModel):
    bounded: bool
    hexes: List[HexView]


class EventView(CamelModel):
    kind: str
    message: str
    round: Optional[int] = None
    phase: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class CombatStateResponse(CamelModel):
    round: int
    phase: str
    phase_index: int = Field(..., alias="phaseIndex")
    action_seq: int = Field(..., alias="actionSeq")
    units: List[UnitView]
    board: BoardView
    log: List[EventView]


class DamageModifierView(CamelModel):
    label: str
    value: Optional[int] = None


class AttackOutcomeView(CamelModel):
    weapon_id: str = Field(..., alias="weaponId")
    target_id: str = Field(..., alias="targetId")
    valid: bool
    reason: Optional[str] = None
    roll: Optional[int] = None
    effective_accuracy: Optional[int] = Field(None, alias="effectiveAccuracy")
    hit_type: Optional[str] = Field(None, alias="hitType")
    damage: int = 0
    modifiers: List[DamageModifierView] = Field(default_factory=list)
    soft_vs_heavy: bool = Field(False, alias="softVsHeavy")


class TargetSummaryView(CamelModel):
    target_id: str = Field(..., alias="targetId")
    strength_damage: int = Field(..., alias="strengthDamage")
    readiness_loss: int = Field(..., alias="readinessLoss")
    deferred: bool


class VolleyView(CamelModel):
    attacker_id: str = Field(..., alias="attackerId")
    weapons_fired: int = Field(..., alias="weaponsFired")
    outcomes: List[AttackOutcomeView]
    targets: List[TargetSummaryView]


class DamageSummaryView(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    strength_damage: int = Field(..., alias="strengthDamage")
    readiness_loss: int = Field(..., alias="readinessLoss")
    destroyed: bool
    routed: bool


class ReadinessChangeView(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    source: str
    applied: int


class SupplyChangeView(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    consumed: int
    remaining: int


class MoraleCheckView(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    passed: bool
    status_before: str = Field(..., alias="statusBefore")
    status_after: str = Field(..., alias="statusAfter")
    roll: Optional[int] = None
    total: Optional[int] = None
    reroll: Optional[int] = None
    isolated: bool = False


class AssaultView(CamelModel):
    attacker_id: str = Field(..., alias="attackerId")
    defender_id: str = Field(..., alias="defenderId")
    outcome: str
    retreat_to: Optional[str] = Field(None, alias="retreatTo")


class ConsolidationReportView(CamelModel):
    round: int
    damage: List[DamageSummaryView]
    readiness: List[ReadinessChangeView]
    supply: List[SupplyChangeView]
    morale: List[MoraleCheckView]
    assaults: List[AssaultView]


class ApiResponse(CamelModel):
    ok: bool
    message: Optional[str] = None
    message_kind: Optional[str] = Field(None, alias="messageKind")
    state: Optional[CombatStateResponse] = None
    events: List[EventView] = Field(default_factory=list)
    report: Optional[ConsolidationReportView] = None
    volley: Optional[VolleyView] = None


class OrderRequest(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    order: str


class TargetRequest(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    weapon_id: str = Field(..., alias="weaponId")
    target_id: str = Field("", alias="targetId")


class AssaultRequest(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    target_id: str = Field(..., alias="targetId")


class FireRequest(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    weapon_id: str = Field(..., alias="weaponId")


class FireAllRequest(CamelModel):
    unit_id: str = Field(..., alias="unitId")


class MoveRequest(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    destination: str


class OpposedCheckRequest(CamelModel):
    attacker_id: str = Field(..., alias="attackerId")
    defender_id: str = Field(..., alias="defenderId")


class SkillCheckView(CamelModel):
    unit_id: str = Field(..., alias="unitId")
    natural: int
    bonus: int
    total: int
    rating: str
    zero_supply: bool = Field(..., alias="zeroSupply")


class OpposedCheckResponse(CamelModel):
    attacker: SkillCheckView
    defender: SkillCheckView
    winner: str
    is_critical: bool = Field(..., alias="isCritical")
    difference: int


class CatalogPhase(CamelModel):
    id: str
    label: str
    allows_movement: bool = Field(..., alias="allowsMovement")
    allows_attack: bool = Field(..., alias="allowsAttack")


class CatalogRating(CamelModel):
    id: str
    label: str
    accuracy: int
    readiness_pool: int = Field(..., alias="readinessPool")
    bonus: int


class CatalogOrder(CamelModel):
    id: str
    label: str
    category: str
    required_trait: Optional[str] = Field(None, alias="requiredTrait")
    summary: str
    description: str


class CatalogTerrain(CamelModel):
    id: str
    label: str
    movement_cost: float = Field(..., alias="movementCost")
    max_fire_range: Optional[int] = Field(None, alias="maxFireRange")
    blocks_los: bool = Field(..., alias="blocksLos")
    elevation_bonus: bool = Field(..., alias="elevationBonus")


class CatalogOption(CamelModel):
    id: str
    label: str


class CatalogResponse(CamelModel):
    phases: List[CatalogPhase]
    ratings: List[CatalogRating]
    orders: List[CatalogOrder]
    terrain: List[CatalogTerrain]
    traits: List[CatalogOption]

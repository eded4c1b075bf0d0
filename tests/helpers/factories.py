from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from mercs_sim.domain.hexgrid import HexBoard, HexCoord
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
from mercs_sim.rules.scenario import DEFAULT_SCENARIO, load_session
from mercs_sim.sim.session import CombatSession


@lru_cache(maxsize=1)
def default_rules() -> Ruleset:
    return Ruleset.default()


def make_weapon(
    weapon_id: str = "gun",
    *,
    attack_type: AttackType = AttackType.SOFT,
    damage: int = 3,
    range: int = 3,
    indirect: bool = False,
    area: bool = False,
    accurate: int = 0,
    inaccurate: int = 0,
    target_id: str = "",
) -> Weapon:
    return Weapon(
        id=weapon_id,
        name=weapon_id.title(),
        attack_type=attack_type,
        damage=damage,
        range=range,
        indirect=indirect,
        area=area,
        accurate=accurate,
        inaccurate=inaccurate,
        target_id=target_id,
    )


def make_unit(
    unit_id: str = "unit",
    *,
    team: str = "alpha",
    rating: Rating = Rating.TRAINED,
    strength: int = 10,
    strength_max: int | None = None,
    readiness: int | None = None,
    readiness_max: int | None = None,
    supply: int = 10,
    usage: int = 1,
    traits: Iterable[TraitId | Trait] = (),
    weapons: Iterable[Weapon] = (),
    position: HexCoord | None = None,
    order: str = "",
    speed: int = 4,
    comms: int = 3,
    ewar: int = 0,
) -> Unit:
    """Build a unit; readiness defaults to a full pool for the rating."""
    pool = readiness_max if readiness_max is not None else default_rules().rating(rating).readiness_pool
    return Unit(
        id=unit_id,
        name=unit_id.replace("-", " ").title(),
        team=team,
        rating=rating,
        strength=Pool(value=strength, max=strength_max if strength_max is not None else strength),
        readiness=Pool(value=readiness if readiness is not None else pool, max=pool),
        supply=SupplyState(current=supply, capacity=max(supply, 10), usage=usage),
        speed=speed,
        comms=comms,
        ewar=ewar,
        current_order=order,
        traits=[trait if isinstance(trait, Trait) else Trait(trait) for trait in traits],
        weapons=list(weapons),
        position=position,
    )


def make_session(
    *units: Unit,
    terrain: dict[HexCoord, str] | None = None,
    bounded: bool = False,
    seed: int = 1,
    phase_index: int = 0,
    rules: Ruleset | None = None,
) -> CombatSession:
    rules = rules or default_rules()
    board = HexBoard(terrain_rules=rules.terrain, terrain=dict(terrain or {}), bounded=bounded)
    session = CombatSession(units={unit.id: unit for unit in units}, board=board, rules=rules, rng_seed=seed)
    session.phase_index = phase_index
    session.log.scope = session.scope
    return session


def make_scenario_session(*, seed: int = 1) -> CombatSession:
    """Fresh copy of the bundled default scenario."""
    return load_session(DEFAULT_SCENARIO, rules=default_rules(), seed=seed)


class ScriptedDice:
    """Deterministic roller that replays a fixed sequence of d10 results."""

    def __init__(self, rolls: Iterable[int]) -> None:
        self.rolls = list(rolls)
        self.calls = 0

    def roll_d10(self) -> int:
        if not self.rolls:
            raise AssertionError("ScriptedDice ran out of rolls")
        self.calls += 1
        return self.rolls.pop(0)


class ScriptedProvider:
    """Dice provider handing out one scripted roller per (stream, purpose)."""

    def __init__(self, scripts: dict[tuple[str, str], Iterable[int]] | None = None) -> None:
        self.scripts = {key: ScriptedDice(rolls) for key, rolls in (scripts or {}).items()}
        self.requested: list[tuple[str, str]] = []

    def __call__(self, stream: str, purpose: str) -> ScriptedDice:
        self.requested.append((stream, purpose))
        key = (stream, purpose)
        if key not in self.scripts:
            self.scripts[key] = ScriptedDice([])
        return self.scripts[key]

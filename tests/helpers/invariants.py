from __future__ import annotations

from mercs_sim.domain.types import MoraleStatus, Pool, SupplyState, Unit


def assert_pool_clamped(pool: Pool) -> None:
    assert 0 <= pool.value <= pool.max


def assert_supply_clamped(supply: SupplyState) -> None:
    assert 0 <= supply.current <= supply.capacity


def assert_unit_clamped(unit: Unit) -> None:
    assert_pool_clamped(unit.strength)
    assert_pool_clamped(unit.readiness)
    assert_supply_clamped(unit.supply)


def assert_morale_status(unit: Unit) -> None:
    assert unit.morale in tuple(MoraleStatus)
    if unit.morale == MoraleStatus.SURRENDERED:
        assert unit.strength.value == 0
        assert not unit.in_play

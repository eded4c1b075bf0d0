from __future__ import annotations

import pytest

from mercs_sim.domain.types import MoraleStatus, TraitId, UnknownEntityError
from mercs_sim.sim.session import CONSOLIDATION, ORDERS, PREPARATION, TACTICAL
from mercs_sim.systems.orders import assign_order, assign_target, available_orders, declare_assault
from tests.helpers.factories import default_rules, make_session, make_unit, make_weapon


def _keys(orders) -> list[str]:
    return [order.key for order in orders]


def test_special_orders_require_their_trait() -> None:
    rules = default_rules()

    plain = _keys(available_orders(make_unit("rifles"), rules))
    stormers = _keys(available_orders(make_unit("stormers", traits=[TraitId.ASSAULT]), rules))

    assert "assault" not in plain
    assert plain == ["hold", "move", "attack", "advance", "withdraw", "regroup"]
    assert "assault" in stormers


def test_wavering_units_may_only_hold_or_withdraw() -> None:
    unit = make_unit("shaken", traits=[TraitId.ASSAULT])
    unit.morale = MoraleStatus.BREAKING

    assert _keys(available_orders(unit, default_rules())) == ["hold", "withdraw"]


def test_out_of_play_units_have_no_orders() -> None:
    unit = make_unit("gone")
    unit.morale = MoraleStatus.SURRENDERED

    assert available_orders(unit, default_rules()) == []


def test_assign_order_only_in_the_orders_phase() -> None:
    session = make_session(make_unit("unit"), phase_index=PREPARATION)

    with pytest.raises(ValueError, match="orders phase"):
        assign_order(session, "unit", "hold")


def test_assign_order_once_per_round() -> None:
    unit = make_unit("unit")
    session = make_session(unit, phase_index=ORDERS)

    order = assign_order(session, "unit", "advance")

    assert order.key == "advance"
    assert unit.current_order == "advance"
    with pytest.raises(ValueError, match="already has orders"):
        assign_order(session, "unit", "hold")


def test_assign_order_rejects_unknown_and_ineligible_orders() -> None:
    session = make_session(make_unit("unit"), phase_index=ORDERS)

    with pytest.raises(ValueError, match="Unknown order"):
        assign_order(session, "unit", "charge")
    with pytest.raises(ValueError, match="cannot take the Assault order"):
        assign_order(session, "unit", "assault")


def test_declare_assault_targets_every_weapon() -> None:
    stormer = make_unit(
        "stormer",
        traits=[TraitId.ASSAULT],
        order="assault",
        weapons=[make_weapon("cannon"), make_weapon("coax")],
    )
    enemy = make_unit("enemy", team="bravo")
    session = make_session(stormer, enemy, phase_index=TACTICAL)

    declare_assault(session, "stormer", "enemy")

    assert session.state_for("stormer").assault_target == "enemy"
    assert [weapon.target_id for weapon in stormer.weapons] == ["enemy", "enemy"]


def test_declare_assault_requires_the_assault_order_and_an_enemy() -> None:
    stormer = make_unit("stormer", traits=[TraitId.ASSAULT], order="assault")
    idle = make_unit("idle", traits=[TraitId.ASSAULT])
    friend = make_unit("friend")
    session = make_session(stormer, idle, friend, make_unit("enemy", team="bravo"), phase_index=ORDERS)

    with pytest.raises(ValueError, match="not under the assault order"):
        declare_assault(session, "idle", "enemy")
    with pytest.raises(ValueError, match="friendly"):
        declare_assault(session, "stormer", "friend")

    session.phase_index = CONSOLIDATION
    with pytest.raises(ValueError):
        declare_assault(session, "stormer", "enemy")


def test_assign_and_clear_weapon_targets() -> None:
    unit = make_unit("unit", weapons=[make_weapon("gun")])
    session = make_session(unit, make_unit("enemy", team="bravo"), phase_index=ORDERS)

    assign_target(session, "unit", "gun", "enemy")
    assert unit.weapon("gun").target_id == "enemy"

    assign_target(session, "unit", "gun", "")
    assert unit.weapon("gun").target_id == ""


def test_assign_target_errors() -> None:
    unit = make_unit("unit", weapons=[make_weapon("gun")])
    session = make_session(unit, make_unit("friend"), phase_index=TACTICAL)

    with pytest.raises(ValueError, match="friendly"):
        assign_target(session, "unit", "gun", "friend")
    with pytest.raises(UnknownEntityError):
        assign_target(session, "unit", "gun", "nobody")
    with pytest.raises(UnknownEntityError):
        assign_target(session, "unit", "missile", "friend")

    session.phase_index = CONSOLIDATION
    with pytest.raises(ValueError, match="consolidation"):
        assign_target(session, "unit", "gun", "")

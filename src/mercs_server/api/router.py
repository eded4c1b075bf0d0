from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response

from mercs_sim.domain.actions import (
    Action,
    AssignOrder,
    AssignTarget,
    DeclareAssault,
    FireAllWeapons,
    FireWeapon,
    MoveUnit,
    NextPhase,
    PreviousPhase,
)
from mercs_sim.domain.hexgrid import HexCoord
from mercs_sim.domain.types import UnknownEntityError
from mercs_sim.sim.reducer import ActionResult, apply_action
from mercs_sim.systems.checks import opposed_check
from mercs_sim.view.catalog import build_catalog
from mercs_server.api import mappers, schemas
from mercs_server.session import get_or_create_session, reset_session

router = APIRouter(prefix="/api")


def _from_result(result: ActionResult) -> schemas.ApiResponse:
    return schemas.ApiResponse(
        ok=result.ok,
        message=result.message,
        message_kind=result.message_kind,
        state=mappers.build_state_response(result.session),
        events=[mappers.event_view(event) for event in result.events],
        report=mappers.report_view(result.report) if result.report else None,
        volley=mappers.volley_view(result.volley) if result.volley else None,
    )


async def _dispatch(request: Request, response: Response, action: Action) -> schemas.ApiResponse:
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        try:
            result = apply_action(session.combat, action)
        except UnknownEntityError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return _from_result(result)


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/state", response_model=schemas.CombatStateResponse)
async def get_state(request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    async with session.lock:
        data = mappers.build_state_response(session.combat)
    response.set_cookie("session_id", session_id, httponly=True)
    return data


@router.get("/catalog", response_model=schemas.CatalogResponse)
async def get_catalog(request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    async with session.lock:
        data = build_catalog(session.combat.rules)
    response.set_cookie("session_id", session_id, httponly=True)
    return data


@router.post("/reset", response_model=schemas.ApiResponse)
async def reset(request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        reset_session(session)
        return schemas.ApiResponse(
            ok=True,
            message="Scenario reset",
            message_kind="info",
            state=mappers.build_state_response(session.combat),
        )


@router.post("/actions/next-phase", response_model=schemas.ApiResponse)
async def next_phase(request: Request, response: Response):
    return await _dispatch(request, response, NextPhase())


@router.post("/actions/previous-phase", response_model=schemas.ApiResponse)
async def previous_phase(request: Request, response: Response):
    return await _dispatch(request, response, PreviousPhase())


@router.post("/actions/order", response_model=schemas.ApiResponse)
async def assign_order(payload: schemas.OrderRequest, request: Request, response: Response):
    return await _dispatch(request, response, AssignOrder(unit_id=payload.unit_id, order_key=payload.order))


@router.post("/actions/target", response_model=schemas.ApiResponse)
async def assign_target(payload: schemas.TargetRequest, request: Request, response: Response):
    action = AssignTarget(unit_id=payload.unit_id, weapon_id=payload.weapon_id, target_id=payload.target_id)
    return await _dispatch(request, response, action)


@router.post("/actions/assault", response_model=schemas.ApiResponse)
async def declare_assault(payload: schemas.AssaultRequest, request: Request, response: Response):
    return await _dispatch(request, response, DeclareAssault(unit_id=payload.unit_id, target_id=payload.target_id))


@router.post("/actions/fire", response_model=schemas.ApiResponse)
async def fire_weapon(payload: schemas.FireRequest, request: Request, response: Response):
    return await _dispatch(request, response, FireWeapon(unit_id=payload.unit_id, weapon_id=payload.weapon_id))


@router.post("/actions/fire-all", response_model=schemas.ApiResponse)
async def fire_all(payload: schemas.FireAllRequest, request: Request, response: Response):
    return await _dispatch(request, response, FireAllWeapons(unit_id=payload.unit_id))


@router.post("/actions/move", response_model=schemas.ApiResponse)
async def move_unit(payload: schemas.MoveRequest, request: Request, response: Response):
    try:
        destination = HexCoord.parse(payload.destination)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return await _dispatch(request, response, MoveUnit(unit_id=payload.unit_id, destination=destination))


@router.post("/checks/opposed", response_model=schemas.OpposedCheckResponse)
async def run_opposed_check(payload: schemas.OpposedCheckRequest, request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        combat = session.combat
        try:
            attacker = combat.unit(payload.attacker_id)
            defender = combat.unit(payload.defender_id)
        except UnknownEntityError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        combat.action_seq += 1
        dice = combat.dice("checks", f"{attacker.id}:{defender.id}")
        result = opposed_check(attacker, defender, dice, combat.rules)
        return mappers.opposed_view(attacker.id, defender.id, result)

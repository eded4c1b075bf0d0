from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from mercs_sim.rules.ruleset import Ruleset
from mercs_sim.rules.scenario import DEFAULT_SCENARIO, load_session
from mercs_sim.sim.session import CombatSession

_SCENARIO_PATH: Path = DEFAULT_SCENARIO


@dataclass
class ServerSession:
    combat: CombatSession
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def reset(self, combat: CombatSession) -> None:
        self.combat = combat


_sessions: dict[str, ServerSession] = {}
_rules: Ruleset | None = None


def _load_initial_combat() -> CombatSession:
    global _rules
    if _rules is None:
        _rules = Ruleset.default()
    return load_session(_SCENARIO_PATH, rules=_rules)


def reset_session(session: ServerSession) -> None:
    session.reset(_load_initial_combat())


def get_or_create_session(session_id: str | None) -> tuple[str, ServerSession]:
    if session_id and session_id in _sessions:
        return session_id, _sessions[session_id]

    new_id = str(uuid.uuid4())
    session = ServerSession(combat=_load_initial_combat())
    _sessions[new_id] = session
    return new_id, session


def get_session(session_id: str) -> ServerSession | None:
    return _sessions.get(session_id)

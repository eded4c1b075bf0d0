"""Notification events for the host layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EventScope:
    round: int
    phase: str


@dataclass(frozen=True)
class CombatEvent:
    kind: str  # "phase" | "attack" | "damage" | "morale" | "assault" | "supply" | ...
    message: str
    scope: EventScope | None = None
    data: dict[str, Any] | None = None


@dataclass()
class EventLog:
    scope: EventScope | None = None
    events: list[CombatEvent] = field(default_factory=list)

    def add(self, kind: str, message: str, **data: Any) -> CombatEvent:
        event = CombatEvent(kind=kind, message=message, scope=self.scope, data=data or None)
        self.events.append(event)
        return event

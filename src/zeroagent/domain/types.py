# src/zeroagent/domain/types.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    payload: Mapping[str, Any]
    source: str
    ts: float


@dataclass(frozen=True, slots=True)
class RunResult:
    skill: str
    success: bool
    result: Any = None
    error: Optional[str] = None
    ran_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SchedulerStatus:
    scheduled: tuple[str, ...] = ()
    triggered: tuple[str, ...] = ()

    @property
    def scheduled_count(self) -> int:
        return len(self.scheduled)

    @property
    def triggered_count(self) -> int:
        return len(self.triggered)

    @property
    def idle(self) -> bool:
        return not self.scheduled and not self.triggered

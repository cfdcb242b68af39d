"""Shared skill execution routine used by on-demand runs and background ticks."""

from __future__ import annotations

import logging
from inspect import isawaitable
from typing import Any, Mapping, Optional

from zeroagent.domain import AgentStatus, RunResult
from zeroagent.domain.skill import utc_now_iso
from zeroagent.ports import EventBus, SkillResolver
from zeroagent.services.agent.state import AgentStateStore
from zeroagent.services.eventbus import emit

_log = logging.getLogger("zeroagent.executor")


class SkillExecutor:
    def __init__(self, *, resolver: SkillResolver, state: AgentStateStore, bus: Optional[EventBus] = None):
        self.resolver = resolver
        self.state = state
        self.bus = bus

    async def execute(self, skill_name: str, inputs: Optional[Mapping[str, Any]] = None, *, origin: str = "run") -> RunResult:
        """Run one invocation of ``skill_name`` and record it.

        ``inputs=None`` means a background invocation without input. Any
        ``Exception`` from resolution or from the skill itself is turned into
        a failed ``RunResult``; ``last_run`` is written exactly once either way.
        """
        self.state.set_status(AgentStatus.RUNNING)
        emit(self.bus, "skill.run.started", {"skill": skill_name, "origin": origin}, "executor")
        try:
            skill = self.resolver.resolve(skill_name)
            result = skill.run(inputs)
            if isawaitable(result):
                result = await result
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            _log.error("skill.run.failed", extra={"extra": {"skill": skill_name, "origin": origin, "error": message}})
            self.state.record_run(skill_name, False)
            self.state.set_status(AgentStatus.ERROR)
            emit(self.bus, "skill.run.failed", {"skill": skill_name, "origin": origin, "error": message}, "executor")
            return RunResult(skill=skill_name, success=False, error=message, ran_at=utc_now_iso())

        self.state.record_run(skill_name, True)
        self.state.set_status(AgentStatus.IDLE)
        emit(self.bus, "skill.run.succeeded", {"skill": skill_name, "origin": origin}, "executor")
        return RunResult(skill=skill_name, success=True, result=result, ran_at=utc_now_iso())

# src/zeroagent/services/agent_context.py
from __future__ import annotations
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from zeroagent.adapters.fs.path_provider import PathProvider
from zeroagent.ports import EventBus, Installer, SkillResolver
from zeroagent.services.agent.orchestrator import Orchestrator
from zeroagent.services.agent.state import AgentStateStore
from zeroagent.services.scheduler.engine import SkillScheduler
from zeroagent.services.settings import Settings
from zeroagent.services.skill.executor import SkillExecutor
from zeroagent.services.skill.registry import SkillRegistry


@dataclass(slots=True)
class AgentContext:
    settings: Settings
    paths: PathProvider
    bus: EventBus
    registry: SkillRegistry
    state: AgentStateStore
    installer: Installer
    resolver: SkillResolver
    executor: SkillExecutor
    scheduler: SkillScheduler
    orchestrator: Orchestrator


_CTX: ContextVar[Optional[AgentContext]] = ContextVar("zeroagent_ctx", default=None)


def set_ctx(ctx: AgentContext) -> None:
    """Publishes the current AgentContext (available through get_ctx)."""
    _CTX.set(ctx)


def get_ctx() -> AgentContext:
    """Returns the current AgentContext or raises when bootstrap has not run."""
    ctx = _CTX.get()
    if ctx is None:
        raise RuntimeError("AgentContext is not initialized. Call init_ctx(...) during app bootstrap.")
    return ctx


def clear_ctx() -> None:
    _CTX.set(None)


# src/zeroagent/apps/bootstrap.py
from __future__ import annotations
from threading import RLock
from typing import Optional

from zeroagent.adapters.fs.path_provider import PathProvider
from zeroagent.adapters.scheduling.apscheduler_timer import ApschedulerTimerFactory
from zeroagent.adapters.skills.fs_resolver import FsSkillResolver
from zeroagent.adapters.skills.installers import SourceInstaller
from zeroagent.config import const
from zeroagent.services.agent.orchestrator import Orchestrator
from zeroagent.services.agent.state import AgentStateStore
from zeroagent.services.agent_context import AgentContext, set_ctx
from zeroagent.services.eventbus import LocalEventBus
from zeroagent.services.logging import attach_event_logger, setup_logging
from zeroagent.services.scheduler.engine import SkillScheduler
from zeroagent.services.settings import Settings
from zeroagent.services.skill.executor import SkillExecutor
from zeroagent.services.skill.registry import SkillRegistry


class _CtxHolder:
    _ctx: Optional[AgentContext] = None
    _lock = RLock()

    @classmethod
    def get(cls) -> AgentContext:
        with cls._lock:
            if cls._ctx is None:
                cls._ctx = cls._build(Settings.from_sources())
                set_ctx(cls._ctx)
            return cls._ctx

    @classmethod
    def init(cls, settings: Optional[Settings] = None, *, console_log: bool = True) -> AgentContext:
        with cls._lock:
            cls._ctx = cls._build(settings or Settings.from_sources(), console_log=console_log)
            set_ctx(cls._ctx)
            return cls._ctx

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._ctx = None

    @staticmethod
    def _build(settings: Settings, *, console_log: bool = True) -> AgentContext:
        paths = PathProvider.from_settings(settings)
        paths.ensure_tree()

        bus = LocalEventBus()
        root_logger = setup_logging(paths, settings.log_level, console=console_log)
        attach_event_logger(bus, root_logger.getChild("events"))

        registry = SkillRegistry(paths.registry_file(), free_limit=const.FREE_SKILL_LIMIT)
        state = AgentStateStore(paths.state_file())
        installer = SourceInstaller(paths)
        resolver = FsSkillResolver(paths)
        executor = SkillExecutor(resolver=resolver, state=state, bus=bus)
        scheduler = SkillScheduler(
            registry=registry,
            state=state,
            executor=executor,
            timers=ApschedulerTimerFactory(timezone=settings.timezone),
            bus=bus,
            poll_interval=settings.trigger_poll_sec,
        )
        orchestrator = Orchestrator(
            registry=registry,
            state=state,
            installer=installer,
            resolver=resolver,
            executor=executor,
            scheduler=scheduler,
            bus=bus,
            free_limit=const.FREE_SKILL_LIMIT,
        )
        return AgentContext(
            settings=settings,
            paths=paths,
            bus=bus,
            registry=registry,
            state=state,
            installer=installer,
            resolver=resolver,
            executor=executor,
            scheduler=scheduler,
            orchestrator=orchestrator,
        )


# ── public facades ─────────────────────────────────────────


def get_ctx() -> AgentContext:
    """Shim: builds the context on first use, then returns the published one."""
    return _CtxHolder.get()


def init_ctx(settings: Optional[Settings] = None, *, console_log: bool = True) -> AgentContext:
    """Explicit application init and context publication."""
    return _CtxHolder.init(settings, console_log=console_log)


def reset_ctx() -> None:
    from zeroagent.services.agent_context import clear_ctx

    _CtxHolder.reset()
    clear_ctx()

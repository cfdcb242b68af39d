# src/zeroagent/services/agent/orchestrator.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from inspect import isawaitable
from typing import Any, Mapping, Optional

from zeroagent.config import const
from zeroagent.domain import (
    AgentState,
    AgentStatus,
    ExecutionMode,
    RunResult,
    SchedulerStatus,
    SkillEntry,
    SkillStatus,
    Tier,
    TriggerSpec,
)
from zeroagent.domain.skill import TriggerValue
from zeroagent.ports import EventBus, Installer, Predicate, SkillResolver
from zeroagent.services.agent.state import AgentStateStore
from zeroagent.services.eventbus import emit
from zeroagent.services.scheduler.engine import SkillScheduler
from zeroagent.services.skill.errors import (
    InstallFailure,
    LockReason,
    SkillLockedError,
    SkillNotInstalledError,
)
from zeroagent.services.skill.executor import SkillExecutor
from zeroagent.services.skill.registry import SkillRegistry
from zeroagent.services.skill.source import derive_skill_name, detect_origin

_log = logging.getLogger("zeroagent.agent")


@dataclass(frozen=True, slots=True)
class InstallResult:
    entry: SkillEntry
    already_installed: bool = False
    slots_remaining: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self.entry.status is SkillStatus.LOCKED


@dataclass(frozen=True, slots=True)
class AgentSummary:
    state: AgentState
    scheduler: SchedulerStatus
    skill_count: int
    slots_remaining: Optional[int]


def _entry_from_manifest(name: str, source: str, meta: Optional[Mapping[str, Any]]) -> SkillEntry:
    meta = meta or {}
    trigger = meta.get("trigger")
    return SkillEntry(
        name=name,
        source=source,
        origin=detect_origin(source),
        version=str(meta.get("version") or const.DEFAULT_SKILL_VERSION),
        description=str(meta.get("description") or const.DEFAULT_SKILL_DESCRIPTION),
        execution_mode=ExecutionMode(meta.get("execution_mode") or meta.get("executionMode") or ExecutionMode.ON_DEMAND.value),
        tier=Tier(meta.get("tier") or Tier.FREE.value),
        status=SkillStatus.ACTIVE,
        schedule=meta.get("schedule") or None,
        trigger=TriggerSpec.from_dict(trigger) if isinstance(trigger, Mapping) else None,
    )


class Orchestrator:
    """
    Entry point of the agent: tier and quota policy around the registry,
    the state store, the installer and the scheduler.

    Installation is never blocked by tier, only activation is: a skill that
    is over quota or needs background execution on the free tier is
    installed with status ``locked``.
    """

    def __init__(
        self,
        *,
        registry: SkillRegistry,
        state: AgentStateStore,
        installer: Installer,
        resolver: SkillResolver,
        executor: SkillExecutor,
        scheduler: SkillScheduler,
        bus: Optional[EventBus] = None,
        free_limit: int = const.FREE_SKILL_LIMIT,
    ) -> None:
        self.registry = registry
        self.state = state
        self.installer = installer
        self.resolver = resolver
        self.executor = executor
        self.scheduler = scheduler
        self.bus = bus
        self.free_limit = free_limit

    # ---------- boot / shutdown ----------

    async def boot(self) -> AgentState:
        state = self.state.load()
        _log.info("agent.booting", extra={"extra": {"agent": state.agent_name, "tier": state.tier.value}})
        await self.scheduler.start_all()
        state = self.state.set_status(AgentStatus.IDLE)
        emit(self.bus, "agent.ready", {"tier": state.tier.value}, "agent")
        return state

    async def shutdown(self) -> None:
        await self.scheduler.shutdown()
        emit(self.bus, "agent.stopped", {}, "agent")

    # ---------- install ----------

    async def install(self, source: str, name: Optional[str] = None) -> InstallResult:
        name = (name or derive_skill_name(source)).strip()
        existing = self.registry.get(name)
        if existing is not None:
            _log.warning("skill.already_installed", extra={"extra": {"skill": name}})
            return InstallResult(entry=existing, already_installed=True, slots_remaining=self._slots_remaining())

        state = self.state.load()
        try:
            meta = self.installer.describe(source, name)
        except Exception as exc:
            _log.warning("skill.describe_failed", extra={"extra": {"skill": name, "error": str(exc)}})
            meta = None
        try:
            entry = _entry_from_manifest(name, source, meta)
        except (KeyError, TypeError, ValueError) as exc:
            raise InstallFailure(name, source=source, detail=f"invalid manifest: {exc}") from exc

        if state.is_free and self.registry.is_at_free_limit() and name not in state.base_skills:
            _log.warning("skill.quota_locked", extra={"extra": {"skill": name, "limit": self.free_limit}})
            entry.status = SkillStatus.LOCKED

        if entry.execution_mode.is_background and state.is_free:
            _log.warning("skill.cloud_locked", extra={"extra": {"skill": name, "mode": entry.execution_mode.value}})
            entry.status = SkillStatus.LOCKED

        try:
            await asyncio.to_thread(self.installer.materialize, source, name)
        except InstallFailure:
            raise
        except Exception as exc:
            raise InstallFailure(name, source=source, detail=str(exc)) from exc

        self.registry.register(entry)
        self.state.increment_skill_count()
        emit(self.bus, "skill.installed", {"skill": name, "status": entry.status.value, "origin": entry.origin.value}, "agent")
        return InstallResult(entry=entry, slots_remaining=self._slots_remaining())

    def _slots_remaining(self) -> Optional[int]:
        if not self.state.is_free_tier():
            return None
        return max(0, self.free_limit - self.registry.count())

    # ---------- run ----------

    def _require(self, name: str) -> SkillEntry:
        entry = self.registry.get(name)
        if entry is None:
            raise SkillNotInstalledError(name)
        return entry

    async def run(self, name: str, inputs: Optional[Mapping[str, Any]] = None) -> RunResult:
        entry = self._require(name)
        if entry.status is SkillStatus.LOCKED:
            reason = LockReason.CLOUD_TIER if entry.tier is Tier.CLOUD else LockReason.QUOTA
            raise SkillLockedError(name, reason)
        return await self.executor.execute(name, dict(inputs or {}), origin="run")

    # ---------- remove ----------

    async def remove(self, name: str) -> SkillEntry:
        entry = self._require(name)

        # stop before delete: a tick must never see removed skill code
        if entry.execution_mode is ExecutionMode.SCHEDULED:
            await self.scheduler.stop_scheduled(name)
        elif entry.execution_mode is ExecutionMode.TRIGGERED:
            await self.scheduler.stop_triggered(name)

        await asyncio.to_thread(self.installer.remove, name)
        self.registry.unregister(name)
        self.state.decrement_skill_count()
        emit(self.bus, "skill.removed", {"skill": name}, "agent")
        return entry

    # ---------- background modes ----------

    async def schedule(self, name: str, cron_expression: str) -> bool:
        entry = self._require(name)
        entry.schedule = cron_expression
        entry.execution_mode = ExecutionMode.SCHEDULED
        self.registry.register(entry)
        return await self.scheduler.start_scheduled(entry)

    async def trigger(
        self,
        name: str,
        condition: str,
        value: Optional[TriggerValue] = None,
        check_fn: Optional[Predicate] = None,
    ) -> bool:
        entry = self._require(name)
        value = condition if value is None else value
        entry.trigger = TriggerSpec(condition=condition, value=value)
        entry.execution_mode = ExecutionMode.TRIGGERED
        self.registry.register(entry)
        predicate = check_fn or self.skill_check_predicate(name, value)
        return await self.scheduler.start_triggered(entry, predicate)

    def skill_check_predicate(self, name: str, value: TriggerValue) -> Predicate:
        """Predicate calling the skill's own ``check(value)``; ``False`` when it has none or fails."""

        async def _check() -> bool:
            try:
                skill = self.resolver.resolve(name)
                if not skill.has_check():
                    return False
                res = skill.check(value)
                if isawaitable(res):
                    res = await res
                return bool(res)
            except Exception as exc:
                _log.warning("trigger.skill_check_failed", extra={"extra": {"skill": name, "error": str(exc)}})
                return False

        return _check

    # ---------- info / settings ----------

    def list_skills(self) -> list[SkillEntry]:
        return self.registry.list_all()

    def summary(self) -> AgentSummary:
        return AgentSummary(
            state=self.state.load(),
            scheduler=self.scheduler.status(),
            skill_count=self.registry.count(),
            slots_remaining=self._slots_remaining(),
        )

    def set_tier(self, tier: Tier) -> AgentState:
        state = self.state.set_tier(Tier(tier))
        emit(self.bus, "agent.tier", {"tier": state.tier.value}, "agent")
        return state

    def rename(self, agent_name: str) -> AgentState:
        return self.state.set_agent_name(agent_name)

# src/zeroagent/services/scheduler/engine.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from inspect import isawaitable
from typing import Dict, Optional, Set

from zeroagent.config import const
from zeroagent.domain import ExecutionMode, SchedulerStatus, SkillEntry, SkillStatus
from zeroagent.ports import CronTimerFactory, EventBus, Predicate, RecurringTimer
from zeroagent.services.agent.state import AgentStateStore
from zeroagent.services.eventbus import emit
from zeroagent.services.skill.executor import SkillExecutor
from zeroagent.services.skill.registry import SkillRegistry

_log = logging.getLogger("zeroagent.scheduler")


@dataclass(slots=True)
class _Watcher:
    task: asyncio.Task
    stop: asyncio.Event


class SkillScheduler:
    """
    Owns every live background handle of the agent:
      - scheduled jobs: one recurring cron timer per skill
      - trigger watchers: one polling task per skill
    Each set is keyed by skill name; starting a skill that already has a
    handle in that set is a no-op. Handles are never persisted, ``start_all``
    rebuilds the scheduled ones from the registry on boot.
    """

    def __init__(
        self,
        *,
        registry: SkillRegistry,
        state: AgentStateStore,
        executor: SkillExecutor,
        timers: CronTimerFactory,
        bus: Optional[EventBus] = None,
        poll_interval: float = const.TRIGGER_POLL_INTERVAL_SEC,
    ) -> None:
        self.registry = registry
        self.state = state
        self.executor = executor
        self.timers = timers
        self.bus = bus
        self.poll_interval = poll_interval
        self._jobs: Dict[str, RecurringTimer] = {}
        self._watchers: Dict[str, _Watcher] = {}
        # stopped watchers finishing an in-flight tick
        self._retired: Set[asyncio.Task] = set()

    # ---------- gating ----------

    def _require_cloud(self, entry: SkillEntry, mode: ExecutionMode) -> bool:
        if self.state.is_cloud_tier():
            return True
        _log.warning(
            "scheduler.requires_cloud",
            extra={"extra": {"skill": entry.name, "mode": mode.value}},
        )
        self.registry.update_status(entry.name, SkillStatus.LOCKED)
        emit(self.bus, "skill.locked", {"skill": entry.name, "mode": mode.value}, "scheduler")
        return False

    # ---------- scheduled ----------

    async def start_scheduled(self, entry: SkillEntry) -> bool:
        name = entry.name
        if not self._require_cloud(entry, ExecutionMode.SCHEDULED):
            return False

        expression = entry.active_schedule
        if not expression:
            _log.error("scheduler.no_schedule", extra={"extra": {"skill": name}})
            return False

        if name in self._jobs:
            _log.warning("scheduler.already_scheduled", extra={"extra": {"skill": name}})
            return False

        async def _tick() -> None:
            await self._run_background(name, origin="schedule")

        try:
            timer = self.timers.schedule(name, expression, _tick)
        except ValueError as exc:
            _log.error("scheduler.bad_schedule", extra={"extra": {"skill": name, "cron": expression, "error": str(exc)}})
            return False

        self._jobs[name] = timer
        self.registry.update_status(name, SkillStatus.ACTIVE)
        _log.info("scheduler.started", extra={"extra": {"skill": name, "cron": expression}})
        emit(self.bus, "scheduler.started", {"skill": name, "cron": expression}, "scheduler")
        return True

    async def stop_scheduled(self, name: str) -> bool:
        timer = self._jobs.pop(name, None)
        if timer is None:
            _log.info("scheduler.not_scheduled", extra={"extra": {"skill": name}})
            return False
        timer.cancel()
        self.registry.update_status(name, SkillStatus.INACTIVE)
        _log.info("scheduler.stopped", extra={"extra": {"skill": name}})
        emit(self.bus, "scheduler.stopped", {"skill": name}, "scheduler")
        return True

    # ---------- triggered ----------

    async def start_triggered(self, entry: SkillEntry, predicate: Predicate) -> bool:
        name = entry.name
        if not self._require_cloud(entry, ExecutionMode.TRIGGERED):
            return False

        trigger = entry.active_trigger
        if trigger is None:
            _log.error("trigger.no_condition", extra={"extra": {"skill": name}})
            return False

        if name in self._watchers:
            _log.warning("trigger.already_active", extra={"extra": {"skill": name}})
            return False

        stop = asyncio.Event()
        task = asyncio.create_task(self._watch(name, trigger.condition, predicate, stop), name=f"trigger:{name}")
        self._watchers[name] = _Watcher(task=task, stop=stop)
        self.registry.update_status(name, SkillStatus.ACTIVE)
        _log.info("trigger.started", extra={"extra": {"skill": name, "condition": trigger.condition}})
        emit(self.bus, "trigger.started", {"skill": name, "condition": trigger.condition}, "scheduler")
        return True

    async def stop_triggered(self, name: str) -> bool:
        watcher = self._watchers.pop(name, None)
        if watcher is None:
            _log.info("trigger.not_active", extra={"extra": {"skill": name}})
            return False
        watcher.stop.set()
        if not watcher.task.done():
            self._retired.add(watcher.task)
            watcher.task.add_done_callback(self._retired.discard)
        self.registry.update_status(name, SkillStatus.INACTIVE)
        _log.info("trigger.stopped", extra={"extra": {"skill": name}})
        emit(self.bus, "trigger.stopped", {"skill": name}, "scheduler")
        return True

    async def _watch(self, name: str, condition: str, predicate: Predicate, stop: asyncio.Event) -> None:
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.poll_interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                met = predicate()
                if isawaitable(met):
                    met = await met
            except Exception as exc:
                _log.error("trigger.check_failed", extra={"extra": {"skill": name, "error": str(exc)}})
                continue

            # stopped while the predicate was running
            if stop.is_set():
                return

            if met:
                _log.info("trigger.fired", extra={"extra": {"skill": name, "condition": condition}})
                emit(self.bus, "trigger.fired", {"skill": name, "condition": condition}, "scheduler")
                await self._run_background(name, origin="trigger")

    # ---------- shared ----------

    async def _run_background(self, name: str, *, origin: str) -> None:
        # a tick must never take the timer or the poll loop down with it
        try:
            await self.executor.execute(name, None, origin=origin)
        except Exception:
            _log.exception("scheduler.tick_failed", extra={"extra": {"skill": name, "origin": origin}})

    # ---------- management ----------

    async def start_all(self) -> int:
        """Re-materialize persisted schedules; returns the number of timers started."""
        if not self.state.is_cloud_tier():
            _log.info("scheduler.skip_free_tier")
            return 0

        scheduled = self.registry.list_by_mode(ExecutionMode.SCHEDULED)
        triggered = self.registry.list_by_mode(ExecutionMode.TRIGGERED)
        if not scheduled and not triggered:
            _log.info("scheduler.nothing_to_start")
            return 0

        started = 0
        for entry in scheduled:
            if entry.active_schedule and await self.start_scheduled(entry):
                started += 1

        # predicates are not persisted, a trigger must be set again in this process
        for entry in triggered:
            _log.info("trigger.ready", extra={"extra": {"skill": entry.name}})
        return started

    async def stop_all(self) -> None:
        for name in list(self._jobs):
            await self.stop_scheduled(name)
        for name in list(self._watchers):
            await self.stop_triggered(name)

    async def shutdown(self) -> None:
        await self.stop_all()
        self.timers.shutdown()
        # let a deferred backend shutdown run on the loop
        await asyncio.sleep(0)
        if self._retired:
            await asyncio.gather(*list(self._retired), return_exceptions=True)

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(scheduled=tuple(sorted(self._jobs)), triggered=tuple(sorted(self._watchers)))

    def is_scheduled(self, name: str) -> bool:
        return name in self._jobs

    def is_watching(self, name: str) -> bool:
        return name in self._watchers

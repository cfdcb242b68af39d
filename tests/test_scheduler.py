# tests/test_scheduler.py
from __future__ import annotations

import asyncio

import pytest

from conftest import FakeSkill
from zeroagent.domain import ExecutionMode, SkillEntry, SkillOrigin, SkillStatus, Tier, TriggerSpec


def _scheduled(name: str, cron: str | None = "*/15 * * * *", **kw) -> SkillEntry:
    return SkillEntry(
        name=name,
        source=f"skills:{name}",
        origin=SkillOrigin.MARKETPLACE,
        execution_mode=ExecutionMode.SCHEDULED,
        schedule=cron,
        **kw,
    )


def _triggered(name: str, condition: str = "price_below", value=30000) -> SkillEntry:
    return SkillEntry(
        name=name,
        source=f"skills:{name}",
        origin=SkillOrigin.MARKETPLACE,
        execution_mode=ExecutionMode.TRIGGERED,
        trigger=TriggerSpec(condition, value),
    )


async def _wait_for(cond, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not cond():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def cloud(agent):
    agent.state.set_tier(Tier.CLOUD)
    return agent


# ---------- scheduled ----------


@pytest.mark.asyncio
async def test_start_scheduled_once(cloud):
    entry = _scheduled("btc-tracker")
    cloud.registry.register(entry)

    assert await cloud.scheduler.start_scheduled(entry)
    assert not await cloud.scheduler.start_scheduled(entry)

    assert len(cloud.timers.created) == 1
    assert cloud.timers.created[0].expression == "*/15 * * * *"
    assert cloud.scheduler.status().scheduled == ("btc-tracker",)
    assert cloud.registry.get("btc-tracker").status is SkillStatus.ACTIVE


@pytest.mark.asyncio
async def test_start_scheduled_requires_cloud(agent):
    entry = _scheduled("btc-tracker")
    agent.registry.register(entry)

    assert not await agent.scheduler.start_scheduled(entry)

    assert agent.timers.created == []
    assert agent.registry.get("btc-tracker").status is SkillStatus.LOCKED
    assert "skill.locked" in [ev.type for ev in agent.events]


@pytest.mark.asyncio
async def test_start_scheduled_needs_an_active_schedule(cloud):
    assert not await cloud.scheduler.start_scheduled(_scheduled("a", cron=None))
    on_demand = SkillEntry(name="b", source="skills:b", origin=SkillOrigin.MARKETPLACE, schedule="0 9 * * *")
    assert not await cloud.scheduler.start_scheduled(on_demand)
    assert cloud.timers.created == []


@pytest.mark.asyncio
async def test_bad_cron_fails_closed(cloud):
    entry = _scheduled("a", cron="every morning")
    cloud.registry.register(entry)
    assert not await cloud.scheduler.start_scheduled(entry)
    assert not cloud.scheduler.is_scheduled("a")


@pytest.mark.asyncio
async def test_tick_runs_skill_without_inputs(cloud):
    skill = cloud.resolver.add(FakeSkill("btc-tracker", {"price": 29000}))
    entry = _scheduled("btc-tracker")
    cloud.registry.register(entry)
    await cloud.scheduler.start_scheduled(entry)

    await cloud.timers.fire("btc-tracker")

    assert skill.calls == [None]
    lr = cloud.state.load().last_run
    assert lr.skill_name == "btc-tracker" and lr.success


@pytest.mark.asyncio
async def test_failing_tick_keeps_timer_alive(cloud):
    skill = cloud.resolver.add(FakeSkill("flaky", error=ValueError("bad payload")))
    entry = _scheduled("flaky")
    cloud.registry.register(entry)
    await cloud.scheduler.start_scheduled(entry)

    await cloud.timers.fire("flaky")
    await cloud.timers.fire("flaky")

    assert len(skill.calls) == 2
    assert cloud.scheduler.is_scheduled("flaky")
    assert cloud.state.load().last_run.success is False


@pytest.mark.asyncio
async def test_tick_for_unresolvable_skill_is_isolated(cloud):
    entry = _scheduled("gone")
    cloud.registry.register(entry)
    await cloud.scheduler.start_scheduled(entry)
    await cloud.timers.fire("gone")
    assert cloud.state.load().last_run.success is False
    assert cloud.scheduler.is_scheduled("gone")


@pytest.mark.asyncio
async def test_stop_scheduled(cloud):
    entry = _scheduled("a")
    cloud.registry.register(entry)
    await cloud.scheduler.start_scheduled(entry)
    timer = cloud.timers.created[0]

    assert await cloud.scheduler.stop_scheduled("a")
    assert timer.cancelled
    assert cloud.registry.get("a").status is SkillStatus.INACTIVE
    assert not await cloud.scheduler.stop_scheduled("a")

    # can be started again after a stop
    assert await cloud.scheduler.start_scheduled(cloud.registry.get("a"))


# ---------- triggered ----------


@pytest.mark.asyncio
async def test_trigger_fires_when_predicate_holds(cloud):
    skill = cloud.resolver.add(FakeSkill("btc-alert", "sent"))
    entry = _triggered("btc-alert")
    cloud.registry.register(entry)

    polls = []

    def predicate():
        polls.append(1)
        return len(polls) == 3

    assert await cloud.scheduler.start_triggered(entry, predicate)
    await _wait_for(lambda: skill.calls)
    await cloud.scheduler.stop_triggered("btc-alert")

    assert len(polls) >= 3
    assert skill.calls == [None]
    assert "trigger.fired" in [ev.type for ev in cloud.events]
    await cloud.scheduler.shutdown()


@pytest.mark.asyncio
async def test_trigger_uses_skill_check(cloud):
    seen = []

    def check(value):
        seen.append(value)
        return value == 30000

    skill = cloud.resolver.add(FakeSkill("btc-alert", "sent", check=check))
    await cloud.orch.install("skills:btc-alert")
    assert await cloud.orch.trigger("btc-alert", "price_below", 30000)

    await _wait_for(lambda: skill.calls)
    await cloud.orch.shutdown()
    assert seen and seen[0] == 30000


@pytest.mark.asyncio
async def test_skill_without_check_never_fires(cloud):
    skill = cloud.resolver.add(FakeSkill("quiet", "x"))
    predicate = cloud.orch.skill_check_predicate("quiet", 1)
    assert await predicate() is False
    assert skill.calls == []


@pytest.mark.asyncio
async def test_predicate_errors_do_not_stop_watcher(cloud):
    skill = cloud.resolver.add(FakeSkill("a", "ok"))
    entry = _triggered("a")
    cloud.registry.register(entry)
    polls = []

    async def predicate():
        polls.append(1)
        if len(polls) < 3:
            raise ConnectionError("feed unavailable")
        return len(polls) == 3

    await cloud.scheduler.start_triggered(entry, predicate)
    await _wait_for(lambda: skill.calls)
    assert cloud.scheduler.is_watching("a")
    await cloud.scheduler.shutdown()


@pytest.mark.asyncio
async def test_duplicate_trigger_and_free_tier(agent):
    entry = _triggered("a")
    agent.registry.register(entry)
    assert not await agent.scheduler.start_triggered(entry, lambda: True)
    assert agent.registry.get("a").status is SkillStatus.LOCKED

    agent.state.set_tier(Tier.CLOUD)
    assert await agent.scheduler.start_triggered(entry, lambda: False)
    assert not await agent.scheduler.start_triggered(entry, lambda: False)
    assert agent.scheduler.status().triggered == ("a",)
    await agent.scheduler.shutdown()


@pytest.mark.asyncio
async def test_stop_lets_in_flight_run_finish(cloud):
    started = asyncio.Event()
    release = asyncio.Event()
    finished = []

    class SlowSkill(FakeSkill):
        async def run(self, inputs=None):
            started.set()
            await release.wait()
            finished.append(inputs)
            return "done"

    cloud.resolver.add(SlowSkill("slow"))
    entry = _triggered("slow")
    cloud.registry.register(entry)
    await cloud.scheduler.start_triggered(entry, lambda: True)

    await asyncio.wait_for(started.wait(), timeout=2)
    assert await cloud.scheduler.stop_triggered("slow")
    assert not cloud.scheduler.is_watching("slow")

    release.set()
    await cloud.scheduler.shutdown()
    assert finished == [None]
    assert cloud.state.load().last_run.success


# ---------- lifecycle ----------


@pytest.mark.asyncio
async def test_start_all_restores_schedules_only(cloud):
    cloud.registry.register(_scheduled("a"))
    cloud.registry.register(_scheduled("b", cron="not a cron"))
    cloud.registry.register(_triggered("c"))
    cloud.registry.register(SkillEntry(name="d", source="skills:d", origin=SkillOrigin.MARKETPLACE))

    assert await cloud.scheduler.start_all() == 1
    status = cloud.scheduler.status()
    assert status.scheduled == ("a",)
    assert status.triggered == ()


@pytest.mark.asyncio
async def test_start_all_on_free_tier_is_a_no_op(agent):
    agent.registry.register(_scheduled("a"))
    assert await agent.scheduler.start_all() == 0
    assert agent.timers.created == []


@pytest.mark.asyncio
async def test_shutdown_stops_everything(cloud):
    for name in ("a", "b"):
        entry = _scheduled(name)
        cloud.registry.register(entry)
        await cloud.scheduler.start_scheduled(entry)
    entry = _triggered("c")
    cloud.registry.register(entry)
    await cloud.scheduler.start_triggered(entry, lambda: False)

    await cloud.scheduler.shutdown()

    assert cloud.scheduler.status().idle
    assert cloud.timers.closed
    assert all(t.cancelled for t in cloud.timers.created)
    assert cloud.registry.get("c").status is SkillStatus.INACTIVE


@pytest.mark.asyncio
async def test_remove_during_pending_check_never_runs_skill(cloud):
    skill = cloud.resolver.add(FakeSkill("btc-alert", "sent"))
    await cloud.orch.install("skills:btc-alert")
    checking = asyncio.Event()
    answer = asyncio.Event()

    async def predicate():
        checking.set()
        await answer.wait()
        return True

    assert await cloud.orch.trigger("btc-alert", "price_below", 30000, check_fn=predicate)
    await asyncio.wait_for(checking.wait(), timeout=2)

    await cloud.orch.remove("btc-alert")
    answer.set()
    await cloud.orch.shutdown()

    assert skill.calls == []
    assert "trigger.fired" not in [ev.type for ev in cloud.events]
    assert cloud.state.load().last_run is None

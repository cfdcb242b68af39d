# tests/conftest.py
from __future__ import annotations
import inspect
import textwrap
import types
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import pytest

from zeroagent.adapters.fs.path_provider import PathProvider
from zeroagent.apps.bootstrap import init_ctx, reset_ctx
from zeroagent.domain import Event
from zeroagent.services.agent.orchestrator import Orchestrator
from zeroagent.services.agent.state import AgentStateStore
from zeroagent.services.eventbus import LocalEventBus
from zeroagent.services.scheduler.engine import SkillScheduler
from zeroagent.services.settings import Settings
from zeroagent.services.skill.errors import InstallFailure, SkillNotInstalledError
from zeroagent.services.skill.executor import SkillExecutor
from zeroagent.services.skill.registry import SkillRegistry


# ---- installer: manifests by skill name, records every call ----
class FakeInstaller:
    def __init__(self, paths: PathProvider):
        self.paths = paths
        self.manifests: dict[str, dict] = {}
        self.fail: set[str] = set()
        self.materialized: list[str] = []
        self.removed: list[str] = []

    def describe(self, source: str, skill_name: str):
        return self.manifests.get(skill_name)

    def materialize(self, source: str, skill_name: str) -> Path:
        if skill_name in self.fail:
            raise InstallFailure(skill_name, source=source, detail="boom")
        dest = self.paths.skill_dir(skill_name)
        dest.mkdir(parents=True, exist_ok=True)
        self.materialized.append(skill_name)
        return dest

    def remove(self, skill_name: str) -> bool:
        self.removed.append(skill_name)
        return True


# ---- skills living in memory ----
class FakeSkill:
    def __init__(self, name: str, result: Any = None, *, error: Optional[Exception] = None, check: Optional[Callable] = None):
        self.name = name
        self.result = result
        self.error = error
        self._check = check
        self.calls: list[Any] = []

    async def run(self, inputs=None):
        self.calls.append(inputs)
        if self.error is not None:
            raise self.error
        return self.result

    def has_check(self) -> bool:
        return self._check is not None

    def check(self, value):
        return self._check(value) if self._check else False


class FakeResolver:
    def __init__(self):
        self.skills: dict[str, FakeSkill] = {}

    def add(self, skill: FakeSkill) -> FakeSkill:
        self.skills[skill.name] = skill
        return skill

    def resolve(self, skill_name: str) -> FakeSkill:
        try:
            return self.skills[skill_name]
        except KeyError:
            raise SkillNotInstalledError(skill_name)


# ---- cron timers fired by hand ----
class FakeTimer:
    def __init__(self, factory: "FakeTimerFactory", name: str, expression: str, callback):
        self.factory = factory
        self.name = name
        self.expression = expression
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self.factory.live.pop(self.name, None)


class FakeTimerFactory:
    def __init__(self):
        self.live: dict[str, FakeTimer] = {}
        self.created: list[FakeTimer] = []
        self.closed = False

    def schedule(self, name: str, expression: str, callback) -> FakeTimer:
        if len(expression.split()) != 5:
            raise ValueError(f"wrong number of fields in {expression!r}")
        timer = FakeTimer(self, name, expression, callback)
        self.live[name] = timer
        self.created.append(timer)
        return timer

    async def fire(self, name: str) -> None:
        res = self.live[name].callback()
        if inspect.isawaitable(res):
            await res

    def shutdown(self) -> None:
        self.closed = True


# ---------- CLI application fixture ----------
@pytest.fixture
def cli_app():
    from zeroagent.apps.cli.app import app

    return app


# ---------- autofixture: every test gets its own agent home ----------
@pytest.fixture(autouse=True)
def _autocontext(tmp_path, monkeypatch):
    base_dir = tmp_path / "base"
    monkeypatch.setenv("ZEROAGENT_BASE_DIR", str(base_dir))
    monkeypatch.delenv("ZEROAGENT_TIMEZONE", raising=False)
    monkeypatch.delenv("ZEROAGENT_TRIGGER_POLL_SEC", raising=False)

    settings = Settings.from_sources(env_file=None).with_overrides(base_dir=str(base_dir), profile="test")
    ctx = init_ctx(settings, console_log=False)
    try:
        yield ctx
    finally:
        reset_ctx()


@pytest.fixture
def paths(_autocontext) -> PathProvider:
    return _autocontext.paths


@pytest.fixture
def agent(paths) -> types.SimpleNamespace:
    """Orchestrator over real JSON stores with fake installer, resolver and timers."""
    bus = LocalEventBus()
    events: list[Event] = []
    bus.subscribe("", events.append)

    registry = SkillRegistry(paths.registry_file())
    state = AgentStateStore(paths.state_file())
    installer = FakeInstaller(paths)
    resolver = FakeResolver()
    timers = FakeTimerFactory()
    executor = SkillExecutor(resolver=resolver, state=state, bus=bus)
    scheduler = SkillScheduler(registry=registry, state=state, executor=executor, timers=timers, bus=bus, poll_interval=0.01)
    orch = Orchestrator(
        registry=registry,
        state=state,
        installer=installer,
        resolver=resolver,
        executor=executor,
        scheduler=scheduler,
        bus=bus,
    )
    return types.SimpleNamespace(
        orch=orch,
        registry=registry,
        state=state,
        installer=installer,
        resolver=resolver,
        timers=timers,
        executor=executor,
        scheduler=scheduler,
        bus=bus,
        events=events,
    )


@pytest.fixture
def skill_factory(paths) -> Callable[..., Path]:
    """Create skill directories under ``skills_dir`` for loader and CLI tests."""

    def _create_skill(
        name: str,
        *,
        handler_source: Optional[str] = None,
        manifest: Optional[str] = None,
        root: Optional[Path] = None,
    ) -> Path:
        skill_dir = (root or paths.skills_dir()) / name
        (skill_dir / "handlers").mkdir(parents=True, exist_ok=True)
        (skill_dir / "skill.yaml").write_text(
            manifest
            or textwrap.dedent(
                f"""
                name: {name}
                version: 0.0.1
                description: test skill {name}
                """
            ).strip()
            + "\n",
            encoding="utf-8",
        )
        handler_source = handler_source or textwrap.dedent(
            """
            def run(inputs):
                return {"echo": inputs}
            """
        )
        (skill_dir / "handlers" / "main.py").write_text(handler_source, encoding="utf-8")
        return skill_dir

    return _create_skill

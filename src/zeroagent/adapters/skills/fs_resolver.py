"""Loading of local skill code from ``<skills_dir>/<name>``.

A skill directory exposes its entry points from ``handlers/main.py`` (or a
top-level ``main.py``):

* ``run(inputs)``: required, sync or async, returns a JSON-like result;
* ``check(value)``: optional, used as the trigger predicate.

Modules are imported fresh on each resolution so that an updated skill is
picked up by the next scheduled tick without restarting the agent.
"""

from __future__ import annotations

import importlib.util
import inspect
from pathlib import Path
from types import ModuleType
from typing import Any, Mapping, Optional

from zeroagent.adapters.fs.path_provider import PathProvider
from zeroagent.services.skill.errors import SkillNotInstalledError, SkillNotRunnableError

_ENTRY_FILES = ("handlers/main.py", "main.py")


def find_entry_file(skill_dir: Path) -> Optional[Path]:
    for rel in _ENTRY_FILES:
        p = skill_dir / rel
        if p.is_file():
            return p
    return None


def _load_module(skill_name: str, entry_file: Path) -> ModuleType:
    mod_name = "zeroagent_skill_" + skill_name.replace("-", "_").replace("/", "_")
    spec = importlib.util.spec_from_file_location(mod_name, entry_file)
    if spec is None or spec.loader is None:
        raise SkillNotRunnableError(skill_name, detail=f"failed to import {entry_file}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)  # type: ignore[attr-defined]
    except Exception as exc:
        raise SkillNotRunnableError(skill_name, detail=f"failed to import {entry_file}: {exc}") from exc
    return module


class ModuleSkill:
    """``ExecutableSkill`` backed by an imported handler module."""

    def __init__(self, name: str, module: ModuleType):
        self.name = name
        self._run = getattr(module, "run", None)
        self._check = getattr(module, "check", None)
        if not callable(self._run):
            raise SkillNotRunnableError(name, detail=f"skill {name} does not define run()")

    def run(self, inputs: Optional[Mapping[str, Any]] = None) -> Any:
        if inputs is None:
            # фоновый запуск: без входных данных
            params = inspect.signature(self._run).parameters.values()
            required = [p for p in params if p.default is p.empty and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
            return self._run({}) if required else self._run()
        return self._run(dict(inputs))

    def has_check(self) -> bool:
        return callable(self._check)

    def check(self, value: Any) -> Any:
        if not callable(self._check):
            return False
        return self._check(value)


class FsSkillResolver:
    def __init__(self, paths: PathProvider):
        self.paths = paths

    def resolve(self, skill_name: str) -> ModuleSkill:
        skill_dir = self.paths.skill_dir(skill_name)
        if not skill_dir.is_dir():
            raise SkillNotInstalledError(skill_name)
        entry = find_entry_file(skill_dir)
        if entry is None:
            raise SkillNotRunnableError(skill_name, detail=f"no handlers/main.py in {skill_dir}")
        return ModuleSkill(skill_name, _load_module(skill_name, entry))

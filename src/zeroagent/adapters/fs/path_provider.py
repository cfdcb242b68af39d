# src/zeroagent/adapters/fs/path_provider.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from zeroagent.config import const
from zeroagent.services.settings import Settings


@dataclass(slots=True)
class PathProvider:
    """Single source of truth for on-disk locations. Always works with pathlib.Path."""

    base: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> "PathProvider":
        return cls(base=Path(settings.base_dir).expanduser().resolve())

    def base_dir(self) -> Path:
        return self.base

    def skills_dir(self) -> Path:
        return (self.base / "skills").resolve()

    def skill_dir(self, skill_name: str) -> Path:
        root = self.skills_dir()
        p = (root / skill_name).resolve()
        try:
            p.relative_to(root)
        except ValueError:
            raise ValueError(f"unsafe skill name: {skill_name!r}")
        return p

    def logs_dir(self) -> Path:
        return (self.base / "logs").resolve()

    def state_file(self) -> Path:
        return self.base / const.STATE_FILE

    def registry_file(self) -> Path:
        return self.base / const.REGISTRY_FILE

    def ensure_tree(self) -> None:
        for p in (self.base_dir(), self.skills_dir(), self.logs_dir()):
            p.mkdir(parents=True, exist_ok=True)

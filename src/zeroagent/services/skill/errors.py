"""Error kinds raised by the skill lifecycle services."""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "SkillError",
    "SkillNotInstalledError",
    "LockReason",
    "SkillLockedError",
    "InstallFailure",
    "SkillNotRunnableError",
    "PersistenceCorruption",
]


class SkillError(RuntimeError):
    """Base error for every skill lifecycle failure reported to callers."""


class SkillNotInstalledError(SkillError):
    """Raised when an operation names a skill missing from the registry."""

    def __init__(self, skill: str) -> None:
        self.skill = skill
        super().__init__(f'skill "{skill}" is not installed')


class LockReason(str, Enum):
    CLOUD_TIER = "cloud-tier"
    QUOTA = "quota"


class SkillLockedError(SkillError):
    """Raised when a locked skill is asked to run."""

    def __init__(self, skill: str, reason: LockReason) -> None:
        self.skill = skill
        self.reason = reason
        if reason is LockReason.CLOUD_TIER:
            text = f"{skill} requires Cloud tier to run"
        else:
            text = f"{skill} is locked, check your skill limit"
        super().__init__(text)


class InstallFailure(SkillError):
    """Raised when the installer cannot materialize a skill."""

    def __init__(self, skill: str, *, source: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.skill = skill
        self.source = source
        self.detail = detail
        text = f"failed to install {skill}"
        if source:
            text += f" from {source}"
        super().__init__(text if detail is None else f"{text}: {detail}")


class SkillNotRunnableError(SkillError):
    """Raised when skill code does not expose a ``run`` entry point."""

    def __init__(self, skill: str, *, detail: Optional[str] = None) -> None:
        self.skill = skill
        super().__init__(detail or f"skill {skill} does not define run()")


class PersistenceCorruption(SkillError):
    """A persisted document could not be parsed; stores log it and start fresh."""

    def __init__(self, path: str, *, detail: Optional[str] = None) -> None:
        self.path = path
        super().__init__(f"unreadable document {path}" if detail is None else f"unreadable document {path}: {detail}")

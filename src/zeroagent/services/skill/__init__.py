from .errors import (
    InstallFailure,
    LockReason,
    PersistenceCorruption,
    SkillError,
    SkillLockedError,
    SkillNotInstalledError,
    SkillNotRunnableError,
)

__all__ = [
    "InstallFailure",
    "LockReason",
    "PersistenceCorruption",
    "SkillError",
    "SkillLockedError",
    "SkillNotInstalledError",
    "SkillNotRunnableError",
]

from .contracts import EventBus, PathProvider
from .installer import Installer
from .skill import ExecutableSkill, Predicate, SkillResolver
from .timer import CronTimerFactory, RecurringTimer, TickCallback

__all__ = [
    "EventBus",
    "PathProvider",
    "Installer",
    "ExecutableSkill",
    "Predicate",
    "SkillResolver",
    "CronTimerFactory",
    "RecurringTimer",
    "TickCallback",
]

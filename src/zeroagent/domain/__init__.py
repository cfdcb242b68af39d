from .types import Event, RunResult, SchedulerStatus
from .skill import ExecutionMode, SkillEntry, SkillOrigin, SkillStatus, Tier, TriggerSpec
from .state import AgentState, AgentStatus, LastRun

__all__ = [
    "Event",
    "RunResult",
    "SchedulerStatus",
    "ExecutionMode",
    "SkillEntry",
    "SkillOrigin",
    "SkillStatus",
    "Tier",
    "TriggerSpec",
    "AgentState",
    "AgentStatus",
    "LastRun",
]

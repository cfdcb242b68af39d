# src/zeroagent/domain/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from zeroagent.config import const
from zeroagent.domain.skill import Tier, utc_now_iso


class AgentStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LastRun:
    skill_name: str
    ran_at: str
    success: bool

    def to_dict(self) -> dict[str, Any]:
        return {"skill_name": self.skill_name, "ran_at": self.ran_at, "success": self.success}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LastRun":
        return cls(skill_name=str(data["skill_name"]), ran_at=str(data["ran_at"]), success=bool(data["success"]))


@dataclass(frozen=True, slots=True)
class AgentState:
    version: str = const.AGENT_VERSION
    agent_name: str = const.DEFAULT_AGENT_NAME
    tier: Tier = Tier.FREE
    status: AgentStatus = AgentStatus.IDLE
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)
    total_skills_installed: int = 0
    active_skill_count: int = 0
    base_skills: tuple[str, ...] = const.BASE_SKILLS
    last_run: Optional[LastRun] = None

    @property
    def is_free(self) -> bool:
        return self.tier is Tier.FREE

    @property
    def is_cloud(self) -> bool:
        return self.tier is Tier.CLOUD

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "agent_name": self.agent_name,
            "tier": self.tier.value,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "total_skills_installed": self.total_skills_installed,
            "active_skill_count": self.active_skill_count,
            "base_skills": list(self.base_skills),
        }
        if self.last_run is not None:
            data["last_run"] = self.last_run.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AgentState":
        last_run = data.get("last_run")
        return cls(
            version=str(data.get("version") or const.AGENT_VERSION),
            agent_name=str(data.get("agent_name") or const.DEFAULT_AGENT_NAME),
            tier=Tier(data.get("tier", Tier.FREE.value)),
            status=AgentStatus(data.get("status", AgentStatus.IDLE.value)),
            created_at=str(data.get("created_at") or utc_now_iso()),
            updated_at=str(data.get("updated_at") or utc_now_iso()),
            total_skills_installed=int(data.get("total_skills_installed", 0)),
            active_skill_count=int(data.get("active_skill_count", 0)),
            base_skills=tuple(data.get("base_skills", const.BASE_SKILLS)),
            last_run=LastRun.from_dict(last_run) if last_run else None,
        )

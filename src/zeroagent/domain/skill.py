# src/zeroagent/domain/skill.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Union

from zeroagent.config import const


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExecutionMode(str, Enum):
    ON_DEMAND = "on-demand"
    SCHEDULED = "scheduled"
    TRIGGERED = "triggered"

    @property
    def is_background(self) -> bool:
        return self in (ExecutionMode.SCHEDULED, ExecutionMode.TRIGGERED)


class Tier(str, Enum):
    FREE = "free"
    CLOUD = "cloud"


class SkillStatus(str, Enum):
    ACTIVE = "active"
    LOCKED = "locked"
    INACTIVE = "inactive"


class SkillOrigin(str, Enum):
    MARKETPLACE = "marketplace"
    VCS_HOSTED = "vcs-hosted"
    PACKAGE_REGISTRY = "package-registry"
    DIRECT_URL = "direct-url"
    CURATED = "curated"


TriggerValue = Union[int, float, str]


@dataclass(frozen=True, slots=True)
class TriggerSpec:
    condition: str
    value: TriggerValue

    def to_dict(self) -> dict[str, Any]:
        return {"condition": self.condition, "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TriggerSpec":
        return cls(condition=str(data["condition"]), value=data.get("value", data["condition"]))


@dataclass(slots=True)
class SkillEntry:
    """A registry record of one installed skill.

    ``execution_mode`` is authoritative: ``schedule`` is only read for
    scheduled skills and ``trigger`` only for triggered ones, even when a
    previous mode left the other field populated.
    """

    name: str
    source: str
    origin: SkillOrigin
    version: str = const.DEFAULT_SKILL_VERSION
    description: str = const.DEFAULT_SKILL_DESCRIPTION
    execution_mode: ExecutionMode = ExecutionMode.ON_DEMAND
    tier: Tier = Tier.FREE
    status: SkillStatus = SkillStatus.ACTIVE
    installed_at: str = field(default_factory=utc_now_iso)
    schedule: Optional[str] = None
    trigger: Optional[TriggerSpec] = None

    @property
    def active_schedule(self) -> Optional[str]:
        return self.schedule if self.execution_mode is ExecutionMode.SCHEDULED else None

    @property
    def active_trigger(self) -> Optional[TriggerSpec]:
        return self.trigger if self.execution_mode is ExecutionMode.TRIGGERED else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "origin": self.origin.value,
            "execution_mode": self.execution_mode.value,
            "tier": self.tier.value,
            "status": self.status.value,
            "installed_at": self.installed_at,
            "source": self.source,
        }
        if self.schedule is not None:
            data["schedule"] = self.schedule
        if self.trigger is not None:
            data["trigger"] = self.trigger.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkillEntry":
        trigger = data.get("trigger")
        return cls(
            name=str(data["name"]),
            source=str(data.get("source") or data["name"]),
            origin=SkillOrigin(data.get("origin", SkillOrigin.DIRECT_URL.value)),
            version=str(data.get("version") or const.DEFAULT_SKILL_VERSION),
            description=str(data.get("description") or const.DEFAULT_SKILL_DESCRIPTION),
            execution_mode=ExecutionMode(data.get("execution_mode", ExecutionMode.ON_DEMAND.value)),
            tier=Tier(data.get("tier", Tier.FREE.value)),
            status=SkillStatus(data.get("status", SkillStatus.ACTIVE.value)),
            installed_at=str(data.get("installed_at") or utc_now_iso()),
            schedule=data.get("schedule") or None,
            trigger=TriggerSpec.from_dict(trigger) if trigger else None,
        )

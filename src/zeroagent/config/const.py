# src/zeroagent/config/const.py
from __future__ import annotations

# жёсткие значения по умолчанию (меняются разработчиками в коде/сборке)
AGENT_VERSION: str = "0.1.0"
DEFAULT_AGENT_NAME: str = "My Agent"
REGISTRY_VERSION: str = "1.0.0"

# free tier: не больше 5 навыков, без фонового исполнения
FREE_SKILL_LIMIT: int = 5
BASE_SKILLS: tuple[str, ...] = ("find-skills",)

# период опроса условий для triggered-навыков, сек
TRIGGER_POLL_INTERVAL_SEC: float = 60.0

DEFAULT_SKILL_VERSION: str = "1.0.0"
DEFAULT_SKILL_DESCRIPTION: str = "No description provided"
UNKNOWN_SKILL_NAME: str = "unknown-skill"

STATE_FILE: str = "state.json"
REGISTRY_FILE: str = "registry.json"

# src/zeroagent/services/agent/state.py
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from zeroagent.adapters.fs.json_document import JsonDocument
from zeroagent.domain import AgentState, AgentStatus, LastRun, Tier
from zeroagent.domain.skill import utc_now_iso
from zeroagent.services.skill.errors import PersistenceCorruption

_log = logging.getLogger("zeroagent.state")


class AgentStateStore:
    """Singleton agent state persisted as ``state.json``.

    ``load`` materializes and persists the default state the first time it
    runs or whenever the document cannot be parsed; the previous content is
    discarded. Updates are load-merge-save cycles under the document lock.
    """

    def __init__(self, path: Path):
        self.doc = JsonDocument(path)

    def load(self) -> AgentState:
        with self.doc.lock:
            try:
                data = self.doc.read()
            except PersistenceCorruption as exc:
                _log.warning("state.corrupted", extra={"extra": {"path": str(exc.path), "error": str(exc)}})
                data = None
            if data is not None:
                try:
                    return AgentState.from_dict(data)
                except (KeyError, TypeError, ValueError) as exc:
                    _log.warning("state.corrupted", extra={"extra": {"path": str(self.doc.path), "error": str(exc)}})
            state = AgentState()
            self.save(state)
            _log.info("state.created", extra={"extra": {"path": str(self.doc.path)}})
            return state

    def save(self, state: AgentState) -> AgentState:
        state = dataclasses.replace(state, updated_at=utc_now_iso())
        self.doc.write(state.to_dict())
        return state

    def update(self, **fields) -> AgentState:
        with self.doc.lock:
            state = self.load()
            return self.save(dataclasses.replace(state, **fields))

    # --- tier

    def is_free_tier(self) -> bool:
        return self.load().tier is Tier.FREE

    def is_cloud_tier(self) -> bool:
        return self.load().tier is Tier.CLOUD

    def set_tier(self, tier: Tier) -> AgentState:
        return self.update(tier=Tier(tier))

    # --- misc fields

    def set_status(self, status: AgentStatus) -> AgentState:
        return self.update(status=AgentStatus(status))

    def set_agent_name(self, name: str) -> AgentState:
        return self.update(agent_name=name)

    def record_run(self, skill_name: str, success: bool) -> AgentState:
        return self.update(last_run=LastRun(skill_name=skill_name, ran_at=utc_now_iso(), success=success))

    # --- counters

    def increment_skill_count(self) -> AgentState:
        with self.doc.lock:
            state = self.load()
            return self.update(
                total_skills_installed=state.total_skills_installed + 1,
                active_skill_count=state.active_skill_count + 1,
            )

    def decrement_skill_count(self) -> AgentState:
        with self.doc.lock:
            state = self.load()
            return self.update(active_skill_count=max(0, state.active_skill_count - 1))

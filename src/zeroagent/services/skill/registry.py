# src/zeroagent/services/skill/registry.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from zeroagent.adapters.fs.json_document import JsonDocument
from zeroagent.config import const
from zeroagent.domain import ExecutionMode, SkillEntry, SkillStatus
from zeroagent.domain.skill import utc_now_iso
from zeroagent.services.skill.errors import PersistenceCorruption

_log = logging.getLogger("zeroagent.registry")


class SkillRegistry:
    """Durable ``name -> SkillEntry`` mapping stored as one JSON document.

    Every mutation loads the whole document, changes it in memory and writes
    it back while holding the document lock. Readers always get fresh
    ``SkillEntry`` copies, never live references.
    """

    def __init__(self, path: Path, *, free_limit: int = const.FREE_SKILL_LIMIT):
        self.doc = JsonDocument(path)
        self.free_limit = free_limit

    # --- document

    def _empty(self) -> dict:
        return {"version": const.REGISTRY_VERSION, "updated_at": utc_now_iso(), "skills": {}}

    def _load(self) -> dict:
        with self.doc.lock:
            try:
                data = self.doc.read()
            except PersistenceCorruption as exc:
                _log.warning("registry.corrupted", extra={"extra": {"path": str(exc.path), "error": str(exc)}})
                data = None
            if data is not None and isinstance(data.get("skills"), dict):
                return data
            # missing or unusable document is replaced by an empty registry
            data = self._empty()
            self.doc.write(data)
            return data

    def _save(self, data: dict) -> None:
        data["updated_at"] = utc_now_iso()
        self.doc.write(data)

    def _entries(self) -> list[SkillEntry]:
        raw = self._load()["skills"]
        out: list[SkillEntry] = []
        for name, item in raw.items():
            try:
                out.append(SkillEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                _log.warning("registry.entry_skipped", extra={"extra": {"skill": name, "error": str(exc)}})
        return out

    # --- mutations

    def register(self, entry: SkillEntry) -> None:
        with self.doc.lock:
            data = self._load()
            data["skills"][entry.name] = entry.to_dict()
            self._save(data)
        _log.info("registry.registered", extra={"extra": {"skill": entry.name, "status": entry.status.value}})

    def unregister(self, name: str) -> None:
        with self.doc.lock:
            data = self._load()
            if name not in data["skills"]:
                return
            del data["skills"][name]
            self._save(data)
        _log.info("registry.unregistered", extra={"extra": {"skill": name}})

    def update_status(self, name: str, status: SkillStatus) -> None:
        with self.doc.lock:
            data = self._load()
            item = data["skills"].get(name)
            if item is None:
                return
            item["status"] = SkillStatus(status).value
            self._save(data)

    # --- queries

    def get(self, name: str) -> Optional[SkillEntry]:
        item = self._load()["skills"].get(name)
        if item is None:
            return None
        try:
            return SkillEntry.from_dict(item)
        except (KeyError, TypeError, ValueError) as exc:
            _log.warning("registry.entry_skipped", extra={"extra": {"skill": name, "error": str(exc)}})
            return None

    def list_all(self) -> list[SkillEntry]:
        return self._entries()

    def list_by_mode(self, mode: ExecutionMode) -> list[SkillEntry]:
        return [e for e in self._entries() if e.execution_mode is ExecutionMode(mode)]

    def list_active(self) -> list[SkillEntry]:
        return [e for e in self._entries() if e.status is SkillStatus.ACTIVE]

    def count(self) -> int:
        return len(self._load()["skills"])

    def is_at_free_limit(self) -> bool:
        return self.count() >= self.free_limit

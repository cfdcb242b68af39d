# src/zeroagent/adapters/fs/json_document.py
from __future__ import annotations
import json, os, tempfile
from pathlib import Path
from threading import RLock
from typing import Any, Optional

from zeroagent.services.skill.errors import PersistenceCorruption


def write_text_atomic(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass


def write_json_atomic(path: Path, obj: Any) -> None:
    write_text_atomic(path, json.dumps(obj, ensure_ascii=False, indent=2))


class JsonDocument:
    """A whole-file JSON document.

    Readers get the full document, writers replace it atomically. ``lock`` is
    re-entrant and must be held across a read-modify-write cycle so that
    concurrent cycles (scheduled ticks, CLI calls) never lose updates.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.lock = RLock()

    def read(self) -> Optional[dict]:
        """Return the parsed document, or ``None`` if it is absent.

        Raises ``PersistenceCorruption`` when the file exists but is not a JSON object.
        """
        with self.lock:
            if not self.path.exists():
                return None
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("top-level value is not an object")
                return data
            except (OSError, ValueError) as exc:
                raise PersistenceCorruption(str(self.path), detail=str(exc)) from exc

    def write(self, data: dict) -> None:
        with self.lock:
            write_json_atomic(self.path, data)

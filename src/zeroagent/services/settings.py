# src/zeroagent/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Optional, Dict
from zeroagent.config import const


def _parse_env_file(path: str) -> Dict[str, str]:
    data: Dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return data
    for line in p.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            data[k.strip()] = v.strip().strip('"').strip("'")
    return data


@dataclass(frozen=True, slots=True)
class Settings:
    base_dir: Path
    profile: str = "default"
    log_level: str = "INFO"
    trigger_poll_sec: float = const.TRIGGER_POLL_INTERVAL_SEC
    timezone: Optional[str] = None

    @staticmethod
    def from_sources(env_file: Optional[str] = ".env") -> "Settings":
        env_file_vars = _parse_env_file(env_file) if env_file else {}

        def pick_env(key: str, default: Optional[str] = None) -> str:
            return os.environ.get(key) or env_file_vars.get(key) or (default or "")

        override_base = pick_env("ZEROAGENT_BASE_DIR")
        if override_base:
            base = Path(override_base).expanduser().resolve()
        else:
            base = (Path.home() / ".zeroagent").resolve()

        try:
            poll = float(pick_env("ZEROAGENT_TRIGGER_POLL_SEC", str(const.TRIGGER_POLL_INTERVAL_SEC)))
        except ValueError:
            poll = const.TRIGGER_POLL_INTERVAL_SEC

        return Settings(
            base_dir=base,
            profile=pick_env("ZEROAGENT_PROFILE", "default"),
            log_level=pick_env("ZEROAGENT_LOG_LEVEL", "INFO").upper(),
            trigger_poll_sec=poll,
            timezone=pick_env("ZEROAGENT_TIMEZONE") or None,
        )

    def with_overrides(self, **kw) -> "Settings":
        # перегружать можно ТОЛЬКО безопасные поля
        safe = {k: v for k, v in kw.items() if k in {"base_dir", "profile", "log_level"} and v is not None}
        if "base_dir" in safe:
            safe["base_dir"] = Path(safe["base_dir"]).expanduser().resolve()
        return replace(self, **safe)

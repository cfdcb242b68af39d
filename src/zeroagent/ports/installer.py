from __future__ import annotations
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol


class Installer(Protocol):
    """Places a runnable skill into ``<skills_dir>/<skill_name>``.

    ``describe`` may return the skill manifest before anything is
    materialized (``None`` when the source cannot be inspected up front).
    ``materialize`` raises ``InstallFailure``; partial files are the
    installer's own concern.
    """

    def describe(self, source: str, skill_name: str) -> Optional[Mapping[str, Any]]: ...

    def materialize(self, source: str, skill_name: str) -> Path: ...

    def remove(self, skill_name: str) -> bool: ...

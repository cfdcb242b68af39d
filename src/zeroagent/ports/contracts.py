from __future__ import annotations
from pathlib import Path
from typing import Any, Callable, Protocol

from zeroagent.domain import Event


class EventBus(Protocol):
    def publish(self, event: Event) -> None: ...

    def subscribe(self, type_prefix: str, handler: Callable[[Event], Any]) -> None: ...


class PathProvider(Protocol):
    def base_dir(self) -> Path: ...

    def skills_dir(self) -> Path: ...

    def logs_dir(self) -> Path: ...

    def state_file(self) -> Path: ...

    def registry_file(self) -> Path: ...

from __future__ import annotations
from typing import Any, Awaitable, Callable, Protocol

TickCallback = Callable[[], Awaitable[Any]]


class RecurringTimer(Protocol):
    def cancel(self) -> None: ...


class CronTimerFactory(Protocol):
    """Turns a cron expression into a recurring timer; raises ``ValueError`` on a bad expression."""

    def schedule(self, name: str, expression: str, callback: TickCallback) -> RecurringTimer: ...

    def shutdown(self) -> None: ...

from __future__ import annotations
import asyncio
import logging
import time
from collections import defaultdict
from threading import RLock
from typing import Callable, Awaitable, Any, DefaultDict, List, Optional

from zeroagent.domain import Event
from zeroagent.ports import EventBus

Handler = Callable[[Event], Any] | Callable[[Event], Awaitable[Any]]

_log = logging.getLogger("zeroagent.events")


class LocalEventBus(EventBus):
    """
    In-process bus keyed by event type prefix.
      * prefix "" or "*" subscribes to everything.
      * async handlers are scheduled on the running loop (or run to completion when there is none).
      * a failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._lock = RLock()

    def subscribe(self, type_prefix: str, handler: Handler) -> None:
        with self._lock:
            self._subs[type_prefix].append(handler)

    def publish(self, event: Event) -> None:
        with self._lock:
            pairs = [(p, hs[:]) for p, hs in self._subs.items()]
        for prefix, handlers in pairs:
            if prefix == "*" or prefix == "" or event.type.startswith(prefix):
                for h in handlers:
                    try:
                        res = h(event)
                    except Exception:
                        _log.exception("event.handler_failed", extra={"extra": {"type": event.type}})
                        continue
                    if asyncio.iscoroutine(res):
                        try:
                            loop = asyncio.get_running_loop()
                        except RuntimeError:
                            asyncio.run(res)
                        else:
                            loop.create_task(res)


def emit(bus: Optional[EventBus], type_: str, payload: dict, source: str) -> None:
    if bus is None:
        return
    bus.publish(Event(type=type_, payload=payload, source=source, ts=time.time()))

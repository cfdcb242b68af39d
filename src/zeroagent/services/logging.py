from __future__ import annotations
import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

from zeroagent.domain import Event
from zeroagent.ports import EventBus, PathProvider


def _json_formatter(record: logging.LogRecord) -> str:
    base = {
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
        "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
    }
    if hasattr(record, "extra"):
        try:
            base.update(record.extra)  # type: ignore[attr-defined]
        except (TypeError, ValueError):
            pass
    if record.exc_info:
        base["exc"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def setup_logging(paths: PathProvider, level: str = "INFO", *, console: bool = True) -> logging.Logger:
    """
    Logging setup:
      - console (stderr), optional
      - file {logs_dir}/zeroagent.log (rotating)
    JSON lines so the log is easy to parse.
    """
    logs_dir = Path(paths.logs_dir())
    logs_dir.mkdir(parents=True, exist_ok=True)
    logfile = logs_dir / "zeroagent.log"

    logger = logging.getLogger("zeroagent")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()

    if console:
        stream_h = logging.StreamHandler()
        stream_h.setFormatter(JsonFormatter())
        stream_h.setLevel(logger.level)
        logger.addHandler(stream_h)

    file_h = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    file_h.setFormatter(JsonFormatter())
    file_h.setLevel(logger.level)
    logger.addHandler(file_h)

    logger.propagate = False
    logger.debug("logging.initialized", extra={"extra": {"logfile": str(logfile)}})
    return logger


def attach_event_logger(bus: EventBus, logger: Optional[logging.Logger] = None) -> None:
    """
    Mirrors every bus event into the log.
    """
    base_logger = logger or logging.getLogger("zeroagent.events")

    def _handler(ev: Event) -> None:
        iso_time = datetime.fromtimestamp(ev.ts, tz=timezone.utc).isoformat() if ev.ts else None
        base_logger.info(
            "event",
            extra={
                "extra": {
                    "time": iso_time,
                    "type": ev.type,
                    "source": ev.source,
                    "payload": ev.payload,
                }
            },
        )

    bus.subscribe("", _handler)

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from zeroagent.ports import TickCallback

_log = logging.getLogger("zeroagent.timer")

JOB_PREFIX = "skill:"


def get_job_id(skill_name: str) -> str:
    return f"{JOB_PREFIX}{skill_name}"


class CronJobTimer:
    """Handle to one APScheduler job; ``cancel`` removes the job."""

    def __init__(self, scheduler: AsyncIOScheduler, job_id: str):
        self._scheduler = scheduler
        self.job_id = job_id

    def cancel(self) -> None:
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            _log.debug("timer.already_removed", extra={"extra": {"job": self.job_id}})

    @property
    def next_run_time(self):
        job = self._scheduler.get_job(self.job_id)
        return job.next_run_time if job else None


class ApschedulerTimerFactory:
    """
    ``CronTimerFactory`` on top of ``AsyncIOScheduler``.

    The scheduler is started lazily on the first ``schedule`` call, which
    must happen inside the running event loop. ``max_instances=1`` means a
    tick that is still running makes the next firing skip.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None, *, timezone: Optional[str] = None):
        self.timezone = timezone
        if scheduler is None:
            self.scheduler = AsyncIOScheduler(timezone=timezone) if timezone else AsyncIOScheduler()
            self._owns_scheduler = True
        else:
            self.scheduler = scheduler
            self._owns_scheduler = False

    def _ensure_started(self) -> None:
        if self._owns_scheduler and not self.scheduler.running:
            self.scheduler.start()

    def schedule(self, name: str, expression: str, callback: TickCallback) -> CronJobTimer:
        trigger = CronTrigger.from_crontab(expression, timezone=self.timezone)
        self._ensure_started()
        job = self.scheduler.add_job(
            callback,
            trigger,
            id=get_job_id(name),
            name=f"Skill: {name}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        _log.info("timer.added", extra={"extra": {"job": job.id, "cron": expression}})
        return CronJobTimer(self.scheduler, job.id)

    def shutdown(self) -> None:
        """Stop an owned scheduler. ``AsyncIOScheduler`` applies the stop on the
        next loop iteration, so ``running`` flips only after the caller yields."""
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)

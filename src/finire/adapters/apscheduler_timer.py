"""APScheduler adapter - one-shot timers for autosave debouncing."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger(__name__)


class _JobHandle:
    def __init__(self, job):
        self._job = job

    def cancel(self) -> None:
        try:
            self._job.remove()
        except JobLookupError:
            # Already fired
            pass


class APSchedulerTimers:
    """
    Background-thread timers.

    Implements TimerScheduler protocol. Each call_later is a one-shot DateTrigger job.
    """

    def __init__(self, scheduler: BackgroundScheduler | None = None):
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._owns_scheduler = scheduler is None

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    def shutdown(self) -> None:
        """Stop the scheduler without running pending timers."""
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def call_later(self, delay: float, callback: Callable[[], None]) -> _JobHandle:
        self.start()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        job = self._scheduler.add_job(
            callback,
            DateTrigger(run_date=run_date),
            misfire_grace_time=None,
        )
        return _JobHandle(job)

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import logging
from typing import Callable, List, Set

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from adhan.prayer_times import Day, Prayer


Handler = Callable[[Day, Prayer], None]


def single_worker(scheduler_cls: Callable[..., BaseScheduler]) -> BaseScheduler:
    """Build a scheduler whose jobs run one after another on a single thread."""
    return scheduler_cls(executors={"default": ThreadPoolExecutor(max_workers=1)})


@dataclass
class PrayerScheduler:
    scheduler: BaseScheduler
    handler: Handler
    now_provider: Callable[[], datetime] = datetime.now
    misfire_grace_seconds: int = 60

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")
        self._failures: List[BaseException] = []
        self._pending: Set[str] = set()

    def schedule_day(self, day: Day) -> List[str]:
        self._remove_jobs_for_date(day.date)
        scheduled: List[str] = []
        for prayer in day.prayers:
            if prayer.performed:
                continue
            run_at = datetime.combine(day.date, prayer.time)
            if run_at <= self.now_provider():
                # Skip past events so we never fire on stale data.
                continue
            job_id = self._job_id(prayer, day.date)
            self.scheduler.add_job(
                self.handler,
                trigger=DateTrigger(run_date=run_at),
                id=job_id,
                args=[day, prayer],
                replace_existing=True,
                misfire_grace_time=self.misfire_grace_seconds,
                coalesce=True,
                max_instances=1,
            )
            scheduled.append(job_id)
            self._pending.add(job_id)
            self._logger.info("Scheduled %s at %s", job_id, run_at)
        return scheduled

    def run(self) -> None:
        """Block until every scheduled adhan has played, then stop.

        The first failing job stops the scheduler and is re-raised here.
        """
        if not self._pending:
            self._logger.info("No prayers left to schedule")
            return
        self.scheduler.add_listener(
            self.on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED
        )
        self.scheduler.start()
        if self._failures:
            raise self._failures[0]

    def on_job_event(self, event) -> None:
        self._pending.discard(event.job_id)
        if getattr(event, "exception", None) is not None:
            self._failures.append(event.exception)
            self._logger.error("Job %s failed; stopping", event.job_id)
            self.scheduler.shutdown(wait=False)
            return
        # A job queued behind a running one has already left the job store.
        if not self._pending:
            self._logger.info("All prayers for today handled; stopping")
            self.scheduler.shutdown(wait=False)

    @property
    def pending(self) -> List[str]:
        return sorted(self._pending)

    @property
    def failures(self) -> List[BaseException]:
        return list(self._failures)

    def _remove_jobs_for_date(self, day: date) -> None:
        suffix = day.strftime("%Y%m%d")
        for job in self.scheduler.get_jobs():
            if job.id.endswith(suffix):
                self._logger.info("Removing job %s", job.id)
                self.scheduler.remove_job(job.id)
                self._pending.discard(job.id)

    def _job_id(self, prayer: Prayer, day: date) -> str:
        return f"adhan_{prayer.kind.value.lower()}_{day.strftime('%Y%m%d')}"

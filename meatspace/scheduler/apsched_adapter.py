"""APScheduler wrapper driving the periodic subscription poll."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig, ScheduleType
from ..logging_conf import configure_logging

PULL_JOB_ID = "subscriptions::pull-all"


def build_trigger(schedule: ScheduleConfig) -> BaseTrigger:
    """Translate a ``ScheduleConfig`` into an APScheduler trigger."""

    if schedule.type is ScheduleType.CRON:
        return CronTrigger.from_crontab(str(schedule.value))
    if schedule.type is ScheduleType.INTERVAL:
        if isinstance(schedule.value, dict):
            return IntervalTrigger(**schedule.value)
        return IntervalTrigger(seconds=float(schedule.value))
    if schedule.type is ScheduleType.ONCE:
        if not schedule.value:
            return DateTrigger(run_date=datetime.now(timezone.utc))
        run_date = datetime.fromisoformat(str(schedule.value))
        if run_date.tzinfo is None:
            run_date = run_date.replace(tzinfo=timezone.utc)
        return DateTrigger(run_date=run_date)
    raise ValueError(f"Unknown schedule type: {schedule.type}")


class APSchedulerAdapter:
    """Own the background scheduler and its single pull-all job.

    Runs never overlap: a poll still in flight when the next one is due is
    skipped, and missed runs collapse into one.
    """

    def __init__(self) -> None:
        self.scheduler = BackgroundScheduler(timezone=timezone.utc)
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if self.started:
            return
        self.scheduler.start()
        self.started = True
        self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if not self.started:
            return
        self.scheduler.shutdown(wait=False)
        self.started = False
        self.logger.info("apscheduler_stopped")

    def schedule_pull(self, schedule: ScheduleConfig, callback: Callable[[], Any]) -> None:
        self.scheduler.add_job(
            callback,
            trigger=build_trigger(schedule),
            id=PULL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("job_scheduled", job=PULL_JOB_ID, schedule=schedule.model_dump(mode="json"))

    def remove_pull(self) -> None:
        try:
            self.scheduler.remove_job(PULL_JOB_ID)
        except JobLookupError:
            self.logger.warning("job_missing", job=PULL_JOB_ID)

    def next_pull_time(self) -> datetime | None:
        for job in self.list_jobs():
            if job["id"] == PULL_JOB_ID:
                return job["next_run_time"]
        return None

    def list_jobs(self) -> list[dict]:
        return [
            {
                "id": job.id,
                "next_run_time": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]


__all__ = ["APSchedulerAdapter", "PULL_JOB_ID", "build_trigger"]

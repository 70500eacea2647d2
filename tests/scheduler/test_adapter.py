from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from meatspace.config import ScheduleConfig, ScheduleType
from meatspace.scheduler import PULL_JOB_ID, APSchedulerAdapter, build_trigger


class StubScheduler:
    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.jobs: list = []

    def add_job(self, callback, trigger, id, replace_existing, max_instances, coalesce):  # noqa: ANN001
        self.calls.append(
            {
                "id": id,
                "trigger": trigger,
                "callback": callback,
                "replace_existing": replace_existing,
                "max_instances": max_instances,
                "coalesce": coalesce,
            }
        )

    def get_jobs(self):
        return self.jobs

    def start(self):
        self.calls.append({"event": "started"})

    def shutdown(self, wait=False):  # noqa: ARG002
        self.calls.append({"event": "shutdown"})

    def remove_job(self, job_id):  # noqa: ANN001
        if any(c.get("event") == "remove" for c in self.calls):
            raise JobLookupError(job_id)
        self.calls.append({"event": "remove", "id": job_id})


def test_build_triggers() -> None:
    cron_trigger = build_trigger(ScheduleConfig(type=ScheduleType.CRON, value="*/5 * * * *"))
    assert isinstance(cron_trigger, CronTrigger)

    interval_trigger = build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value=30))
    assert isinstance(interval_trigger, IntervalTrigger)
    assert interval_trigger.interval.total_seconds() == 30

    future = (datetime.now() + timedelta(minutes=5)).isoformat()
    once_trigger = build_trigger(ScheduleConfig(type=ScheduleType.ONCE, value=future))
    assert isinstance(once_trigger, DateTrigger)
    assert once_trigger.run_date.tzinfo is not None


def test_interval_accepts_kwargs() -> None:
    trigger = build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value={"minutes": 2}))
    assert isinstance(trigger, IntervalTrigger)
    assert trigger.interval.total_seconds() == 120
    with pytest.raises(ValueError):
        ScheduleConfig(type=ScheduleType.INTERVAL, value="fast")


def test_schedule_pull_uses_scheduler() -> None:
    adapter = APSchedulerAdapter()
    stub = StubScheduler()
    adapter.scheduler = stub  # type: ignore[assignment]

    def poll() -> None:
        return None

    adapter.schedule_pull(ScheduleConfig(type=ScheduleType.INTERVAL, value=60), poll)
    adapter.start()
    adapter.start()
    adapter.remove_pull()
    adapter.remove_pull()
    adapter.shutdown()

    job = stub.calls[0]
    assert job["id"] == PULL_JOB_ID
    assert job["callback"] is poll
    assert job["replace_existing"] and job["coalesce"]
    assert job["max_instances"] == 1
    assert [c.get("event") for c in stub.calls[1:]] == ["started", "remove", "shutdown"]
    assert adapter.list_jobs() == []


def test_next_pull_time_reads_pull_job() -> None:
    adapter = APSchedulerAdapter()
    stub = StubScheduler()
    adapter.scheduler = stub  # type: ignore[assignment]
    assert adapter.next_pull_time() is None

    due = datetime(2024, 5, 20, 12, 5)
    stub.jobs = [
        SimpleNamespace(id="other", next_run_time=None, trigger="x"),
        SimpleNamespace(id=PULL_JOB_ID, next_run_time=due, trigger="interval[0:05:00]"),
    ]
    assert adapter.next_pull_time() == due

from .apsched_adapter import PULL_JOB_ID, APSchedulerAdapter, build_trigger

__all__ = ["APSchedulerAdapter", "PULL_JOB_ID", "build_trigger"]

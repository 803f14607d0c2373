"""Domain layer definitions."""

from .jobs import COMPLETED, FAILED, PENDING, RUNNING, TERMINAL_STATUSES, Job, JobStatus

__all__ = [
    "COMPLETED",
    "FAILED",
    "Job",
    "JobStatus",
    "PENDING",
    "RUNNING",
    "TERMINAL_STATUSES",
]

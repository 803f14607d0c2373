"""Domain entities for batch recommendation jobs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from advisor.core.schema import BatchStatus, DateRangeSpec, DebugSample

JobStatus = Literal["pending", "running", "completed", "failed"]

PENDING: JobStatus = "pending"
RUNNING: JobStatus = "running"
COMPLETED: JobStatus = "completed"
FAILED: JobStatus = "failed"

TERMINAL_STATUSES: frozenset[str] = frozenset({COMPLETED, FAILED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({PENDING, RUNNING, FAILED}),
    RUNNING: frozenset({RUNNING, COMPLETED, FAILED}),
    COMPLETED: frozenset(),
    FAILED: frozenset(),
}


@dataclass(slots=True)
class Job:
    """State of one population-wide batch run."""

    job_id: str
    start_time: datetime
    total_entities: int
    status: JobStatus = PENDING
    end_time: datetime | None = None
    processed_entities: int = 0
    errors: list[str] = field(default_factory=list)
    sample: DebugSample | None = None
    error: str | None = None
    include_debug: bool = False
    date_range: DateRangeSpec | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def duration_seconds(self) -> int | None:
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds())

    def to_status(self) -> BatchStatus:
        return BatchStatus(
            job_id=self.job_id,
            status=self.status,
            processed_entities=self.processed_entities,
            total_entities=self.total_entities,
            duration_seconds=self.duration_seconds,
            errors=list(self.errors),
            error=self.error,
            date_range=self.date_range,
            sample=self.sample if self.include_debug else None,
        )

"""In-memory registry of batch job state."""
from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Callable

from advisor.core.errors import JobStateError, NotFoundError
from advisor.core.schema import DateRangeSpec
from advisor.domain import Job
from advisor.domain.jobs import ALLOWED_TRANSITIONS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRegistry:
    """Holds every job for the life of the process.

    Mutations run against a private copy under the lock and are swapped in
    only once the mutator returns, so readers never see a half-applied update.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()
        self._job_counter = 0
        self._clock = clock

    def create(
        self,
        total_entities: int,
        *,
        include_debug: bool = False,
        date_range: DateRangeSpec | None = None,
    ) -> str:
        if total_entities < 0:
            raise ValueError("total_entities cannot be negative")
        with self._lock:
            self._job_counter += 1
            job_id = f"batch-{self._job_counter:05d}"
            self._jobs[job_id] = Job(
                job_id=job_id,
                start_time=self._clock(),
                total_entities=total_entities,
                include_debug=include_debug,
                date_range=date_range,
            )
        return job_id

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError(f"batch job {job_id} not found")
            return copy.deepcopy(job)

    def update(self, job_id: str, mutator: Callable[[Job], None]) -> Job:
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise NotFoundError(f"batch job {job_id} not found")
            if current.is_terminal:
                raise JobStateError(f"batch job {job_id} is already {current.status}")

            draft = copy.deepcopy(current)
            mutator(draft)
            self._check(current, draft)
            if draft.is_terminal:
                draft.end_time = self._clock()
            self._jobs[job_id] = draft
            return copy.deepcopy(draft)

    @staticmethod
    def _check(current: Job, draft: Job) -> None:
        if draft.job_id != current.job_id or draft.total_entities != current.total_entities:
            raise JobStateError(f"batch job {current.job_id}: identity fields are immutable")
        if draft.status not in ALLOWED_TRANSITIONS.get(current.status, frozenset()):
            raise JobStateError(f"batch job {current.job_id}: cannot move from {current.status} to {draft.status}")
        if draft.processed_entities < current.processed_entities:
            raise JobStateError(f"batch job {current.job_id}: processed count cannot decrease")
        if draft.processed_entities > draft.total_entities:
            raise JobStateError(f"batch job {current.job_id}: processed count exceeds total")


__all__ = ["JobRegistry"]

from __future__ import annotations

import asyncio
import logging

from advisor.application.recommendations import RecommendationService
from advisor.core.date_range import resolve_date_range
from advisor.core.errors import JobStateError
from advisor.core.schema import BatchRequest, BatchStatus, RecommendationRequest, RecommendationResponse
from advisor.domain import COMPLETED, FAILED, RUNNING, Job
from advisor.infrastructure import JobRegistry, RecordStore

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Runs the single-entity pipeline over the whole population in the background."""

    def __init__(
        self,
        recommendations: RecommendationService,
        record_store: RecordStore,
        registry: JobRegistry,
    ) -> None:
        self._recommendations = recommendations
        self._store = record_store
        self._registry = registry
        self._lock = asyncio.Lock()
        self._tasks: dict[str, asyncio.Task[None]] = {}

    async def start_batch(self, request: BatchRequest | None = None) -> str:
        """Register a job and return its id; processing continues in the background."""

        request = request or BatchRequest()
        if request.date_range is not None:
            resolve_date_range(request.date_range)

        async with self._lock:
            entity_ids = list(await asyncio.to_thread(self._store.list_entity_ids))
            job_id = self._registry.create(
                len(entity_ids),
                include_debug=request.include_debug,
                date_range=request.date_range,
            )
            task = asyncio.create_task(self._run(job_id, entity_ids, request), name=f"batch:{job_id}")
            self._tasks[job_id] = task
            task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

        logger.info("Started batch job %s for %d entities", job_id, len(entity_ids))
        return job_id

    def get_status(self, job_id: str) -> BatchStatus:
        return self._registry.get(job_id).to_status()

    async def wait(self, job_id: str) -> BatchStatus:
        task = self._tasks.get(job_id)
        if task is not None:
            await task
        return self.get_status(job_id)

    async def shutdown(self) -> None:
        pending = list(self._tasks.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # background execution
    # ------------------------------------------------------------------
    async def _run(self, job_id: str, entity_ids: list[str], request: BatchRequest) -> None:
        try:
            await self._process(job_id, entity_ids, request)
        except Exception as exc:
            logger.exception("Batch job %s failed", job_id)
            message = str(exc) or exc.__class__.__name__

            def _mark_failed(job: Job) -> None:
                job.status = FAILED
                job.error = message

            try:
                self._registry.update(job_id, _mark_failed)
            except JobStateError:
                logger.error("Batch job %s could not be marked failed", job_id)

    async def _process(self, job_id: str, entity_ids: list[str], request: BatchRequest) -> None:
        def _mark_running(job: Job) -> None:
            job.status = RUNNING

        self._registry.update(job_id, _mark_running)

        entity_request = RecommendationRequest(
            date_range=request.date_range,
            include_debug=request.include_debug,
        )

        for entity_id in entity_ids:
            try:
                response = await asyncio.to_thread(
                    self._recommendations.get_recommendations,
                    entity_id,
                    entity_request,
                    strict=True,
                )
            except Exception as exc:
                message = f"entity {entity_id}: {exc}"
                logger.warning("Batch job %s: %s", job_id, message)

                def _record_error(job: Job, message: str = message) -> None:
                    job.errors.append(message)

                self._registry.update(job_id, _record_error)
                continue

            await asyncio.to_thread(self._save, entity_id, response)

            def _record_success(job: Job, response: RecommendationResponse = response) -> None:
                job.processed_entities += 1
                if job.include_debug and job.sample is None and response.debug is not None:
                    job.sample = response.debug

            self._registry.update(job_id, _record_success)

        def _mark_completed(job: Job) -> None:
            job.status = COMPLETED

        final = self._registry.update(job_id, _mark_completed)
        logger.info(
            "Batch job %s completed: %d/%d entities processed, %d error(s)",
            job_id,
            final.processed_entities,
            final.total_entities,
            len(final.errors),
        )

    def _save(self, entity_id: str, response: RecommendationResponse) -> None:
        payload = {
            "recommendations": [item.model_dump() for item in response.recommendations],
            "fallback": response.fallback,
            "usage": response.usage.model_dump() if response.usage else None,
        }
        try:
            self._store.save_recommendations(entity_id, payload)
        except Exception as exc:
            logger.warning("Could not save recommendations for entity %s: %s", entity_id, exc)


__all__ = ["BatchOrchestrator"]

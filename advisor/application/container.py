"""Explicit wiring of the service graph, built once per process."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request

from advisor.application.enrichment import RecordEnrichmentService
from advisor.application.executor import TaskExecutor
from advisor.application.recommendations import RecommendationService
from advisor.core.settings import Settings
from advisor.core.tasks import build_task_catalogue
from advisor.infrastructure import (
    ChatCompletionsClient,
    GenerativeService,
    InMemoryRecordStore,
    JobRegistry,
    RecordStore,
    UnconfiguredGenerativeService,
)
from advisor.workers.batch import BatchOrchestrator

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Services:
    settings: Settings
    record_store: RecordStore
    generative: GenerativeService
    registry: JobRegistry
    recommendations: RecommendationService
    batch: BatchOrchestrator

    async def aclose(self) -> None:
        await self.batch.shutdown()
        close = getattr(self.generative, "close", None)
        if callable(close):
            close()


def _default_record_store(settings: Settings) -> RecordStore:
    if settings.records_fixture is not None:
        logger.info("Loading records fixture from %s", settings.records_fixture)
        return InMemoryRecordStore.from_fixture(settings.records_fixture)
    return InMemoryRecordStore()


def _default_generative(settings: Settings) -> GenerativeService:
    if not settings.generative_api_key:
        logger.warning("No generative API key configured; recommendations will use fallback advice")
        return UnconfiguredGenerativeService()
    return ChatCompletionsClient(
        settings.generative_api_key,
        base_url=settings.generative_base_url,
        model=settings.generative_model,
        temperature=settings.generative_temperature,
        max_tokens=settings.generative_max_tokens,
        timeout=settings.generative_timeout,
    )


def build_services(
    settings: Settings,
    *,
    record_store: RecordStore | None = None,
    generative: GenerativeService | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> Services:
    store = record_store if record_store is not None else _default_record_store(settings)
    client = generative if generative is not None else _default_generative(settings)
    registry = JobRegistry(clock=clock)

    recommendations = RecommendationService(
        RecordEnrichmentService(store, clock=clock),
        TaskExecutor(client),
        build_task_catalogue(settings.tasks_file),
    )
    batch = BatchOrchestrator(recommendations, store, registry)
    return Services(
        settings=settings,
        record_store=store,
        generative=client,
        registry=registry,
        recommendations=recommendations,
        batch=batch,
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the container attached to the app."""

    return request.app.state.services

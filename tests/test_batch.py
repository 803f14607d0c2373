from __future__ import annotations

import asyncio

import pytest

from conftest import FakeGenerativeService, fixed_clock

from advisor.application import RecommendationService, RecordEnrichmentService, TaskExecutor
from advisor.core.errors import NotFoundError, ValidationError
from advisor.core.schema import BatchRequest, DateRangeSpec
from advisor.core.tasks import build_task_catalogue
from advisor.infrastructure import InMemoryRecordStore, JobRegistry
from advisor.workers.batch import BatchOrchestrator


def _add_population(store: InMemoryRecordStore) -> None:
    store.add_entity(
        "carol",
        {"name": "Carol"},
        [{"date": "2025-03-12", "name": "Cinema", "category": "leisure", "amount": 15.0, "emotion": 6}],
    )
    store.add_entity(
        "dave",
        {"name": "Dave"},
        [{"date": "2025-03-13", "name": "Bakery", "category": "food", "amount": 6.5, "emotion": 2}],
    )


def _orchestrator(store, generative):
    registry = JobRegistry(clock=fixed_clock)
    recommendations = RecommendationService(
        RecordEnrichmentService(store, clock=fixed_clock),
        TaskExecutor(generative),
        build_task_catalogue(),
    )
    return BatchOrchestrator(recommendations, store, registry), registry


def test_batch_records_per_entity_errors_and_completes(store):
    _add_population(store)
    generative = FakeGenerativeService(fail_markers=("Carol",))
    orchestrator, _ = _orchestrator(store, generative)

    async def scenario():
        job_id = await orchestrator.start_batch(BatchRequest())
        return await orchestrator.wait(job_id)

    status = asyncio.run(scenario())

    assert status.status == "completed"
    assert status.total_entities == 4
    assert status.processed_entities == 3
    assert status.errors == ["entity carol: upstream refused Carol"]
    assert status.error is None
    assert status.duration_seconds == 0
    assert status.sample is None


def test_successful_entities_are_saved(store):
    _add_population(store)
    generative = FakeGenerativeService(fail_markers=("Carol",))
    orchestrator, _ = _orchestrator(store, generative)

    async def scenario():
        await orchestrator.wait(await orchestrator.start_batch())

    asyncio.run(scenario())

    alice = store.list_saved("alice")
    assert alice[0]["fallback"] is False
    assert alice[0]["recommendations"][0] == {"category": "Food", "advice": "Cook more at home"}
    assert alice[0]["usage"]["total_tokens"] == 120
    # bob has no transactions in the window and gets fallback advice
    assert store.list_saved("bob")[0]["fallback"] is True
    assert store.list_saved("carol") == []
    assert len(store.list_saved("dave")) == 1


def test_job_is_pending_right_after_start(store, generative):
    orchestrator, _ = _orchestrator(store, generative)

    async def scenario():
        job_id = await orchestrator.start_batch()
        first = orchestrator.get_status(job_id)
        final = await orchestrator.wait(job_id)
        return first, final

    first, final = asyncio.run(scenario())

    assert first.status == "pending"
    assert first.processed_entities == 0
    assert final.status == "completed"


def test_progress_is_monotonic_while_polling(store):
    _add_population(store)
    orchestrator, _ = _orchestrator(store, FakeGenerativeService(delay=0.02))

    async def scenario():
        job_id = await orchestrator.start_batch()
        snapshots = []
        while True:
            status = orchestrator.get_status(job_id)
            snapshots.append(status)
            if status.status in {"completed", "failed"}:
                return snapshots
            await asyncio.sleep(0.005)

    snapshots = asyncio.run(scenario())

    counts = [snapshot.processed_entities for snapshot in snapshots]
    assert counts == sorted(counts)
    assert all(count <= 4 for count in counts)
    assert snapshots[-1].status == "completed"
    assert snapshots[-1].processed_entities == 4


def test_debug_sample_only_when_requested(store, generative):
    orchestrator, _ = _orchestrator(store, generative)

    async def scenario(include_debug):
        job_id = await orchestrator.start_batch(BatchRequest(include_debug=include_debug))
        return await orchestrator.wait(job_id)

    with_debug = asyncio.run(scenario(True))
    without_debug = asyncio.run(scenario(False))

    assert with_debug.sample is not None
    assert with_debug.sample.entity_id == "alice"
    assert without_debug.sample is None


def test_batch_date_range_is_passed_to_every_entity(store, generative):
    orchestrator, _ = _orchestrator(store, generative)
    request = BatchRequest(date_range=DateRangeSpec(kind="months", value=3))

    async def scenario():
        return await orchestrator.wait(await orchestrator.start_batch(request))

    status = asyncio.run(scenario())

    assert status.date_range == DateRangeSpec(kind="months", value=3)
    assert status.processed_entities == 2
    # both entities have data in the wider window, so both reach the service
    assert len(generative.calls) == 2


def test_invalid_date_range_creates_no_job(store, generative):
    orchestrator, registry = _orchestrator(store, generative)
    request = BatchRequest(date_range=DateRangeSpec(kind="days", value=0))

    with pytest.raises(ValidationError):
        asyncio.run(orchestrator.start_batch(request))

    with pytest.raises(NotFoundError):
        registry.get("batch-00001")


def test_listing_failure_creates_no_job(store, generative, monkeypatch):
    orchestrator, registry = _orchestrator(store, generative)

    def broken():
        raise RuntimeError("store offline")

    monkeypatch.setattr(store, "list_entity_ids", broken)

    with pytest.raises(RuntimeError):
        asyncio.run(orchestrator.start_batch())

    with pytest.raises(NotFoundError):
        registry.get("batch-00001")


def test_empty_population_completes_immediately(generative):
    orchestrator, _ = _orchestrator(InMemoryRecordStore(), generative)

    async def scenario():
        return await orchestrator.wait(await orchestrator.start_batch())

    status = asyncio.run(scenario())

    assert status.status == "completed"
    assert status.total_entities == 0
    assert status.processed_entities == 0
    assert generative.calls == []


def test_unexpected_failure_marks_job_failed(store, generative, monkeypatch):
    orchestrator, _ = _orchestrator(store, generative)

    async def exploding(job_id, entity_ids, request):
        raise RuntimeError("worker crashed")

    monkeypatch.setattr(orchestrator, "_process", exploding)

    async def scenario():
        return await orchestrator.wait(await orchestrator.start_batch())

    status = asyncio.run(scenario())

    assert status.status == "failed"
    assert status.error == "worker crashed"
    assert status.duration_seconds == 0


def test_unknown_job_status_is_not_found(store, generative):
    orchestrator, _ = _orchestrator(store, generative)

    with pytest.raises(NotFoundError):
        orchestrator.get_status("batch-00042")


def test_concurrent_starts_get_distinct_jobs(store, generative):
    orchestrator, _ = _orchestrator(store, generative)

    async def scenario():
        job_ids = await asyncio.gather(*(orchestrator.start_batch() for _ in range(3)))
        await orchestrator.shutdown()
        return job_ids

    job_ids = asyncio.run(scenario())

    assert sorted(job_ids) == ["batch-00001", "batch-00002", "batch-00003"]
    assert all(orchestrator.get_status(job_id).status == "completed" for job_id in job_ids)

"""Single-entity recommendation pipeline."""
from __future__ import annotations

import logging
from typing import Mapping

from advisor.application.enrichment import RecordEnrichmentService
from advisor.application.executor import TaskExecutor, TaskOutcome
from advisor.core.errors import AdvisorError, NoDataError, UpstreamError, ValidationError
from advisor.core.parsing import fallback_recommendations, parse_recommendations
from advisor.core.schema import (
    DateRangeSpec,
    DebugSample,
    EnrichedContext,
    EnrichmentConfig,
    Recommendation,
    RecommendationRequest,
    RecommendationResponse,
    TaskResult,
    UsageStats,
)
from advisor.core.tasks import RECOMMENDATIONS_TASK, TaskSpec

logger = logging.getLogger(__name__)


class RecommendationService:
    """Runs enrichment, the requested tasks and recommendation parsing for one entity."""

    def __init__(
        self,
        enrichment: RecordEnrichmentService,
        executor: TaskExecutor,
        tasks: Mapping[str, TaskSpec],
    ) -> None:
        if RECOMMENDATIONS_TASK not in tasks:
            raise ValueError(f"task catalogue must define {RECOMMENDATIONS_TASK!r}")
        self._enrichment = enrichment
        self._executor = executor
        self._tasks = dict(tasks)

    @property
    def task_types(self) -> list[str]:
        return sorted(self._tasks)

    def get_task(self, task_type: str) -> TaskSpec:
        return self._tasks[task_type]

    def _resolve_tasks(self, task_types: list[str] | None) -> list[TaskSpec]:
        if not task_types:
            return []
        unknown = [name for name in task_types if name not in self._tasks]
        if unknown:
            raise ValidationError(f"unknown task type(s): {', '.join(unknown)}")
        # the recommendation step always runs last, so it is not repeated here
        ordered = dict.fromkeys(name for name in task_types if name != RECOMMENDATIONS_TASK)
        return [self._tasks[name] for name in ordered]

    def get_recommendations(
        self,
        entity_id: str,
        request: RecommendationRequest | None = None,
        *,
        strict: bool = False,
    ) -> RecommendationResponse:
        """Generate recommendations for ``entity_id``.

        With ``strict`` the upstream failures of the recommendation step are
        raised instead of being replaced by fallback advice (batch mode).
        Failures of additional tasks are reported per task and never abort
        the request.
        """

        request = request or RecommendationRequest()
        extra_tasks = self._resolve_tasks(request.task_types)
        date_range = request.date_range or DateRangeSpec()

        contexts: dict[tuple[bool, bool], EnrichedContext] = {}
        # built before any task runs so an unknown entity fails fast
        context = self._context_for(entity_id, self._tasks[RECOMMENDATIONS_TASK], date_range, contexts)

        usage: UsageStats | None = None
        task_results: list[TaskResult] = []
        for spec in extra_tasks:
            try:
                task_context = self._context_for(entity_id, spec, date_range, contexts)
                outcome = self._executor.execute(spec, task_context)
            except AdvisorError as exc:
                logger.warning("Task %s for entity %s failed: %s", spec.type, entity_id, exc)
                task_results.append(TaskResult(type=spec.type, error=str(exc)))
                continue
            usage = _accumulate(usage, outcome.usage)
            task_results.append(
                TaskResult(type=spec.type, content=outcome.content, usage=outcome.usage, model=outcome.model)
            )

        recommendations, outcome = self._recommend(context, strict=strict)
        if outcome is not None:
            usage = _accumulate(usage, outcome.usage)

        debug: DebugSample | None = None
        if request.include_debug:
            debug = DebugSample(
                entity_id=entity_id,
                profile=context.profile,
                transactions=list(context.transactions or []),
                period=context.period,
                prompt=outcome.user_text if outcome else None,
                raw_output=outcome.content if outcome else None,
                usage=usage,
            )

        return RecommendationResponse(
            entity_id=entity_id,
            recommendations=recommendations,
            fallback=outcome is None,
            task_results=task_results if extra_tasks else None,
            usage=usage,
            debug=debug,
        )

    def _context_for(
        self,
        entity_id: str,
        spec: TaskSpec,
        date_range: DateRangeSpec,
        contexts: dict[tuple[bool, bool], EnrichedContext],
    ) -> EnrichedContext:
        """Enrich once per distinct set of the task's data switches."""

        key = (spec.include_profile, spec.include_sensitive_field)
        if key not in contexts:
            config = EnrichmentConfig(
                include_profile=spec.include_profile,
                date_range=date_range,
                include_sensitive_field=spec.include_sensitive_field,
                require_profile=True,
            )
            contexts[key] = self._enrichment.enrich(entity_id, config)
        return contexts[key]

    def _recommend(
        self, context: EnrichedContext, *, strict: bool
    ) -> tuple[list[Recommendation], TaskOutcome | None]:
        spec = self._tasks[RECOMMENDATIONS_TASK]
        try:
            outcome = self._executor.execute(spec, context)
        except NoDataError:
            return fallback_recommendations(context.transactions), None
        except UpstreamError as exc:
            if strict:
                raise
            logger.warning(
                "Falling back to default recommendations for entity %s: %s", context.entity_id, exc
            )
            return fallback_recommendations(context.transactions), None
        return parse_recommendations(outcome.content), outcome


def _accumulate(total: UsageStats | None, usage: UsageStats | None) -> UsageStats | None:
    if usage is None:
        return total
    if total is None:
        return usage
    return total + usage


__all__ = ["RecommendationService"]

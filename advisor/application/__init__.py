"""Application services."""

from .enrichment import RecordEnrichmentService, render_context
from .executor import TaskExecutor, TaskOutcome
from .recommendations import RecommendationService

__all__ = [
    "RecommendationService",
    "RecordEnrichmentService",
    "TaskExecutor",
    "TaskOutcome",
    "render_context",
]

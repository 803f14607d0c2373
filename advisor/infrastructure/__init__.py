"""Infrastructure layer exports."""

from .generative import (
    ChatCompletionsClient,
    GenerationResult,
    GenerativeService,
    GenerativeServiceError,
    UnconfiguredGenerativeService,
)
from .jobs import JobRegistry
from .records import InMemoryRecordStore, RecordStore

__all__ = [
    "ChatCompletionsClient",
    "GenerationResult",
    "GenerativeService",
    "GenerativeServiceError",
    "InMemoryRecordStore",
    "JobRegistry",
    "RecordStore",
    "UnconfiguredGenerativeService",
]

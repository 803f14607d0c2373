from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class DateRangeSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: Literal["days", "weeks", "months", "custom"] | None = Field(
        default=None, validation_alias=AliasChoices("kind", "type")
    )
    value: int | None = None
    start_date: str | None = Field(default=None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: str | None = Field(default=None, validation_alias=AliasChoices("end_date", "endDate"))


class ResolvedRange(BaseModel):
    start: str
    end: str


class EnrichmentConfig(BaseModel):
    include_profile: bool = True
    date_range: DateRangeSpec | None = None
    include_sensitive_field: bool = True
    require_profile: bool = False


class EnrichedContext(BaseModel):
    entity_id: str
    profile: dict[str, Any] | None = None
    # None means no window was requested; [] means the window is empty.
    transactions: list[dict[str, Any]] | None = None
    period: ResolvedRange | None = None

    @property
    def has_empty_window(self) -> bool:
        return self.transactions is not None and not self.transactions


class Recommendation(BaseModel):
    category: str
    advice: str


class UsageStats(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "UsageStats") -> "UsageStats":
        return UsageStats(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class TaskResult(BaseModel):
    type: str
    content: str | None = None
    usage: UsageStats | None = None
    model: str | None = None
    error: str | None = None


class DebugSample(BaseModel):
    """Opt-in diagnostic snapshot of one pipeline run."""

    entity_id: str
    profile: dict[str, Any] | None = None
    transactions: list[dict[str, Any]] = Field(default_factory=list)
    period: ResolvedRange | None = None
    prompt: str | None = None
    raw_output: str | None = None
    usage: UsageStats | None = None


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_range: DateRangeSpec | None = Field(default=None, validation_alias=AliasChoices("date_range", "dateRange"))
    task_types: list[str] | None = Field(default=None, validation_alias=AliasChoices("task_types", "taskTypes"))
    include_debug: bool = Field(default=False, validation_alias=AliasChoices("include_debug", "includeDebug"))


class RecommendationResponse(BaseModel):
    entity_id: str
    recommendations: list[Recommendation]
    fallback: bool = False
    task_results: list[TaskResult] | None = None
    usage: UsageStats | None = None
    debug: DebugSample | None = None


class BatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_range: DateRangeSpec | None = Field(default=None, validation_alias=AliasChoices("date_range", "dateRange"))
    include_debug: bool = Field(default=False, validation_alias=AliasChoices("include_debug", "includeDebug"))


class BatchStatus(BaseModel):
    job_id: str
    status: str
    processed_entities: int
    total_entities: int
    duration_seconds: int | None = None
    errors: list[str] = Field(default_factory=list)
    error: str | None = None
    date_range: DateRangeSpec | None = None
    sample: DebugSample | None = None

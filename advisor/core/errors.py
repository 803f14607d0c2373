from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from advisor.core.schema import EnrichedContext


class AdvisorError(Exception):
    """Base class for failures raised by the recommendation pipeline.

    ``partial`` carries whatever enrichment data was collected before the
    failure so callers can surface it for diagnostics.
    """

    def __init__(self, message: str, *, partial: "EnrichedContext | None" = None) -> None:
        super().__init__(message)
        self.message = message
        self.partial = partial


class ValidationError(AdvisorError):
    """Raised when caller input is malformed."""


class NotFoundError(AdvisorError):
    """Raised for an unknown entity or batch job id."""


class UpstreamError(AdvisorError):
    """Raised when the generative service call fails."""


class EmptyResponseError(UpstreamError):
    """Raised when the generative service answered without any choice."""


class NoDataError(AdvisorError):
    """Raised when a task needs transactions and the window has none."""


class JobStateError(AdvisorError):
    """Raised on an illegal batch job transition."""


__all__ = [
    "AdvisorError",
    "EmptyResponseError",
    "JobStateError",
    "NoDataError",
    "NotFoundError",
    "UpstreamError",
    "ValidationError",
]

from __future__ import annotations

from fastapi import HTTPException

from advisor.core.errors import (
    AdvisorError,
    NoDataError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

_STATUS_CODES: tuple[tuple[type[AdvisorError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (NoDataError, 422),
    (UpstreamError, 502),
)


def status_code_for(exc: AdvisorError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


def to_http_exception(exc: AdvisorError, *, include_partial: bool = False) -> HTTPException:
    """Translate a pipeline error into an ``HTTPException`` by its type."""

    detail: dict[str, object] = {"error": exc.message, "type": exc.__class__.__name__}
    if include_partial and exc.partial is not None:
        detail["partial"] = exc.partial.model_dump()
    return HTTPException(status_code=status_code_for(exc), detail=detail)

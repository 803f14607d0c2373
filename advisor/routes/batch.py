from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException

from advisor.application.container import Services, get_services
from advisor.core.errors import AdvisorError
from advisor.core.schema import BatchRequest
from advisor.routes.errors import to_http_exception

router = APIRouter(prefix="/batch", tags=["batch"])


@router.post("/run", status_code=202)
async def run_batch(
    payload: BatchRequest | None = Body(default=None),
    services: Services = Depends(get_services),
) -> dict:
    """Start a population-wide batch and return its job id immediately."""

    try:
        job_id = await services.batch.start_batch(payload or BatchRequest())
    except AdvisorError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:
        raise HTTPException(status_code=503, detail=f"could not list entities: {exc}") from exc
    return {"status": "started", "job_id": job_id}


@router.get("/{job_id}/status")
async def get_batch_status(job_id: str, services: Services = Depends(get_services)) -> dict:
    try:
        status = services.batch.get_status(job_id)
    except AdvisorError as exc:
        raise to_http_exception(exc) from exc
    return status.model_dump(exclude_none=True)

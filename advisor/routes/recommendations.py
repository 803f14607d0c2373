from __future__ import annotations

import asyncio

from fastapi import APIRouter, Body, Depends, HTTPException

from advisor.application.container import Services, get_services
from advisor.core.errors import AdvisorError
from advisor.core.schema import RecommendationRequest
from advisor.routes.errors import to_http_exception

router = APIRouter(tags=["recommendations"])


@router.post("/entities/{entity_id}/recommendations")
async def create_recommendations(
    entity_id: str,
    payload: RecommendationRequest | None = Body(default=None),
    services: Services = Depends(get_services),
) -> dict:
    """Generate recommendations for one entity synchronously."""

    if not entity_id.strip():
        raise HTTPException(status_code=400, detail="entity id is required")
    request = payload or RecommendationRequest()
    try:
        response = await asyncio.to_thread(services.recommendations.get_recommendations, entity_id, request)
    except AdvisorError as exc:
        raise to_http_exception(exc, include_partial=request.include_debug) from exc
    return response.model_dump(exclude_none=True)


@router.get("/tasks")
async def list_tasks(services: Services = Depends(get_services)) -> dict:
    items = []
    for task_type in services.recommendations.task_types:
        spec = services.recommendations.get_task(task_type)
        items.append(
            {
                "type": spec.type,
                "instruction": spec.instruction,
                "requires_transactions": spec.requires_transactions,
                "include_profile": spec.include_profile,
                "include_sensitive_field": spec.include_sensitive_field,
                "expected_response_shape": spec.expected_response_shape,
            }
        )
    return {"items": items}

"""Eligibility endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from fleetmatch.api.dependencies import get_catalog, get_pipeline
from fleetmatch.exceptions import FleetMatchError
from fleetmatch.models.schemas import EligibilityOut, EligibilityRequest, EligibilityResponse
from fleetmatch.pipeline.recommendation_pipeline import RecommendationPipeline
from fleetmatch.storage.sqlite_catalog_store import SQLiteCatalogStore

router = APIRouter()


@router.post("/eligibility", response_model=EligibilityResponse)
async def eligibility(
    request: EligibilityRequest,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
    catalog: SQLiteCatalogStore = Depends(get_catalog),
) -> EligibilityResponse:
    item = await catalog.get_item(request.item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"item {request.item_id} not found")
    try:
        result = await pipeline.evaluate_eligibility(item, request.jurisdiction, request.categories)
    except FleetMatchError as e:
        raise HTTPException(status_code=500, detail=str(e))

    out = EligibilityOut.from_result(result)
    return EligibilityResponse(
        **out.model_dump(),
        explanation=pipeline.explain_eligibility(item, result),
    )

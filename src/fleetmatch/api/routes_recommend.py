"""Recommendation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from fleetmatch.api.dependencies import get_pipeline
from fleetmatch.exceptions import FleetMatchError
from fleetmatch.models.schemas import (
    NarrativeOut,
    RecommendedItemOut,
    RecommendRequest,
    RecommendResponse,
)
from fleetmatch.pipeline.recommendation_pipeline import RecommendationPipeline

router = APIRouter()


@router.post("/recommend", response_model=RecommendResponse)
async def recommend(
    request: RecommendRequest,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
) -> RecommendResponse:
    try:
        result = await pipeline.recommend(
            request.query,
            request.filters.to_context(),
            jurisdiction=request.jurisdiction,
            limit=request.limit,
            include_narrative=request.include_narrative,
        )
    except FleetMatchError as e:
        raise HTTPException(status_code=500, detail=str(e))

    narrative = None
    if result.narrative is not None:
        narrative = NarrativeOut(text=result.narrative.text, degraded=result.narrative.degraded)
    return RecommendResponse(
        items=[RecommendedItemOut.from_domain(i) for i in result.items],
        use_case=result.use_case,
        semantic=result.semantic,
        excluded_ineligible=result.excluded_ineligible,
        narrative=narrative,
        trace_id=result.trace_id,
        latency_ms=round(result.latency_ms, 2),
    )

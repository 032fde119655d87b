"""Candidate search endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from fleetmatch.api.dependencies import get_pipeline
from fleetmatch.exceptions import FleetMatchError
from fleetmatch.models.schemas import CandidateOut, SearchRequest, SearchResponse
from fleetmatch.pipeline.recommendation_pipeline import RecommendationPipeline

router = APIRouter()


@router.post("/search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
) -> SearchResponse:
    try:
        result = await pipeline.search(request.query, request.filters.to_context(), request.k)
    except FleetMatchError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SearchResponse(
        candidates=[
            CandidateOut(item_id=c.item_id, similarity=round(c.similarity, 6))
            for c in result.candidates
        ],
        semantic=result.semantic,
    )

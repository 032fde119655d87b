"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fleetmatch.api.dependencies import get_catalog, get_gateway, get_index
from fleetmatch.generation.gateway import GenerativeGateway
from fleetmatch.models.schemas import HealthResponse, ProviderStatus
from fleetmatch.retrieval.embedding_index import EmbeddingIndex
from fleetmatch.storage.sqlite_catalog_store import SQLiteCatalogStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    catalog: SQLiteCatalogStore = Depends(get_catalog),
    index: EmbeddingIndex = Depends(get_index),
    gateway: GenerativeGateway = Depends(get_gateway),
) -> HealthResponse:
    providers = [ProviderStatus(**row) for row in gateway.status()]
    degraded = not index.is_ready() or not providers or all(p.circuit_open for p in providers)
    return HealthResponse(
        status="degraded" if degraded else "ok",
        item_count=await catalog.count_items(),
        index_ready=index.is_ready(),
        index_size=index.size,
        providers=providers,
    )

"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from fleetmatch.generation.gateway import GenerativeGateway
from fleetmatch.pipeline.recommendation_pipeline import RecommendationPipeline
from fleetmatch.retrieval.embedding_index import EmbeddingIndex
from fleetmatch.storage.sqlite_catalog_store import SQLiteCatalogStore


def get_pipeline(request: Request) -> RecommendationPipeline:
    return request.app.state.pipeline


def get_catalog(request: Request) -> SQLiteCatalogStore:
    return request.app.state.catalog


def get_index(request: Request) -> EmbeddingIndex:
    return request.app.state.index


def get_gateway(request: Request) -> GenerativeGateway:
    return request.app.state.gateway

"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from fleetmatch.api.middleware import RequestTimingMiddleware
from fleetmatch.api.routes_eligibility import router as eligibility_router
from fleetmatch.api.routes_health import router as health_router
from fleetmatch.api.routes_recommend import router as recommend_router
from fleetmatch.api.routes_search import router as search_router
from fleetmatch.config.settings import Settings
from fleetmatch.eligibility.resolver import EligibilityResolver
from fleetmatch.embeddings.hashing_embedder import HashingEmbedder
from fleetmatch.embeddings.openai_embedder import OpenAIEmbedder
from fleetmatch.generation.gateway import GenerativeGateway
from fleetmatch.generation.narrative import NarrativeGenerator
from fleetmatch.generation.providers import build_providers
from fleetmatch.observability.logger import get_logger, setup_logging
from fleetmatch.pipeline.recommendation_pipeline import RecommendationPipeline
from fleetmatch.ranking.ranker import Ranker
from fleetmatch.retrieval.embedding_index import EmbeddingIndex
from fleetmatch.rules.provider import RuleSetProvider
from fleetmatch.storage.sqlite_catalog_store import SQLiteCatalogStore
from fleetmatch.storage.sqlite_rules_repository import SQLiteRulesRepository

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = getattr(app.state, "settings", None) or Settings()
    setup_logging(settings.log_level)

    for path in [settings.catalog_db_path, settings.rules_db_path]:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    # Storage
    catalog = SQLiteCatalogStore(settings.catalog_db_path)
    await catalog.initialize()
    rules_repository = SQLiteRulesRepository(
        settings.rules_db_path, ttl_days=settings.rules_ttl_days
    )
    await rules_repository.initialize()

    # Embedding index (built in the background)
    if settings.openai_api_key:
        embedder = OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            batch_size=settings.embedding_batch_size,
            dimensions=settings.embedding_dimensions,
        )
    else:
        logger.warning("openai_key_missing_using_hashing_embedder")
        embedder = HashingEmbedder()
    index = EmbeddingIndex(catalog, embedder, batch_size=settings.embedding_batch_size)
    index.start()

    # Generative gateway
    gateway = GenerativeGateway.from_settings(settings, build_providers(settings))

    # Decision components
    rules = RuleSetProvider(rules_repository)
    resolver = EligibilityResolver.from_settings(settings, rules, gateway)
    narrative = NarrativeGenerator(
        gateway,
        temperature=settings.gateway_temperature,
        max_tokens=settings.gateway_max_tokens,
    )
    pipeline = RecommendationPipeline(
        catalog=catalog,
        retriever=index,
        ranker=Ranker(),
        resolver=resolver,
        narrative=narrative,
        default_jurisdiction=settings.default_jurisdiction,
        top_k=settings.search_top_k,
        overfetch=settings.search_overfetch,
    )

    # Attach to app state
    app.state.pipeline = pipeline
    app.state.catalog = catalog
    app.state.index = index
    app.state.gateway = gateway
    app.state.settings = settings

    logger.info(
        "startup_complete",
        items=await catalog.count_items(),
        providers=gateway.provider_names,
    )

    yield

    await index.stop()
    logger.info("shutdown_complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="FleetMatch",
        version="1.0.0",
        description="Vehicle matching and ride-hailing eligibility decisions",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_middleware(RequestTimingMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(search_router, tags=["search"])
    app.include_router(recommend_router, tags=["recommend"])
    app.include_router(eligibility_router, tags=["eligibility"])
    return app

"""Tests for the recommendation pipeline."""

from __future__ import annotations

import json

import pytest
from conftest import (
    NOW,
    CountingEmbedder,
    FakeGateway,
    InMemoryCatalog,
    InMemoryRulesRepository,
    make_rule_set,
)

from fleetmatch.eligibility.resolver import EligibilityResolver
from fleetmatch.generation.narrative import NarrativeGenerator
from fleetmatch.models.domain import EligibilityRule, RankingContext
from fleetmatch.pipeline.recommendation_pipeline import RecommendationPipeline
from fleetmatch.ranking.ranker import Ranker
from fleetmatch.retrieval.embedding_index import EmbeddingIndex
from fleetmatch.rules.provider import RuleSetProvider

RULES = {
    "uberX": [
        EligibilityRule(brand="Jeep", model="Compass", min_year=2017),
        EligibilityRule(brand="Hyundai", model="HB20", min_year=2016),
        EligibilityRule(brand="Honda", model="Civic", min_year=2018),
    ],
}


@pytest.fixture
def catalog(sample_items):
    return InMemoryCatalog(sample_items)


@pytest.fixture
def gateway():
    return FakeGateway(text=json.dumps({"summary": "Two solid options.", "picks": []}))


@pytest.fixture
def build_pipeline(catalog, gateway, clock):
    def build():
        index = EmbeddingIndex(catalog, CountingEmbedder(dimensions=256))
        repository = InMemoryRulesRepository({"sao-paulo": make_rule_set(RULES)})
        resolver = EligibilityResolver(RuleSetProvider(repository, clock=clock), gateway, clock=clock)
        pipeline = RecommendationPipeline(
            catalog=catalog,
            retriever=index,
            ranker=Ranker(current_year=NOW.year),
            resolver=resolver,
            narrative=NarrativeGenerator(gateway),
        )
        return pipeline, index

    return build


async def test_search_falls_back_when_index_not_ready(build_pipeline):
    pipeline, _ = build_pipeline()
    result = await pipeline.search("jeep suv", RankingContext(use_case="family"))

    assert result.semantic is False
    assert result.item_ids == ["family-suv", "city-hatch", "old-sedan", "pickup"]
    assert all(c.similarity == 0.0 for c in result.candidates)


async def test_semantic_search_applies_filters(build_pipeline):
    pipeline, index = build_pipeline()
    await index.initialize()

    result = await pipeline.search(
        "Jeep Compass suv", RankingContext(use_case="family", budget=100_000)
    )

    assert result.semantic is True
    assert "family-suv" not in result.item_ids
    assert set(result.item_ids) <= {"city-hatch", "old-sedan", "pickup"}


async def test_semantic_search_top_hit(build_pipeline):
    pipeline, index = build_pipeline()
    await index.initialize()

    result = await pipeline.search("Jeep Compass suv", RankingContext(use_case="family"), k=2)

    assert result.semantic is True
    assert result.item_ids[0] == "family-suv"
    assert len(result.candidates) == 2


async def test_recommend_ranks_without_eligibility(build_pipeline, gateway):
    pipeline, _ = build_pipeline()
    rec = await pipeline.recommend("", RankingContext(use_case="family"), limit=2)

    assert len(rec.items) == 2
    assert rec.items[0].ranked.item.item_id == "family-suv"
    assert all(i.eligibility is None for i in rec.items)
    assert rec.narrative is None
    assert gateway.calls == 0


async def test_recommend_ride_use_case_filters_ineligible(build_pipeline, gateway):
    pipeline, _ = build_pipeline()
    rec = await pipeline.recommend("", RankingContext(use_case="uber x"), limit=5)

    ids = [i.ranked.item.item_id for i in rec.items]
    # old-sedan predates its rule minimum year, pickup has two doors
    assert ids == ["family-suv", "city-hatch"]
    assert rec.excluded_ineligible == 2
    assert all(i.eligibility.is_approved("uberX") for i in rec.items)
    assert gateway.calls == 0


async def test_recommend_with_narrative(build_pipeline, gateway):
    pipeline, _ = build_pipeline()
    rec = await pipeline.recommend(
        "", RankingContext(use_case="family"), limit=3, include_narrative=True
    )

    assert rec.narrative is not None
    assert rec.narrative.text == "Two solid options."
    assert gateway.calls == 1


async def test_recommend_annotates_when_jurisdiction_given(build_pipeline):
    pipeline, _ = build_pipeline()
    rec = await pipeline.recommend(
        "", RankingContext(use_case="family"), jurisdiction="sao-paulo", limit=2
    )

    assert all(i.eligibility is not None for i in rec.items)
    assert rec.excluded_ineligible == 0


async def test_evaluate_eligibility_uses_default_jurisdiction(build_pipeline, sample_items):
    pipeline, _ = build_pipeline()
    result = await pipeline.evaluate_eligibility(sample_items[0], categories=["uberX"])

    assert result.jurisdiction == "sao-paulo"
    assert result.is_approved("uberX")

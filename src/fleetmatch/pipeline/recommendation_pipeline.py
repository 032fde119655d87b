"""Recommendation pipeline: retrieve, rank, check eligibility, summarize."""

from __future__ import annotations

from fleetmatch.eligibility.resolver import EligibilityResolver
from fleetmatch.generation.narrative import NarrativeGenerator
from fleetmatch.models.domain import (
    Candidate,
    CandidateList,
    CatalogItem,
    EligibilityResult,
    RankedItem,
    RankingContext,
    Recommendation,
    RecommendedItem,
)
from fleetmatch.observability.logger import get_logger
from fleetmatch.observability.tracing import TraceContext
from fleetmatch.protocols.catalog import CatalogStore
from fleetmatch.protocols.retriever import CandidateRetriever
from fleetmatch.ranking.filters import matches_context
from fleetmatch.ranking.ranker import Ranker
from fleetmatch.ranking.use_cases import RIDE_CATEGORY, normalize_use_case

logger = get_logger("recommendation_pipeline")


class RecommendationPipeline:
    def __init__(
        self,
        catalog: CatalogStore,
        retriever: CandidateRetriever,
        ranker: Ranker,
        resolver: EligibilityResolver,
        narrative: NarrativeGenerator | None = None,
        default_jurisdiction: str = "sao-paulo",
        top_k: int = 20,
        overfetch: int = 3,
    ) -> None:
        self._catalog = catalog
        self._retriever = retriever
        self._ranker = ranker
        self._resolver = resolver
        self._narrative = narrative
        self._default_jurisdiction = default_jurisdiction
        self._top_k = top_k
        self._overfetch = max(1, overfetch)

    @property
    def default_jurisdiction(self) -> str:
        return self._default_jurisdiction

    async def search(
        self, query_text: str, context: RankingContext, k: int | None = None
    ) -> CandidateList:
        candidates, _ = await self._retrieve(query_text, context, k or self._top_k)
        return candidates

    def rank(self, items: list[CatalogItem], context: RankingContext) -> list[RankedItem]:
        return self._ranker.rank(items, context)

    async def evaluate_eligibility(
        self,
        item: CatalogItem,
        jurisdiction: str | None = None,
        categories: list[str] | None = None,
    ) -> EligibilityResult:
        return await self._resolver.evaluate(
            item, jurisdiction or self._default_jurisdiction, categories
        )

    def explain_eligibility(self, item: CatalogItem, result: EligibilityResult) -> str:
        return self._resolver.explain(item, result)

    async def recommend(
        self,
        query_text: str,
        context: RankingContext,
        jurisdiction: str | None = None,
        limit: int = 5,
        include_narrative: bool = False,
    ) -> Recommendation:
        trace = TraceContext()
        use_case = normalize_use_case(context.use_case)
        category = RIDE_CATEGORY.get(use_case)

        with trace.span("search", use_case=use_case.value):
            candidates, items = await self._retrieve(query_text, context, self._top_k)

        with trace.span("ranking", items=len(items)):
            ranked = self._ranker.rank(items, context)

        excluded = 0
        if category is not None:
            # ride use-cases only keep items approved for their tier
            juris = jurisdiction or self._default_jurisdiction
            with trace.span("eligibility", jurisdiction=juris, items=len(ranked)):
                results = await self._resolver.evaluate_many(
                    [r.item for r in ranked], juris, [category]
                )
            selected = [
                RecommendedItem(ranked=r, eligibility=e)
                for r, e in zip(ranked, results)
                if e.is_approved(category)
            ]
            excluded = len(ranked) - len(selected)
            selected = selected[:limit]
        else:
            selected = [RecommendedItem(ranked=r) for r in ranked[:limit]]
            if jurisdiction:
                with trace.span("eligibility", jurisdiction=jurisdiction, items=len(selected)):
                    results = await self._resolver.evaluate_many(
                        [s.ranked.item for s in selected], jurisdiction
                    )
                for s, e in zip(selected, results):
                    s.eligibility = e

        narrative = None
        if include_narrative and self._narrative is not None and selected:
            with trace.span("narrative"):
                narrative = await self._narrative.summarize([s.ranked for s in selected], context)

        logger.info(
            "recommendation_complete",
            trace_id=trace.trace_id,
            use_case=use_case.value,
            semantic=candidates.semantic,
            candidates=len(candidates.candidates),
            returned=len(selected),
            excluded_ineligible=excluded,
            latency_ms=round(trace.elapsed_ms, 2),
        )
        return Recommendation(
            items=selected,
            use_case=use_case.value,
            semantic=candidates.semantic,
            trace_id=trace.trace_id,
            latency_ms=trace.elapsed_ms,
            narrative=narrative,
            excluded_ineligible=excluded,
        )

    async def _retrieve(
        self, query_text: str, context: RankingContext, k: int
    ) -> tuple[CandidateList, list[CatalogItem]]:
        if self._retriever.is_ready() and (query_text or "").strip():
            hits = await self._retriever.search(query_text, k * self._overfetch)
            if hits:
                scores = dict(hits)
                hydrated = await self._catalog.get_items([item_id for item_id, _ in hits])
                items = [i for i in hydrated if matches_context(i, context)][:k]
                if items:
                    candidates = [Candidate(i.item_id, scores[i.item_id]) for i in items]
                    return CandidateList(candidates=candidates, semantic=True), items

        logger.info(
            "search_fallback_catalog_query",
            index_ready=self._retriever.is_ready(),
            has_query=bool((query_text or "").strip()),
        )
        items = await self._catalog.query(context, limit=k)
        candidates = [Candidate(i.item_id, 0.0) for i in items]
        return CandidateList(candidates=candidates, semantic=False), items

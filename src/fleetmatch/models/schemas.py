"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from pydantic import BaseModel, Field

from fleetmatch.models.domain import (
    EligibilityResult,
    RankingContext,
    RecommendedItem,
)


class FiltersIn(BaseModel):
    use_case: str = "daily"
    budget: float | None = None
    min_year: int | None = None
    max_distance: int | None = None
    body_types: list[str] = Field(default_factory=list)
    transmission: str | None = None
    priorities: list[str] = Field(default_factory=list)

    def to_context(self) -> RankingContext:
        return RankingContext(
            use_case=self.use_case,
            budget=self.budget,
            min_year=self.min_year,
            max_distance=self.max_distance,
            body_types=tuple(self.body_types),
            transmission=self.transmission,
            priorities=tuple(self.priorities),
        )


class SearchRequest(BaseModel):
    query: str = ""
    filters: FiltersIn = Field(default_factory=FiltersIn)
    k: int = Field(default=20, ge=1, le=200)


class CandidateOut(BaseModel):
    item_id: str
    similarity: float


class SearchResponse(BaseModel):
    candidates: list[CandidateOut]
    semantic: bool


class RecommendRequest(BaseModel):
    query: str = ""
    filters: FiltersIn = Field(default_factory=FiltersIn)
    jurisdiction: str | None = None
    limit: int = Field(default=5, ge=1, le=50)
    include_narrative: bool = False


class CategoryDecisionOut(BaseModel):
    approved: bool
    confidence: float
    reasoning: str
    provenance: str
    effective_min_year: int | None = None


class EligibilityOut(BaseModel):
    item_id: str
    jurisdiction: str
    approved_categories: list[str]
    decisions: dict[str, CategoryDecisionOut]
    rule_source: str | None = None

    @classmethod
    def from_result(cls, result: EligibilityResult) -> EligibilityOut:
        return cls(
            item_id=result.item_id,
            jurisdiction=result.jurisdiction,
            approved_categories=result.approved_categories,
            decisions={
                c: CategoryDecisionOut(
                    approved=d.approved,
                    confidence=d.confidence,
                    reasoning=d.reasoning,
                    provenance=d.provenance.value,
                    effective_min_year=d.effective_min_year,
                )
                for c, d in result.decisions.items()
            },
            rule_source=result.rule_source,
        )


class BonusOut(BaseModel):
    label: str
    points: float


class RecommendedItemOut(BaseModel):
    item_id: str
    name: str
    price: float
    distance_km: int
    score: float
    base_score: float
    bonuses: list[BonusOut]
    penalties: list[str]
    reasoning: str
    highlights: list[str]
    concerns: list[str]
    eligibility: EligibilityOut | None = None

    @classmethod
    def from_domain(cls, rec: RecommendedItem) -> RecommendedItemOut:
        r = rec.ranked
        return cls(
            item_id=r.item.item_id,
            name=r.item.display_name,
            price=r.item.price,
            distance_km=r.item.distance_km,
            score=r.score,
            base_score=r.breakdown.base_score,
            bonuses=[BonusOut(label=b.label, points=b.points) for b in r.breakdown.bonuses],
            penalties=r.breakdown.penalties,
            reasoning=r.reasoning,
            highlights=r.highlights,
            concerns=r.concerns,
            eligibility=EligibilityOut.from_result(rec.eligibility) if rec.eligibility else None,
        )


class NarrativeOut(BaseModel):
    text: str
    degraded: bool


class RecommendResponse(BaseModel):
    items: list[RecommendedItemOut]
    use_case: str
    semantic: bool
    excluded_ineligible: int
    narrative: NarrativeOut | None = None
    trace_id: str
    latency_ms: float


class EligibilityRequest(BaseModel):
    item_id: str
    jurisdiction: str | None = None
    categories: list[str] | None = None


class EligibilityResponse(EligibilityOut):
    explanation: str


class ProviderStatus(BaseModel):
    name: str
    model: str
    priority: int
    circuit_open: bool
    consecutive_failures: int


class HealthResponse(BaseModel):
    status: str
    item_count: int
    index_ready: bool
    index_size: int
    providers: list[ProviderStatus]

"""Core domain objects used throughout the system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum


class RideCategory(str, Enum):
    """Ride tiers known ahead of time. Rule data may carry other string keys."""

    X = "uberX"
    COMFORT = "uberComfort"
    BLACK = "uberBlack"

    def __str__(self) -> str:
        return self.value


DEFAULT_CATEGORIES: tuple[str, ...] = tuple(c.value for c in RideCategory)


class DecisionSource(str, Enum):
    INVALID_INPUT = "invalid_input"
    HARD_GATE = "hard_gate"
    AGE_GATE = "age_gate"
    ALLOW_LIST = "allow_list"
    GENERATIVE = "generative"
    GENERATIVE_MALFORMED = "generative_malformed"
    GENERATIVE_DEGRADED = "generative_degraded"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SubScores:
    comfort: int | None = None
    economy: int | None = None
    space: int | None = None
    safety: int | None = None
    value: int | None = None

    def as_dict(self) -> dict[str, int | None]:
        return {
            "comfort": self.comfort,
            "economy": self.economy,
            "space": self.space,
            "safety": self.safety,
            "value": self.value,
        }


@dataclass(frozen=True)
class CatalogItem:
    item_id: str
    brand: str
    model: str
    year: int
    price: float = 0.0
    distance_km: int = 0
    body_type: str = ""
    transmission: str = ""
    fuel: str = ""
    doors: int = 4
    air_conditioning: bool = True
    version: str = ""
    color: str = ""
    description: str = ""
    available: bool = True
    scores: SubScores = field(default_factory=SubScores)

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model} {self.year}".strip()


@dataclass
class EmbeddingRecord:
    item_id: str
    vector: list[float]
    source_text: str


@dataclass(frozen=True)
class EligibilityRule:
    brand: str
    model: str
    min_year: int
    raw: str = ""


@dataclass
class RuleSet:
    jurisdiction: str
    fetched_at: datetime
    ttl: timedelta
    source_provenance: str
    rules_by_category: dict[str, list[EligibilityRule]] = field(default_factory=dict)

    def is_fresh(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now - self.fetched_at <= self.ttl

    def rules_for(self, category: str) -> list[EligibilityRule]:
        return self.rules_by_category.get(str(category), [])


@dataclass(frozen=True)
class Jurisdiction:
    slug: str
    display_name: str
    max_age_years: int
    policy_summary: str = ""
    category_age_limits: dict[str, int] = field(default_factory=dict)
    black_exclusions: tuple[str, ...] = ()


@dataclass(frozen=True)
class RankingContext:
    use_case: str
    budget: float | None = None
    min_year: int | None = None
    max_distance: int | None = None
    body_types: tuple[str, ...] = ()
    transmission: str | None = None
    priorities: tuple[str, ...] = ()


@dataclass(frozen=True)
class Adjustment:
    label: str
    points: float


@dataclass
class ScoreBreakdown:
    final_score: float
    base_score: float
    weighted_sub_scores: dict[str, float]
    bonuses: list[Adjustment] = field(default_factory=list)
    penalties: list[str] = field(default_factory=list)


@dataclass
class RankedItem:
    item: CatalogItem
    breakdown: ScoreBreakdown
    reasoning: str
    highlights: list[str]
    concerns: list[str]

    @property
    def score(self) -> float:
        return self.breakdown.final_score


@dataclass
class Candidate:
    item_id: str
    similarity: float


@dataclass
class CandidateList:
    candidates: list[Candidate]
    semantic: bool

    @property
    def item_ids(self) -> list[str]:
        return [c.item_id for c in self.candidates]


@dataclass
class ChatMessage:
    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class CompletionOptions:
    temperature: float = 0.3
    max_tokens: int = 500
    max_retries: int | None = None
    timeout_seconds: float | None = None


@dataclass
class CompletionResult:
    text: str
    provider: str
    model: str
    degraded: bool = False
    attempts: int = 0
    latency_ms: float = 0.0


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    priority: int
    enabled: bool = True
    model: str = ""


@dataclass
class CircuitState:
    consecutive_failures: int = 0
    last_failure_at: float | None = None
    probe_in_flight: bool = False


@dataclass
class CategoryDecision:
    approved: bool
    confidence: float
    reasoning: str
    provenance: DecisionSource
    effective_min_year: int | None = None
    rule: EligibilityRule | None = None


@dataclass
class EligibilityResult:
    item_id: str
    jurisdiction: str
    decisions: dict[str, CategoryDecision]
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rule_source: str | None = None

    @property
    def approved_categories(self) -> list[str]:
        return [c for c, d in self.decisions.items() if d.approved]

    def is_approved(self, category: str) -> bool:
        decision = self.decisions.get(str(category))
        return decision is not None and decision.approved


@dataclass
class Narrative:
    text: str
    degraded: bool
    provider: str


@dataclass
class RecommendedItem:
    ranked: RankedItem
    eligibility: EligibilityResult | None = None


@dataclass
class Recommendation:
    items: list[RecommendedItem]
    use_case: str
    semantic: bool
    trace_id: str
    latency_ms: float
    narrative: Narrative | None = None
    excluded_ineligible: int = 0

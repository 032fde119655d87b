"""Deterministic multi-criteria ranking.

Each sub-score (1-10) is rescaled onto 50-100 and combined with the
use-case weight vector into a base score. Fixed bonuses are then added one at
a time, each clipped so the running total never passes 100. No part of this
module calls a generative provider: identical input gives identical output.
"""

from __future__ import annotations

import math
from datetime import date

from fleetmatch.config.constants import (
    MAX_CONCERNS,
    MAX_HIGHLIGHTS,
    MAX_SCORE,
    MIN_SCORE,
    RESCALED_FLOOR,
    RESCALED_SPAN,
    SUB_SCORE_DEFAULT,
    SUB_SCORE_MAX,
    SUB_SCORE_MIN,
)
from fleetmatch.models.domain import (
    Adjustment,
    CatalogItem,
    RankedItem,
    RankingContext,
    ScoreBreakdown,
)
from fleetmatch.observability.metrics import log_ranking_metrics
from fleetmatch.ranking.filters import is_automatic
from fleetmatch.ranking.use_cases import (
    COMFORT_SENSITIVE,
    DESCRIPTIONS,
    MANUAL_CONCERN,
    RIDE_USE_CASES,
    SUB_SCORE_BONUSES,
    WEIGHTS,
    UseCase,
    normalize_use_case,
)

RECENT_YEARS = 2
LOW_DISTANCE_KM = 30_000
MODERATE_DISTANCE_KM = 50_000
HIGH_DISTANCE_KM = 100_000
OLD_VEHICLE_YEARS = 5

# (sub-score, threshold, highlight) per use-case family
_HIGHLIGHT_RULES: dict[UseCase, tuple[tuple[str, int, str], ...]] = {
    UseCase.FAMILY: (("space", 7, "Roomy for a family"), ("safety", 7, "Good safety")),
    UseCase.TRAVEL: (
        ("comfort", 7, "Comfortable on long trips"),
        ("economy", 7, "Economical on the highway"),
    ),
}
_RIDE_HIGHLIGHTS = (
    ("economy", 7, "Economical"),
    ("comfort", 7, "Comfortable for passengers"),
)


def rescale(value: int | None) -> float:
    """Map a 1-10 sub-score onto 50-100; missing values use the default."""
    v = SUB_SCORE_DEFAULT if value is None else value
    v = min(max(v, SUB_SCORE_MIN), SUB_SCORE_MAX)
    return RESCALED_FLOOR + (v - SUB_SCORE_MIN) * RESCALED_SPAN / (SUB_SCORE_MAX - SUB_SCORE_MIN)


def _round_half_up(x: float) -> float:
    return float(math.floor(x + 0.5))


def _meets(value: int | None, threshold: int) -> bool:
    return value is not None and value >= threshold


class Ranker:
    """Orders catalog items for a use-case and explains every score."""

    def __init__(self, current_year: int | None = None) -> None:
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or date.today().year

    def rank(self, items: list[CatalogItem], context: RankingContext) -> list[RankedItem]:
        use_case = normalize_use_case(context.use_case)
        current_year = self.current_year

        ranked = [self.score_item(item, use_case, current_year) for item in items]
        # list.sort is stable, so equal keys keep input order
        ranked.sort(key=lambda r: (-r.score, -r.item.year, r.item.distance_km))

        log_ranking_metrics(
            use_case=use_case.value,
            items_in=len(items),
            top_scores=[r.score for r in ranked],
        )
        return ranked

    def score_item(
        self,
        item: CatalogItem,
        use_case: UseCase | str,
        current_year: int | None = None,
    ) -> RankedItem:
        use_case = normalize_use_case(use_case)
        current_year = current_year or self.current_year
        breakdown = self._breakdown(item, use_case, current_year)
        highlights, concerns = self._annotations(item, use_case, current_year)
        return RankedItem(
            item=item,
            breakdown=breakdown,
            reasoning=self._reasoning(item, use_case, breakdown.final_score),
            highlights=highlights,
            concerns=concerns,
        )

    def _breakdown(self, item: CatalogItem, use_case: UseCase, current_year: int) -> ScoreBreakdown:
        scores = item.scores.as_dict()
        weights = WEIGHTS[use_case]

        weighted: dict[str, float] = {}
        penalties: list[str] = []
        for name, weight in weights.items():
            if scores.get(name) is None:
                penalties.append(f"{name} score missing, default {SUB_SCORE_DEFAULT} used")
            weighted[name] = rescale(scores.get(name)) * weight

        base = _round_half_up(sum(weighted.values()))
        total = min(max(base, MIN_SCORE), MAX_SCORE)
        bonuses: list[Adjustment] = []

        def add(label: str, points: float) -> None:
            nonlocal total
            applied = min(points, MAX_SCORE - total)
            if applied > 0:
                bonuses.append(Adjustment(label=label, points=applied))
                total += applied

        if item.year >= current_year - RECENT_YEARS:
            add("recent model year", 5)
            if item.year >= current_year:
                add("current model year", 3)

        if item.distance_km < LOW_DISTANCE_KM:
            add("low distance", 5)
        elif item.distance_km < MODERATE_DISTANCE_KM:
            add("moderate distance", 3)

        if use_case in COMFORT_SENSITIVE and is_automatic(item.transmission):
            add("automatic transmission", 5)

        for name, threshold, points in SUB_SCORE_BONUSES.get(use_case, ()):
            if _meets(scores.get(name), threshold):
                add(f"{name} >= {threshold}", points)

        return ScoreBreakdown(
            final_score=min(max(total, MIN_SCORE), MAX_SCORE),
            base_score=base,
            weighted_sub_scores=weighted,
            bonuses=bonuses,
            penalties=penalties,
        )

    def _annotations(
        self, item: CatalogItem, use_case: UseCase, current_year: int
    ) -> tuple[list[str], list[str]]:
        scores = item.scores.as_dict()
        highlights: list[str] = []
        concerns: list[str] = []

        if item.year >= current_year - RECENT_YEARS:
            highlights.append(f"Recent vehicle ({item.year})")
        if item.distance_km < MODERATE_DISTANCE_KM:
            highlights.append(f"Low distance ({item.distance_km:,} km)")
        if is_automatic(item.transmission):
            highlights.append("Automatic transmission")

        rules = _RIDE_HIGHLIGHTS if use_case in RIDE_USE_CASES else _HIGHLIGHT_RULES.get(use_case, ())
        for name, threshold, text in rules:
            if _meets(scores.get(name), threshold):
                highlights.append(text)

        if item.distance_km > HIGH_DISTANCE_KM:
            concerns.append(f"High distance ({item.distance_km:,} km)")
        age = current_year - item.year
        if age > OLD_VEHICLE_YEARS:
            concerns.append(f"Vehicle is {age} years old")
        if use_case in MANUAL_CONCERN and item.transmission and not is_automatic(item.transmission):
            concerns.append("Manual transmission")

        return highlights[:MAX_HIGHLIGHTS], concerns[:MAX_CONCERNS]

    @staticmethod
    def _reasoning(item: CatalogItem, use_case: UseCase, score: float) -> str:
        name = item.display_name
        purpose = DESCRIPTIONS[use_case]
        if score >= 90:
            return f"{name} is an excellent fit for {purpose}. It meets every main criterion."
        if score >= 75:
            return f"{name} is a very good option for {purpose}, with good value for money."
        if score >= 60:
            return f"{name} is suitable for {purpose}, with some compromises."
        return f"{name} can serve {purpose}, but there are better options."

"""Use-case definitions: weight vectors, bonus rules, synonyms."""

from __future__ import annotations

import unicodedata
from enum import Enum

from fleetmatch.models.domain import RideCategory


class UseCase(str, Enum):
    FAMILY = "family"
    RIDE_X = "ride_x"
    RIDE_COMFORT = "ride_comfort"
    RIDE_BLACK = "ride_black"
    WORK = "work"
    TRAVEL = "travel"
    CARGO = "cargo"
    DAILY = "daily"
    DELIVERY = "delivery"

    def __str__(self) -> str:
        return self.value


SUB_SCORE_NAMES = ("comfort", "economy", "space", "safety", "value")

# Each vector sums to 1.0; sub-scores absent from a vector weigh zero.
WEIGHTS: dict[UseCase, dict[str, float]] = {
    UseCase.FAMILY: {"space": 0.35, "comfort": 0.30, "safety": 0.25, "value": 0.10},
    UseCase.RIDE_X: {"economy": 0.40, "value": 0.30, "comfort": 0.20, "safety": 0.10},
    UseCase.RIDE_COMFORT: {"comfort": 0.40, "space": 0.25, "economy": 0.20, "value": 0.15},
    UseCase.RIDE_BLACK: {"comfort": 0.50, "space": 0.25, "safety": 0.15, "value": 0.10},
    UseCase.WORK: {"economy": 0.40, "value": 0.35, "comfort": 0.15, "safety": 0.10},
    UseCase.TRAVEL: {"comfort": 0.35, "economy": 0.30, "space": 0.20, "safety": 0.15},
    UseCase.CARGO: {"space": 0.50, "value": 0.30, "economy": 0.20},
    UseCase.DAILY: {"economy": 0.40, "value": 0.35, "comfort": 0.25},
    UseCase.DELIVERY: {"economy": 0.50, "value": 0.30, "comfort": 0.20},
}

# (sub-score, minimum raw value, points)
SUB_SCORE_BONUSES: dict[UseCase, tuple[tuple[str, int, float], ...]] = {
    UseCase.FAMILY: (("space", 7, 3), ("safety", 7, 3), ("comfort", 6, 2)),
    UseCase.TRAVEL: (("comfort", 6, 3), ("economy", 6, 3), ("space", 7, 2)),
    UseCase.RIDE_X: (("economy", 7, 4), ("value", 7, 3)),
    UseCase.RIDE_COMFORT: (("comfort", 7, 4), ("space", 6, 3)),
    UseCase.RIDE_BLACK: (("comfort", 8, 5), ("safety", 7, 3)),
    UseCase.WORK: (("economy", 7, 4), ("value", 7, 3)),
    UseCase.DAILY: (("economy", 7, 4), ("value", 7, 3)),
    UseCase.CARGO: (("space", 8, 5), ("value", 6, 3)),
    UseCase.DELIVERY: (("economy", 8, 5), ("value", 7, 3)),
}

COMFORT_SENSITIVE = frozenset(
    {UseCase.FAMILY, UseCase.RIDE_X, UseCase.RIDE_COMFORT, UseCase.RIDE_BLACK}
)
MANUAL_CONCERN = frozenset({UseCase.FAMILY, UseCase.RIDE_COMFORT, UseCase.RIDE_BLACK})
RIDE_USE_CASES = frozenset({UseCase.RIDE_X, UseCase.RIDE_COMFORT, UseCase.RIDE_BLACK})

RIDE_CATEGORY: dict[UseCase, str] = {
    UseCase.RIDE_X: RideCategory.X.value,
    UseCase.RIDE_COMFORT: RideCategory.COMFORT.value,
    UseCase.RIDE_BLACK: RideCategory.BLACK.value,
}

DESCRIPTIONS: dict[UseCase, str] = {
    UseCase.FAMILY: "family use",
    UseCase.RIDE_X: "ride-hailing (X tier)",
    UseCase.RIDE_COMFORT: "ride-hailing (Comfort tier)",
    UseCase.RIDE_BLACK: "ride-hailing (Black tier)",
    UseCase.WORK: "work",
    UseCase.TRAVEL: "road trips",
    UseCase.CARGO: "carrying cargo",
    UseCase.DAILY: "daily commuting",
    UseCase.DELIVERY: "deliveries",
}

_RIDE_WORDS = ("uber", "99", "app", "aplicativo", "ride", "taxi")
_SYNONYMS: tuple[tuple[UseCase, tuple[str, ...]], ...] = (
    (UseCase.FAMILY, ("famil", "crianc", "cadeirinha", "kids", "child")),
    (UseCase.TRAVEL, ("viag", "estrada", "rodovia", "travel", "trip", "road")),
    (UseCase.CARGO, ("carg", "frete", "mudanca", "haul", "freight")),
    (UseCase.DELIVERY, ("entreg", "delivery", "courier")),
    (UseCase.DAILY, ("diario", "commute", "dia a dia", "daily", "city")),
    (UseCase.WORK, ("trabalh", "profissional", "work", "business")),
)


def _fold(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text.lower().strip())
    return normalized.encode("ascii", "ignore").decode("ascii")


def normalize_use_case(value: str | UseCase) -> UseCase:
    """Map a use-case name or free-text synonym to a UseCase (default: daily)."""
    if isinstance(value, UseCase):
        return value
    text = _fold(value or "")
    try:
        return UseCase(text)
    except ValueError:
        pass

    if any(w in text for w in _RIDE_WORDS):
        if "black" in text:
            return UseCase.RIDE_BLACK
        if "comfort" in text:
            return UseCase.RIDE_COMFORT
        return UseCase.RIDE_X
    for use_case, words in _SYNONYMS:
        if any(w in text for w in words):
            return use_case
    return UseCase.DAILY

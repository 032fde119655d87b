"""Hard filters derived from a RankingContext."""

from __future__ import annotations

from fleetmatch.models.domain import CatalogItem, RankingContext

_AUTOMATIC = ("automatic", "automatico", "automático", "cvt", "auto")


def is_automatic(transmission: str | None) -> bool:
    if not transmission:
        return False
    return transmission.strip().lower() in _AUTOMATIC


def same_transmission(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    if is_automatic(a) and is_automatic(b):
        return True
    return a.strip().lower() == b.strip().lower()


def matches_context(item: CatalogItem, context: RankingContext) -> bool:
    if not item.available:
        return False
    if context.budget is not None and item.price > context.budget:
        return False
    if context.min_year is not None and item.year < context.min_year:
        return False
    if context.max_distance is not None and item.distance_km > context.max_distance:
        return False
    if context.body_types:
        wanted = {b.strip().lower() for b in context.body_types}
        if item.body_type.strip().lower() not in wanted:
            return False
    if context.transmission and not same_transmission(item.transmission, context.transmission):
        return False
    return True


def filter_items(items: list[CatalogItem], context: RankingContext) -> list[CatalogItem]:
    return [item for item in items if matches_context(item, context)]

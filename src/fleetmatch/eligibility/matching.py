"""Allow-list rule matching and the feature gates that precede it."""

from __future__ import annotations

from fleetmatch.models.domain import CatalogItem, EligibilityRule


def match_rule(item: CatalogItem, rules: list[EligibilityRule]) -> EligibilityRule | None:
    """Find the allow-list rule covering ``item``.

    Brands must be equal (case-insensitive). The rule's model text only has
    to appear inside the item's model, so "Corolla" covers "Corolla Altis".
    Containment can over-match models of the same brand that share a
    substring. Treat a hit as "listed", not as an exact identification.
    """
    brand = item.brand.strip().lower()
    model = item.model.strip().lower()
    if not brand:
        return None

    for rule in rules:
        rule_model = rule.model.strip().lower()
        if rule.brand.strip().lower() == brand and rule_model and rule_model in model:
            return rule
    return None


def effective_min_year(floor: int, rule: EligibilityRule | None) -> int:
    """The stricter of the jurisdiction floor and the rule's own minimum year."""
    if rule is None:
        return floor
    return max(floor, rule.min_year)


def failed_hard_gates(item: CatalogItem, min_doors: int = 4) -> list[str]:
    """Names of jurisdiction-independent features the item lacks."""
    failed = []
    if not item.air_conditioning:
        failed.append("air conditioning")
    if item.doors < min_doors:
        failed.append(f"at least {min_doors} doors")
    return failed


def missing_attributes(item: CatalogItem) -> list[str]:
    missing = []
    if not (item.brand or "").strip():
        missing.append("brand")
    if not (item.model or "").strip():
        missing.append("model")
    if not item.year:
        missing.append("year")
    return missing

"""Build the text that represents a catalog item in embedding space."""

from __future__ import annotations

from fleetmatch.models.domain import CatalogItem


def build_item_description(item: CatalogItem) -> str:
    parts = [
        " ".join(p for p in (item.brand, item.model, item.version) if p),
        f"year {item.year}",
        f"{item.distance_km} km",
    ]
    for label, value in (
        ("body", item.body_type),
        ("fuel", item.fuel),
        ("transmission", item.transmission),
        ("color", item.color),
    ):
        if value:
            parts.append(f"{label} {value}")

    features = [f"{item.doors} doors"]
    if item.air_conditioning:
        features.append("air conditioning")
    parts.append("features: " + ", ".join(features))

    if item.description:
        parts.append(item.description.strip())
    if item.price:
        parts.append(f"price {item.price:.0f}")
    return ". ".join(parts)

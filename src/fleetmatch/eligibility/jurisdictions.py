"""Known jurisdictions and their qualitative ride-hailing policies."""

from __future__ import annotations

import unicodedata

from fleetmatch.models.domain import Jurisdiction, RideCategory

# Models that never qualify for the premium tier, whatever their year.
PREMIUM_EXCLUSIONS: tuple[str, ...] = (
    "HB20",
    "HB20S",
    "Onix",
    "Onix Plus",
    "Prisma",
    "Cronos",
    "Grand Siena",
    "Siena",
    "Voyage",
    "Virtus",
    "Ka",
    "Ka Sedan",
    "Yaris",
    "Etios",
    "Versa",
    "V-Drive",
    "City",
    "Logan",
    "Sandero",
)

CATEGORY_AGE_LIMITS: dict[str, int] = {
    RideCategory.X.value: 10,
    RideCategory.COMFORT.value: 6,
    RideCategory.BLACK.value: 6,
}

_CAPITAL_POLICY = """\
- Every category requires four doors and working air conditioning.
- uberX: entry tier. Compact hatchbacks and compact sedans are accepted. Two-door cars never are.
- uberComfort: mid tier. Needs decent rear legroom. Small hatchbacks are not accepted; modern compact sedans and SUVs are.
- uberBlack: premium tier. Only mid-size or larger sedans and SUVs in sober colors (black, silver, grey, white, navy)."""


def _capital(slug: str, name: str, max_age_years: int = 10) -> Jurisdiction:
    return Jurisdiction(
        slug=slug,
        display_name=name,
        max_age_years=max_age_years,
        policy_summary=_CAPITAL_POLICY,
        category_age_limits=dict(CATEGORY_AGE_LIMITS),
        black_exclusions=PREMIUM_EXCLUSIONS,
    )


class JurisdictionRegistry:
    """Lookup of jurisdiction policies by slug.

    Unknown slugs resolve to a baseline built from ``default_max_age_years``
    so evaluation never fails on an unrecognized region.
    """

    def __init__(
        self,
        jurisdictions: list[Jurisdiction] | None = None,
        default_max_age_years: int = 10,
    ) -> None:
        if jurisdictions is None:
            jurisdictions = [
                _capital("sao-paulo", "São Paulo"),
                _capital("rio-de-janeiro", "Rio de Janeiro"),
            ]
        self._by_slug = {j.slug: j for j in jurisdictions}
        self._default_max_age = default_max_age_years

    def get(self, slug: str) -> Jurisdiction:
        key = normalize_slug(slug)
        found = self._by_slug.get(key)
        if found is not None:
            return found
        return _capital(key, slug or "unknown", self._default_max_age)

    def register(self, jurisdiction: Jurisdiction) -> None:
        self._by_slug[jurisdiction.slug] = jurisdiction

    def slugs(self) -> list[str]:
        return sorted(self._by_slug)

    def __contains__(self, slug: str) -> bool:
        return normalize_slug(slug) in self._by_slug


def normalize_slug(slug: str) -> str:
    """Lowercase, accent-free, hyphenated slug: "São Paulo" becomes "sao-paulo"."""
    folded = unicodedata.normalize("NFKD", (slug or "").strip().lower())
    folded = folded.encode("ascii", "ignore").decode("ascii")
    return "-".join(folded.replace("_", " ").split())

"""Seed the catalog and rules databases with sample data for development."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fleetmatch.config.settings import Settings
from fleetmatch.models.domain import CatalogItem, EligibilityRule, SubScores
from fleetmatch.storage.sqlite_catalog_store import SQLiteCatalogStore
from fleetmatch.storage.sqlite_rules_repository import SQLiteRulesRepository

SAMPLE_ITEMS = [
    CatalogItem(
        item_id="v-001", brand="Toyota", model="Corolla Altis", year=2022, price=129_900,
        distance_km=28_000, body_type="sedan", transmission="automatic", fuel="flex",
        version="2.0 Hybrid", color="silver", description="Single owner, full service history.",
        scores=SubScores(comfort=8, economy=8, space=7, safety=8, value=7),
    ),
    CatalogItem(
        item_id="v-002", brand="Hyundai", model="HB20", year=2021, price=69_900,
        distance_km=45_000, body_type="hatch", transmission="manual", fuel="flex",
        version="1.0 Sense", color="white",
        scores=SubScores(comfort=5, economy=8, space=4, safety=6, value=8),
    ),
    CatalogItem(
        item_id="v-003", brand="Honda", model="Civic", year=2020, price=119_000,
        distance_km=61_000, body_type="sedan", transmission="cvt", fuel="flex",
        version="EXL", color="black",
        scores=SubScores(comfort=8, economy=7, space=7, safety=8, value=7),
    ),
    CatalogItem(
        item_id="v-004", brand="Jeep", model="Compass", year=2023, price=159_000,
        distance_km=12_000, body_type="suv", transmission="automatic", fuel="diesel",
        version="Longitude", color="grey",
        scores=SubScores(comfort=8, economy=6, space=8, safety=9, value=6),
    ),
    CatalogItem(
        item_id="v-005", brand="Fiat", model="Strada", year=2022, price=99_000,
        distance_km=38_000, body_type="pickup", transmission="manual", fuel="flex",
        version="Freedom", color="red", doors=2,
        scores=SubScores(comfort=5, economy=7, space=8, safety=6, value=8),
    ),
    CatalogItem(
        item_id="v-006", brand="Chevrolet", model="Onix Plus", year=2019, price=74_500,
        distance_km=88_000, body_type="sedan", transmission="automatic", fuel="flex",
        version="LTZ", color="blue",
        scores=SubScores(comfort=6, economy=8, space=6, safety=7, value=8),
    ),
]

SAMPLE_RULES = {
    "uberX": [
        EligibilityRule(brand="Toyota", model="Corolla", min_year=2014, raw="Toyota Corolla 2014+"),
        EligibilityRule(brand="Hyundai", model="HB20", min_year=2016, raw="Hyundai HB20 2016+"),
        EligibilityRule(brand="Honda", model="Civic", min_year=2014, raw="Honda Civic 2014+"),
        EligibilityRule(brand="Chevrolet", model="Onix", min_year=2016, raw="Chevrolet Onix 2016+"),
        EligibilityRule(brand="Jeep", model="Compass", min_year=2017, raw="Jeep Compass 2017+"),
    ],
    "uberComfort": [
        EligibilityRule(brand="Toyota", model="Corolla", min_year=2018, raw="Toyota Corolla 2018+"),
        EligibilityRule(brand="Honda", model="Civic", min_year=2018, raw="Honda Civic 2018+"),
        EligibilityRule(brand="Jeep", model="Compass", min_year=2018, raw="Jeep Compass 2018+"),
    ],
    # uberBlack left empty: decided by the generative fallback
}


async def main():
    settings = Settings()

    for path in [settings.catalog_db_path, settings.rules_db_path]:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    catalog = SQLiteCatalogStore(settings.catalog_db_path)
    await catalog.initialize()
    await catalog.save_items(SAMPLE_ITEMS)

    rules = SQLiteRulesRepository(settings.rules_db_path, ttl_days=settings.rules_ttl_days)
    await rules.initialize()
    written = await rules.replace_all_for_jurisdiction(
        settings.default_jurisdiction,
        source_url="seed://sample-rules",
        rules_by_category=SAMPLE_RULES,
    )

    print(f"Catalog items: {await catalog.count_items()}")
    print(f"Rules written for {settings.default_jurisdiction}: {written}")


if __name__ == "__main__":
    asyncio.run(main())

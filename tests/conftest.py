"""Shared test fixtures and in-memory fakes."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from fleetmatch.config.settings import Settings
from fleetmatch.embeddings.hashing_embedder import HashingEmbedder
from fleetmatch.generation.gateway import stub_completion
from fleetmatch.models.domain import (
    CatalogItem,
    CompletionResult,
    EligibilityRule,
    RuleSet,
    SubScores,
)
from fleetmatch.ranking.filters import filter_items

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryCatalog:
    def __init__(self, items: list[CatalogItem], fail_save: bool = False) -> None:
        self.items = list(items)
        self.embeddings: dict = {}
        self.saved_batches: list[list] = []
        self.fail_save = fail_save

    async def list_items(self):
        return list(self.items)

    async def get_items(self, item_ids):
        by_id = {i.item_id: i for i in self.items}
        return [by_id[i] for i in item_ids if i in by_id]

    async def get_item(self, item_id):
        return next((i for i in self.items if i.item_id == item_id), None)

    async def query(self, context, limit=50):
        return filter_items(self.items, context)[:limit]

    async def count_items(self):
        return len(self.items)

    async def load_embeddings(self):
        return dict(self.embeddings)

    async def save_embeddings(self, records):
        if self.fail_save:
            raise OSError("disk full")
        self.saved_batches.append(list(records))
        for r in records:
            self.embeddings[r.item_id] = r


class InMemoryRulesRepository:
    def __init__(self, snapshots: dict[str, RuleSet] | None = None) -> None:
        self.snapshots = snapshots or {}
        self.calls = 0

    async def get_latest_snapshot(self, jurisdiction):
        self.calls += 1
        return self.snapshots.get(jurisdiction)

    async def list_rules(self, jurisdiction):
        snapshot = self.snapshots.get(jurisdiction)
        if snapshot is None:
            return []
        return [r for rules in snapshot.rules_by_category.values() for r in rules]


class FakeProvider:
    """Returns queued responses in order; Exception instances are raised."""

    def __init__(self, responses=None, default="{}") -> None:
        self.responses = list(responses or [])
        self.default = default
        self.calls = 0

    async def complete(self, messages, temperature=0.3, max_tokens=500):
        self.calls += 1
        if self.responses:
            response = self.responses.pop(0)
        else:
            response = self.default
        if isinstance(response, Exception):
            raise response
        return response


class FakeGateway:
    """Stands in for GenerativeGateway and records every request."""

    def __init__(self, text: str = "{}", degraded: bool = False) -> None:
        self.text = text
        self.degraded = degraded
        self.requests: list = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, messages, options=None):
        self.requests.append(messages)
        if self.degraded:
            return stub_completion()
        return CompletionResult(text=self.text, provider="fake", model="fake-1", attempts=1)


class CountingEmbedder(HashingEmbedder):
    def __init__(self, dimensions: int = 64) -> None:
        super().__init__(dimensions)
        self.embedded: list[str] = []

    async def embed_texts(self, texts):
        self.embedded.extend(texts)
        return await super().embed_texts(texts)


def make_item(item_id: str = "v-1", **overrides) -> CatalogItem:
    fields = dict(
        item_id=item_id,
        brand="Toyota",
        model="Corolla",
        year=2022,
        price=120_000.0,
        distance_km=40_000,
        body_type="sedan",
        transmission="automatic",
        fuel="flex",
        doors=4,
        air_conditioning=True,
        scores=SubScores(comfort=7, economy=7, space=7, safety=7, value=7),
    )
    fields.update(overrides)
    return CatalogItem(**fields)


def make_rule_set(rules_by_category, jurisdiction="sao-paulo", fetched_at=NOW, ttl_days=30):
    return RuleSet(
        jurisdiction=jurisdiction,
        fetched_at=fetched_at,
        ttl=timedelta(days=ttl_days),
        source_provenance="test://rules",
        rules_by_category=rules_by_category,
    )


@pytest.fixture
def settings():
    """Test settings with temp paths."""
    tmp = tempfile.mkdtemp()
    return Settings(
        openai_api_key="",
        groq_api_key="",
        google_api_key="",
        catalog_db_path=str(Path(tmp) / "catalog.db"),
        rules_db_path=str(Path(tmp) / "rules.db"),
    )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def corolla_rule():
    return EligibilityRule(brand="Toyota", model="Corolla", min_year=2011, raw="Toyota Corolla 2011+")


@pytest.fixture
def sample_items():
    return [
        make_item(
            "family-suv",
            brand="Jeep",
            model="Compass",
            year=2025,
            distance_km=15_000,
            body_type="suv",
            scores=SubScores(comfort=8, economy=6, space=9, safety=9, value=6),
        ),
        make_item(
            "city-hatch",
            brand="Hyundai",
            model="HB20",
            year=2021,
            price=68_000.0,
            distance_km=52_000,
            body_type="hatch",
            transmission="manual",
            scores=SubScores(comfort=5, economy=9, space=4, safety=6, value=9),
        ),
        make_item(
            "old-sedan",
            brand="Honda",
            model="Civic",
            year=2017,
            price=85_000.0,
            distance_km=120_000,
            transmission="cvt",
            scores=SubScores(comfort=7, economy=6, space=7, safety=7, value=7),
        ),
        make_item(
            "pickup",
            brand="Fiat",
            model="Strada",
            year=2023,
            price=99_000.0,
            distance_km=35_000,
            body_type="pickup",
            transmission="manual",
            doors=2,
            scores=SubScores(comfort=5, economy=7, space=9, safety=6, value=8),
        ),
    ]


@pytest.fixture
def tmp_dir():
    """Create a temporary directory."""
    return tempfile.mkdtemp()

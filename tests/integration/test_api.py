"""End-to-end API tests against SQLite stores and the stub gateway."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from fleetmatch.api.app import create_app
from fleetmatch.models.domain import EligibilityRule
from fleetmatch.storage.sqlite_catalog_store import SQLiteCatalogStore
from fleetmatch.storage.sqlite_rules_repository import SQLiteRulesRepository

RULES = {
    "uberX": [
        EligibilityRule(brand="Jeep", model="Compass", min_year=2017),
        EligibilityRule(brand="Hyundai", model="HB20", min_year=2016),
        EligibilityRule(brand="Honda", model="Civic", min_year=2018),
    ],
}


async def _seed(settings, items):
    catalog = SQLiteCatalogStore(settings.catalog_db_path)
    await catalog.initialize()
    await catalog.save_items(items)
    rules = SQLiteRulesRepository(settings.rules_db_path)
    await rules.initialize()
    await rules.replace_all_for_jurisdiction("sao-paulo", "test://rules", RULES)


@pytest.fixture
def client(settings, sample_items):
    asyncio.run(_seed(settings, sample_items))
    with TestClient(create_app(settings)) as c:
        yield c


def test_health_reports_degraded_without_providers(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["item_count"] == 4
    assert body["providers"] == []


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert "X-Duration-MS" in resp.headers


def test_search_applies_filters(client):
    resp = client.post("/search", json={"query": "compact hatch", "filters": {"budget": 100000}})
    assert resp.status_code == 200
    ids = {c["item_id"] for c in resp.json()["candidates"]}
    assert ids == {"city-hatch", "old-sedan", "pickup"}


def test_search_rejects_bad_k(client):
    resp = client.post("/search", json={"query": "suv", "k": 0})
    assert resp.status_code == 422


def test_recommend_ride_use_case(client):
    resp = client.post(
        "/recommend",
        json={"filters": {"use_case": "uber x"}, "jurisdiction": "sao-paulo", "limit": 5},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["use_case"] == "ride_x"
    assert {i["item_id"] for i in body["items"]} == {"family-suv", "city-hatch"}
    assert body["excluded_ineligible"] == 2
    for item in body["items"]:
        assert item["eligibility"]["decisions"]["uberX"]["approved"] is True
        assert item["eligibility"]["decisions"]["uberX"]["provenance"] == "allow_list"


def test_recommend_with_degraded_narrative(client):
    resp = client.post(
        "/recommend",
        json={"filters": {"use_case": "family"}, "limit": 2, "include_narrative": True},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["items"]) == 2
    assert body["items"][0]["item_id"] == "family-suv"
    assert body["narrative"]["degraded"] is True
    assert body["trace_id"]


def test_eligibility_unknown_item(client):
    resp = client.post("/eligibility", json={"item_id": "missing"})
    assert resp.status_code == 404


def test_eligibility_mixes_rules_and_degraded_fallback(client):
    resp = client.post(
        "/eligibility",
        json={"item_id": "family-suv", "categories": ["uberX", "uberBlack"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["jurisdiction"] == "sao-paulo"
    assert body["approved_categories"] == ["uberX"]
    assert body["rule_source"] == "test://rules"

    black = body["decisions"]["uberBlack"]
    assert black["approved"] is False
    assert black["provenance"] == "generative_degraded"
    assert black["confidence"] == 0.3
    assert body["explanation"].startswith("Jeep Compass 2025 is eligible for: Uber X")


def test_eligibility_hard_gate(client):
    resp = client.post("/eligibility", json={"item_id": "pickup"})
    body = resp.json()
    assert body["approved_categories"] == []
    assert all(d["provenance"] == "hard_gate" for d in body["decisions"].values())

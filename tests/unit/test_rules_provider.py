"""Tests for cached rule snapshot access."""

from __future__ import annotations

from datetime import timedelta

import pytest
from conftest import NOW, InMemoryRulesRepository, make_rule_set

from fleetmatch.exceptions import StaleOrMissingRuleSet
from fleetmatch.rules.provider import RuleSetProvider


class BrokenRepository:
    async def get_latest_snapshot(self, jurisdiction):
        raise ConnectionError("db unavailable")

    async def list_rules(self, jurisdiction):
        return []


async def test_fresh_snapshot_is_cached(corolla_rule):
    repo = InMemoryRulesRepository({"sao-paulo": make_rule_set({"uberX": [corolla_rule]})})
    provider = RuleSetProvider(repo, clock=lambda: NOW)

    first = await provider.get("sao-paulo")
    second = await provider.get("sao-paulo")

    assert first is second
    assert repo.calls == 1


async def test_legacy_categories_always_present(corolla_rule):
    repo = InMemoryRulesRepository({"sao-paulo": make_rule_set({"uberX": [corolla_rule]})})
    rule_set = await RuleSetProvider(repo, clock=lambda: NOW).get("sao-paulo")

    assert rule_set.rules_for("uberComfort") == []
    assert rule_set.rules_for("uberBlack") == []
    assert rule_set.rules_for("moto") == []


async def test_missing_snapshot_raises():
    provider = RuleSetProvider(InMemoryRulesRepository(), clock=lambda: NOW)
    with pytest.raises(StaleOrMissingRuleSet):
        await provider.get("sao-paulo")


async def test_stale_snapshot_raises(corolla_rule):
    snapshot = make_rule_set({"uberX": [corolla_rule]}, fetched_at=NOW - timedelta(days=30, seconds=1))
    provider = RuleSetProvider(InMemoryRulesRepository({"sao-paulo": snapshot}), clock=lambda: NOW)
    with pytest.raises(StaleOrMissingRuleSet):
        await provider.get("sao-paulo")


async def test_cached_snapshot_expires(corolla_rule):
    now = [NOW]
    repo = InMemoryRulesRepository({"sao-paulo": make_rule_set({"uberX": [corolla_rule]})})
    provider = RuleSetProvider(repo, clock=lambda: now[0])
    await provider.get("sao-paulo")

    now[0] = NOW + timedelta(days=31)
    with pytest.raises(StaleOrMissingRuleSet):
        await provider.get("sao-paulo")
    assert repo.calls == 2


async def test_repository_error_is_reported_as_missing():
    provider = RuleSetProvider(BrokenRepository(), clock=lambda: NOW)
    with pytest.raises(StaleOrMissingRuleSet):
        await provider.get("sao-paulo")


async def test_invalidate_forces_reload(corolla_rule):
    repo = InMemoryRulesRepository({"sao-paulo": make_rule_set({"uberX": [corolla_rule]})})
    provider = RuleSetProvider(repo, clock=lambda: NOW)
    await provider.get("sao-paulo")
    provider.invalidate("sao-paulo")
    await provider.get("sao-paulo")
    assert repo.calls == 2

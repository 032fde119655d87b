"""Tests for the generative ranking summary."""

from __future__ import annotations

import json

import pytest
from conftest import FakeGateway

from fleetmatch.generation.narrative import NarrativeGenerator
from fleetmatch.models.domain import RankingContext
from fleetmatch.ranking.ranker import Ranker


@pytest.fixture
def ranked(sample_items):
    return Ranker(current_year=2026).rank(sample_items, RankingContext(use_case="family"))


async def test_summary_from_gateway(ranked):
    answer = {
        "summary": "The Compass is the safest family pick.",
        "picks": [
            {"item_id": "family-suv", "why": "Roomy and safe."},
            {"item_id": "made-up", "why": "Not in the list."},
        ],
    }
    gateway = FakeGateway(text=json.dumps(answer))
    context = RankingContext(use_case="family", priorities=("safety",))

    narrative = await NarrativeGenerator(gateway).summarize(ranked, context)

    assert narrative.degraded is False
    assert narrative.text.startswith("The Compass is the safest family pick.")
    assert "family-suv: Roomy and safe." in narrative.text
    assert "made-up" not in narrative.text
    prompt = gateway.requests[0][1].content
    assert "safety" in prompt
    assert "id=family-suv" in prompt


async def test_degraded_gateway_uses_reasoning(ranked):
    narrative = await NarrativeGenerator(FakeGateway(degraded=True)).summarize(
        ranked, RankingContext(use_case="family")
    )
    assert narrative.degraded is True
    assert narrative.text.startswith(ranked[0].reasoning)


async def test_malformed_answer_uses_reasoning(ranked):
    narrative = await NarrativeGenerator(FakeGateway(text='{"picks": []}')).summarize(
        ranked, RankingContext(use_case="family")
    )
    assert narrative.degraded is True
    assert ranked[0].reasoning in narrative.text


async def test_empty_ranking_skips_gateway():
    gateway = FakeGateway()
    narrative = await NarrativeGenerator(gateway).summarize([], RankingContext(use_case="daily"))
    assert narrative.degraded is True
    assert gateway.calls == 0

"""Tests for the allow-list matching heuristic."""

from __future__ import annotations

from conftest import make_item

from fleetmatch.eligibility.matching import (
    effective_min_year,
    failed_hard_gates,
    match_rule,
    missing_attributes,
)
from fleetmatch.models.domain import EligibilityRule

RULES = [
    EligibilityRule(brand="Toyota", model="Corolla", min_year=2011),
    EligibilityRule(brand="Chevrolet", model="Onix", min_year=2016),
    EligibilityRule(brand="Volkswagen", model="Virtus", min_year=2018),
]


def test_brand_and_model_containment():
    rule = match_rule(make_item(brand="toyota", model="COROLLA ALTIS"), RULES)
    assert rule is RULES[0]


def test_brand_must_match_exactly():
    assert match_rule(make_item(brand="VW", model="Virtus Highline"), RULES) is None
    assert match_rule(make_item(brand="Volkswagen", model="Virtus Highline"), RULES) is RULES[2]


def test_model_alone_does_not_match_other_brand():
    assert match_rule(make_item(brand="GM", model="Onix Plus"), RULES) is None
    assert match_rule(make_item(brand="Fiat", model="Corolla Cross"), RULES) is None


def test_no_match():
    assert match_rule(make_item(brand="Hyundai", model="HB20"), RULES) is None
    assert match_rule(make_item(), []) is None


def test_effective_min_year():
    assert effective_min_year(2016, RULES[0]) == 2016
    assert effective_min_year(2016, RULES[2]) == 2018
    assert effective_min_year(2016, None) == 2016


def test_hard_gates():
    assert failed_hard_gates(make_item()) == []
    assert failed_hard_gates(make_item(air_conditioning=False, doors=2)) == [
        "air conditioning",
        "at least 4 doors",
    ]


def test_missing_attributes():
    assert missing_attributes(make_item(model=" ", year=0)) == ["model", "year"]

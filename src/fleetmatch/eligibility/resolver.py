"""Layered eligibility decisions for ride-hailing categories.

Order per item: input validation, hard feature gates, jurisdiction age
floor, per-category allow-lists, then a single generative fallback call for
every category whose allow-list is empty. Every requested category always
receives a decision; failures become low-confidence rejections.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

from fleetmatch.config.constants import (
    DEGRADED_FALLBACK_CONFIDENCE,
    DEGRADED_FALLBACK_REASONING,
    INVALID_INPUT_CONFIDENCE,
    MALFORMED_FALLBACK_CONFIDENCE,
    MALFORMED_FALLBACK_REASONING,
    RULE_CONFIDENCE,
)
from fleetmatch.eligibility.jurisdictions import JurisdictionRegistry
from fleetmatch.eligibility.matching import (
    effective_min_year,
    failed_hard_gates,
    match_rule,
    missing_attributes,
)
from fleetmatch.exceptions import InvalidInput, StaleOrMissingRuleSet
from fleetmatch.generation.json_decoder import decode_json
from fleetmatch.generation.prompt_templates import (
    ELIGIBILITY_PROMPT,
    ELIGIBILITY_SYSTEM,
    format_age_limits,
    format_exclusions,
)
from fleetmatch.models.domain import (
    DEFAULT_CATEGORIES,
    CatalogItem,
    CategoryDecision,
    ChatMessage,
    CompletionOptions,
    DecisionSource,
    EligibilityResult,
    Jurisdiction,
    RideCategory,
    RuleSet,
)
from fleetmatch.observability.logger import get_logger
from fleetmatch.observability.metrics import log_eligibility_metrics

logger = get_logger("eligibility")

CATEGORY_LABELS = {
    RideCategory.X.value: "Uber X",
    RideCategory.COMFORT.value: "Uber Comfort",
    RideCategory.BLACK.value: "Uber Black",
}


class EligibilityVerdict(BaseModel):
    """Structured answer expected from the generative fallback.

    Accepts both ``{"categories": {...}}`` and flat top-level booleans
    (``{"uberX": true, ...}``).
    """

    categories: dict[str, bool] = Field(default_factory=dict)
    confidence: float = 0.8
    reasoning: str = ""

    @model_validator(mode="before")
    @classmethod
    def lift_flat_categories(cls, data):
        if isinstance(data, dict) and "categories" not in data:
            flat = {k: v for k, v in data.items() if isinstance(v, bool)}
            data = {**data, "categories": flat}
        return data

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        return min(max(v, 0.0), 1.0)

    def approves(self, category: str) -> bool | None:
        if category in self.categories:
            return self.categories[category]
        lowered = {k.lower(): v for k, v in self.categories.items()}
        return lowered.get(category.lower())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _reject_all(
    categories: list[str],
    confidence: float,
    reasoning: str,
    source: DecisionSource,
    min_year: int | None = None,
) -> dict[str, CategoryDecision]:
    return {
        c: CategoryDecision(
            approved=False,
            confidence=confidence,
            reasoning=reasoning,
            provenance=source,
            effective_min_year=min_year,
        )
        for c in categories
    }


class EligibilityResolver:
    def __init__(
        self,
        rules,
        gateway,
        jurisdictions: JurisdictionRegistry | None = None,
        min_doors: int = 4,
        categories: tuple[str, ...] = DEFAULT_CATEGORIES,
        temperature: float = 0.1,
        max_tokens: int = 300,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._rules = rules  # RuleSetProvider
        self._gateway = gateway
        self._jurisdictions = jurisdictions or JurisdictionRegistry()
        self._min_doors = min_doors
        self._categories = tuple(str(c) for c in categories)
        self._options = CompletionOptions(temperature=temperature, max_tokens=max_tokens)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, rules, gateway) -> EligibilityResolver:
        return cls(
            rules,
            gateway,
            jurisdictions=JurisdictionRegistry(
                default_max_age_years=settings.default_max_age_years
            ),
            min_doors=settings.min_doors,
            temperature=settings.eligibility_temperature,
            max_tokens=settings.eligibility_max_tokens,
        )

    @property
    def categories(self) -> tuple[str, ...]:
        return self._categories

    async def evaluate(
        self,
        item: CatalogItem,
        jurisdiction: str,
        categories: list[str] | None = None,
    ) -> EligibilityResult:
        if item is None:
            raise ValueError("item is required")

        requested = [str(c) for c in (categories or self._categories)]
        now = self._clock()
        juris = self._jurisdictions.get(jurisdiction)
        result = EligibilityResult(
            item_id=item.item_id,
            jurisdiction=juris.slug,
            decisions={},
            evaluated_at=now,
        )

        missing = missing_attributes(item)
        if missing:
            error = InvalidInput(f"missing required attributes: {', '.join(missing)}")
            logger.warning("eligibility_invalid_input", item_id=item.item_id, error=str(error))
            result.decisions = _reject_all(
                requested, INVALID_INPUT_CONFIDENCE, str(error), DecisionSource.INVALID_INPUT
            )
            return self._finish(result, gateway_used=False)

        failed = failed_hard_gates(item, self._min_doors)
        if failed:
            result.decisions = _reject_all(
                requested,
                RULE_CONFIDENCE,
                f"Rejected: basic requirements not met (missing {' and '.join(failed)}).",
                DecisionSource.HARD_GATE,
            )
            return self._finish(result, gateway_used=False)

        floor = now.year - juris.max_age_years
        if item.year < floor:
            result.decisions = _reject_all(
                requested,
                RULE_CONFIDENCE,
                f"Rejected: model year {item.year} is below the {juris.display_name} "
                f"minimum of {floor} ({juris.max_age_years}-year rule).",
                DecisionSource.AGE_GATE,
                min_year=floor,
            )
            return self._finish(result, gateway_used=False)

        rule_set = await self._load_rules(juris.slug)
        if rule_set is not None:
            result.rule_source = rule_set.source_provenance

        pending: list[str] = []
        for category in requested:
            rules = rule_set.rules_for(category) if rule_set is not None else []
            if not rules:
                pending.append(category)
                continue
            result.decisions[category] = self._decide_by_rules(item, category, rules, floor)

        if pending:
            result.decisions.update(await self._fallback(item, juris, floor, pending, now.year))

        # keep the caller's category order
        result.decisions = {c: result.decisions[c] for c in requested}
        return self._finish(result, gateway_used=bool(pending))

    async def evaluate_many(
        self,
        items: list[CatalogItem],
        jurisdiction: str,
        categories: list[str] | None = None,
    ) -> list[EligibilityResult]:
        return list(
            await asyncio.gather(*(self.evaluate(i, jurisdiction, categories) for i in items))
        )

    def explain(self, item: CatalogItem, result: EligibilityResult) -> str:
        """Human-readable summary of a result."""
        name = item.display_name
        approved = [CATEGORY_LABELS.get(c, c) for c in result.approved_categories]
        rejected = [
            CATEGORY_LABELS.get(c, c) for c, d in result.decisions.items() if not d.approved
        ]
        reasons = []
        for d in result.decisions.values():
            if d.reasoning and d.reasoning not in reasons:
                reasons.append(d.reasoning)
        body = "\n".join(reasons)

        if not approved:
            return f"{name} is not eligible for any ride category.\n\n{body}".rstrip()
        text = f"{name} is eligible for: {', '.join(approved)}\n\n{body}".rstrip()
        if rejected:
            text += f"\n\nNot eligible for: {', '.join(rejected)}"
        return text

    async def _load_rules(self, jurisdiction: str) -> RuleSet | None:
        try:
            return await self._rules.get(jurisdiction)
        except StaleOrMissingRuleSet as e:
            logger.info("rules_unavailable_using_fallback", jurisdiction=jurisdiction, reason=str(e))
            return None

    def _decide_by_rules(self, item, category, rules, floor) -> CategoryDecision:
        rule = match_rule(item, rules)
        if rule is None:
            return CategoryDecision(
                approved=False,
                confidence=RULE_CONFIDENCE,
                reasoning=f"Rejected: {item.brand} {item.model} is not in the {category} allow-list.",
                provenance=DecisionSource.ALLOW_LIST,
                effective_min_year=floor,
            )

        min_year = effective_min_year(floor, rule)
        if item.year < min_year:
            return CategoryDecision(
                approved=False,
                confidence=RULE_CONFIDENCE,
                reasoning=(
                    f"Rejected: {item.brand} {item.model} needs model year {min_year} "
                    f"or newer for {category}."
                ),
                provenance=DecisionSource.ALLOW_LIST,
                effective_min_year=min_year,
                rule=rule,
            )
        return CategoryDecision(
            approved=True,
            confidence=RULE_CONFIDENCE,
            reasoning=(
                f"Approved: {rule.brand} {rule.model} is listed for {category} "
                f"from {min_year}."
            ),
            provenance=DecisionSource.ALLOW_LIST,
            effective_min_year=min_year,
            rule=rule,
        )

    async def _fallback(
        self,
        item: CatalogItem,
        juris: Jurisdiction,
        floor: int,
        categories: list[str],
        current_year: int,
    ) -> dict[str, CategoryDecision]:
        messages = [
            ChatMessage(role="system", content=ELIGIBILITY_SYSTEM),
            ChatMessage(role="user", content=self._prompt(item, juris, categories, current_year)),
        ]
        completion = await self._gateway.complete(messages, self._options)

        if completion.degraded:
            return _reject_all(
                categories,
                DEGRADED_FALLBACK_CONFIDENCE,
                DEGRADED_FALLBACK_REASONING,
                DecisionSource.GENERATIVE_DEGRADED,
                min_year=floor,
            )

        decoded = decode_json(completion.text, EligibilityVerdict)
        if not decoded.ok:
            logger.warning(
                "eligibility_fallback_malformed",
                item_id=item.item_id,
                provider=completion.provider,
                error=str(decoded.error),
            )
            return _reject_all(
                categories,
                MALFORMED_FALLBACK_CONFIDENCE,
                MALFORMED_FALLBACK_REASONING,
                DecisionSource.GENERATIVE_MALFORMED,
                min_year=floor,
            )

        verdict = decoded.value
        decisions = {}
        for category in categories:
            answer = verdict.approves(category)
            approved = bool(answer)
            reasoning = verdict.reasoning or "No reasoning given."
            if answer is None:
                reasoning = f"No answer for {category} in fallback response. {reasoning}"
            elif approved and item.year < floor:
                approved = False
                reasoning = f"Rejected: model year {item.year} is below the minimum of {floor}."
            decisions[category] = CategoryDecision(
                approved=approved,
                confidence=verdict.confidence,
                reasoning=reasoning,
                provenance=DecisionSource.GENERATIVE,
                effective_min_year=floor,
            )
        return decisions

    @staticmethod
    def _prompt(item: CatalogItem, juris: Jurisdiction, categories: list[str], current_year: int) -> str:
        return ELIGIBILITY_PROMPT.format(
            jurisdiction_name=juris.display_name,
            current_year=current_year,
            policy_summary=juris.policy_summary or "- no qualitative policy recorded",
            age_limits=format_age_limits(juris.category_age_limits, current_year),
            premium_category=RideCategory.BLACK.value,
            exclusions=format_exclusions(juris.black_exclusions),
            brand=item.brand,
            model=item.model,
            version=item.version or "n/a",
            year=item.year,
            body_type=item.body_type or "unknown",
            doors=item.doors,
            air_conditioning="yes" if item.air_conditioning else "no",
            transmission=item.transmission or "unknown",
            color=item.color or "unknown",
            categories=", ".join(categories),
        )

    def _finish(self, result: EligibilityResult, gateway_used: bool) -> EligibilityResult:
        log_eligibility_metrics(
            item_id=result.item_id,
            jurisdiction=result.jurisdiction,
            approved=result.approved_categories,
            sources={c: d.provenance.value for c, d in result.decisions.items()},
            gateway_used=gateway_used,
        )
        return result

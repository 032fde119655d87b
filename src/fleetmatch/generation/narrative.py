"""Optional generative summary of a ranked list."""

from __future__ import annotations

from pydantic import BaseModel, Field

from fleetmatch.generation.json_decoder import decode_json
from fleetmatch.generation.prompt_templates import (
    NARRATIVE_PROMPT,
    NARRATIVE_SYSTEM,
    format_vehicle_block,
)
from fleetmatch.models.domain import (
    ChatMessage,
    CompletionOptions,
    Narrative,
    RankedItem,
    RankingContext,
)
from fleetmatch.observability.logger import get_logger
from fleetmatch.ranking.use_cases import DESCRIPTIONS, normalize_use_case

logger = get_logger("narrative")


class NarrativePick(BaseModel):
    item_id: str
    why: str = ""


class NarrativeResponse(BaseModel):
    summary: str = Field(min_length=1)
    picks: list[NarrativePick] = Field(default_factory=list)


class NarrativeGenerator:
    """Summarizes the top ranked items through the gateway.

    The ranking is never altered here. When the gateway is degraded or the
    answer cannot be decoded, the deterministic reasoning sentences are used.
    """

    def __init__(self, gateway, max_items: int = 5, temperature: float = 0.3, max_tokens: int = 500):
        self._gateway = gateway
        self._max_items = max_items
        self._options = CompletionOptions(temperature=temperature, max_tokens=max_tokens)

    async def summarize(self, ranked: list[RankedItem], context: RankingContext) -> Narrative:
        if not ranked:
            return Narrative(text="No vehicles matched the request.", degraded=True, provider="")

        use_case = normalize_use_case(context.use_case)
        prompt = NARRATIVE_PROMPT.format(
            use_case_description=DESCRIPTIONS[use_case],
            priorities=", ".join(context.priorities) or "none stated",
            vehicle_block=format_vehicle_block(ranked, self._max_items),
        )
        messages = [
            ChatMessage(role="system", content=NARRATIVE_SYSTEM),
            ChatMessage(role="user", content=prompt),
        ]
        completion = await self._gateway.complete(messages, self._options)
        if completion.degraded:
            return self._fallback(ranked, provider=completion.provider)

        decoded = decode_json(completion.text, NarrativeResponse)
        if not decoded.ok:
            logger.warning(
                "narrative_malformed",
                provider=completion.provider,
                error=str(decoded.error),
            )
            return self._fallback(ranked, provider=completion.provider)

        known = {r.item.item_id for r in ranked}
        lines = [decoded.value.summary.strip()]
        for pick in decoded.value.picks:
            # ignore picks that refer to vehicles outside the ranked list
            if pick.item_id in known and pick.why:
                lines.append(f"- {pick.item_id}: {pick.why.strip()}")
        return Narrative(text="\n".join(lines), degraded=False, provider=completion.provider)

    def _fallback(self, ranked: list[RankedItem], provider: str) -> Narrative:
        text = " ".join(r.reasoning for r in ranked[: min(3, self._max_items)])
        return Narrative(text=text, degraded=True, provider=provider)

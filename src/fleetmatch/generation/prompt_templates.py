"""All prompt templates for generative calls."""

ELIGIBILITY_SYSTEM = """You are a strict validator of vehicles for ride-hailing service categories.
Rules:
- Judge only from the vehicle data and the policy given.
- When in doubt, reject the category.
- Answer with a single JSON object and nothing else."""

ELIGIBILITY_PROMPT = """Jurisdiction: {jurisdiction_name} (reference year {current_year})

Policy:
{policy_summary}

Category age limits:
{age_limits}

Never eligible for {premium_category}, whatever the year or price:
{exclusions}

Vehicle:
- Brand: {brand}
- Model: {model}
- Version: {version}
- Year: {year}
- Body type: {body_type}
- Doors: {doors}
- Air conditioning: {air_conditioning}
- Transmission: {transmission}
- Color: {color}

Decide eligibility for these categories: {categories}

Return a JSON object:
- "categories": object mapping each category name above to true or false
- "confidence": float between 0.0 and 1.0
- "reasoning": one or two direct sentences; mention an exclusion if one applies"""

NARRATIVE_SYSTEM = """You are a helpful vehicle sales assistant.
Rules:
- Use ONLY the facts listed for each vehicle.
- Be concise and concrete.
- Answer with a single JSON object and nothing else."""

NARRATIVE_PROMPT = """The customer wants a vehicle for: {use_case_description}
Stated priorities: {priorities}

Ranked vehicles (best first):
{vehicle_block}

Return a JSON object:
- "summary": two or three sentences comparing the top options for this customer
- "picks": list of {{"item_id": str, "why": str}} for at most three vehicles"""


def format_age_limits(limits: dict[str, int], current_year: int) -> str:
    if not limits:
        return "- none beyond the jurisdiction cutoff"
    return "\n".join(
        f"- {category}: at most {years} years old ({current_year - years} or newer)"
        for category, years in sorted(limits.items())
    )


def format_exclusions(exclusions: tuple[str, ...] | list[str]) -> str:
    if not exclusions:
        return "- none listed"
    return "\n".join(f"- {model}" for model in exclusions)


def format_vehicle_block(ranked: list, max_items: int = 5) -> str:
    """Format ranked items as a numbered fact block for prompts."""
    lines = []
    for i, r in enumerate(ranked[:max_items], 1):
        item = r.item
        facts = [
            f"id={item.item_id}",
            item.display_name,
            f"score {r.score:.0f}/100",
            f"{item.distance_km} km",
        ]
        if item.transmission:
            facts.append(item.transmission)
        if item.price:
            facts.append(f"price {item.price:.0f}")
        if r.highlights:
            facts.append("highlights: " + "; ".join(r.highlights))
        if r.concerns:
            facts.append("concerns: " + "; ".join(r.concerns))
        lines.append(f"[{i}] " + ", ".join(facts))
    return "\n".join(lines)

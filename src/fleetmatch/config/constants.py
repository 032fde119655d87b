"""Fixed values shared across scoring and eligibility."""

MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Sub-scores are on a 1-10 scale and are rescaled onto 50-100 before weighting.
SUB_SCORE_MIN = 1
SUB_SCORE_MAX = 10
SUB_SCORE_DEFAULT = 5
RESCALED_FLOOR = 50.0
RESCALED_SPAN = 50.0

MAX_HIGHLIGHTS = 3
MAX_CONCERNS = 2

RULE_CONFIDENCE = 1.0
INVALID_INPUT_CONFIDENCE = 0.0
MALFORMED_FALLBACK_CONFIDENCE = 0.5
DEGRADED_FALLBACK_CONFIDENCE = 0.3

MALFORMED_FALLBACK_REASONING = "could not parse fallback response"
DEGRADED_FALLBACK_REASONING = "generative fallback unavailable; no live provider answered"

STUB_PROVIDER_NAME = "stub"

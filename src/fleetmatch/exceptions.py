"""Custom exception hierarchy for the matching and eligibility engine."""


class FleetMatchError(Exception):
    """Base exception for all fleetmatch errors."""


class ProviderError(FleetMatchError):
    """A single generative provider call failed."""


class ProviderUnavailable(FleetMatchError):
    """Every configured generative provider is exhausted or circuit-open."""


class StaleOrMissingRuleSet(FleetMatchError):
    """No fresh rule snapshot exists for a jurisdiction."""


class MalformedGenerativeResponse(FleetMatchError):
    """Generative text did not contain a JSON object matching the expected schema."""


class InvalidInput(FleetMatchError):
    """A catalog item is missing attributes required for a decision."""


class EmbeddingError(FleetMatchError):
    """Error generating embeddings."""


class StorageError(FleetMatchError):
    """Error reading or writing a backing store."""


class ConfigurationError(FleetMatchError):
    """Error in system configuration."""

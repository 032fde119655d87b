"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API Keys
    openai_api_key: str = ""
    groq_api_key: str = ""
    google_api_key: str = ""

    # Generative providers (lower priority value is tried first)
    openai_model: str = "gpt-4.1-mini"
    openai_priority: int = 1
    groq_model: str = "llama-3.1-8b-instant"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_priority: int = 2
    gemini_model: str = "gemini-2.0-flash"
    gemini_priority: int = 3

    # Gateway resilience
    gateway_failure_threshold: int = 3
    gateway_cooldown_seconds: float = 60.0
    gateway_max_retries: int = 2
    gateway_retry_base_delay: float = 1.0
    gateway_call_timeout: float = 15.0
    gateway_max_concurrency: int = 10
    gateway_temperature: float = 0.3
    gateway_max_tokens: int = 500

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_batch_size: int = 100

    # Eligibility
    default_jurisdiction: str = "sao-paulo"
    default_max_age_years: int = 10
    min_doors: int = 4
    rules_ttl_days: int = 30
    eligibility_temperature: float = 0.1
    eligibility_max_tokens: int = 300

    # Search
    search_top_k: int = 20
    search_overfetch: int = 3

    # Storage paths
    catalog_db_path: str = "data/catalog.db"
    rules_db_path: str = "data/rules.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "FLEET_"}

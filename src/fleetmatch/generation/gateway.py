"""Resilient call layer over priority-ordered generative providers."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fleetmatch.config.constants import STUB_PROVIDER_NAME
from fleetmatch.exceptions import ConfigurationError, ProviderUnavailable
from fleetmatch.generation.circuit_breaker import CircuitBreaker
from fleetmatch.models.domain import (
    ChatMessage,
    CompletionOptions,
    CompletionResult,
    ProviderConfig,
)
from fleetmatch.observability.logger import get_logger
from fleetmatch.observability.metrics import log_gateway_call
from fleetmatch.protocols.llm import GenerativeProvider

logger = get_logger("gateway")

STUB_TEXT = "No generative provider is currently available; no assessment was produced."


@dataclass
class RegisteredProvider:
    config: ProviderConfig
    client: GenerativeProvider


class GenerativeGateway:
    """Try providers in priority order with retries and circuit breaking.

    ``complete`` never raises. When nothing answers it returns a
    deterministic stub with ``degraded=True``; callers must read that as
    "no assessment", not as a successful answer.
    """

    def __init__(
        self,
        providers: list[RegisteredProvider],
        breaker: CircuitBreaker | None = None,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
        call_timeout: float = 15.0,
        max_concurrency: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be positive, got {max_concurrency}")
        self._providers = sorted(
            (p for p in providers if p.config.enabled),
            key=lambda p: p.config.priority,
        )
        self._breaker = breaker or CircuitBreaker()
        self._max_retries = max(1, max_retries)
        self._base_delay = retry_base_delay
        self._timeout = call_timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, providers: list[RegisteredProvider]) -> GenerativeGateway:
        breaker = CircuitBreaker(
            failure_threshold=settings.gateway_failure_threshold,
            cooldown_seconds=settings.gateway_cooldown_seconds,
        )
        return cls(
            providers,
            breaker=breaker,
            max_retries=settings.gateway_max_retries,
            retry_base_delay=settings.gateway_retry_base_delay,
            call_timeout=settings.gateway_call_timeout,
            max_concurrency=settings.gateway_max_concurrency,
        )

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def provider_names(self) -> list[str]:
        return [p.config.name for p in self._providers]

    async def complete(
        self,
        messages: list[ChatMessage],
        options: CompletionOptions | None = None,
    ) -> CompletionResult:
        options = options or CompletionOptions()
        async with self._semaphore:
            start = time.monotonic()
            for provider in self._providers:
                name = provider.config.name
                if not await self._breaker.acquire(name):
                    logger.warning("circuit_open_skipping_provider", provider=name)
                    continue
                result = await self._call_with_retry(provider, messages, options, start)
                if result is not None:
                    return result

            error = ProviderUnavailable(
                f"all {len(self._providers)} providers failed or are circuit-open"
            )
            logger.error("providers_exhausted_using_stub", error=str(error))
            latency_ms = (time.monotonic() - start) * 1000
            log_gateway_call(STUB_PROVIDER_NAME, "", 0, latency_ms, degraded=True)
            return stub_completion(latency_ms=latency_ms)

    async def _call_with_retry(
        self,
        provider: RegisteredProvider,
        messages: list[ChatMessage],
        options: CompletionOptions,
        start: float,
    ) -> CompletionResult | None:
        name = provider.config.name
        max_retries = max(1, options.max_retries or self._max_retries)
        timeout = options.timeout_seconds or self._timeout

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(
                    "provider_attempt",
                    provider=name,
                    model=provider.config.model,
                    attempt=attempt,
                    max_retries=max_retries,
                )
                text = await asyncio.wait_for(
                    provider.client.complete(
                        messages,
                        temperature=options.temperature,
                        max_tokens=options.max_tokens,
                    ),
                    timeout=timeout,
                )
            except asyncio.CancelledError:
                await self._breaker.release(name)
                raise
            except Exception as e:
                logger.warning(
                    "provider_attempt_failed",
                    provider=name,
                    attempt=attempt,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if attempt == max_retries:
                    await self._breaker.record_failure(name)
                else:
                    await self._sleep(attempt * self._base_delay)
                continue

            await self._breaker.record_success(name)
            latency_ms = (time.monotonic() - start) * 1000
            log_gateway_call(name, provider.config.model, attempt, latency_ms, degraded=False)
            return CompletionResult(
                text=text or "",
                provider=name,
                model=provider.config.model,
                degraded=False,
                attempts=attempt,
                latency_ms=latency_ms,
            )
        return None

    def status(self) -> list[dict]:
        """Circuit state for every enabled provider, in priority order."""
        rows = []
        for provider in self._providers:
            name = provider.config.name
            state = self._breaker.snapshot(name)
            rows.append(
                {
                    "name": name,
                    "model": provider.config.model,
                    "priority": provider.config.priority,
                    "circuit_open": self._breaker.is_open(name),
                    "consecutive_failures": state.consecutive_failures,
                }
            )
        return rows

    def reset(self) -> None:
        self._breaker.reset()


def stub_completion(latency_ms: float = 0.0) -> CompletionResult:
    """Deterministic degraded response."""
    return CompletionResult(
        text=STUB_TEXT,
        provider=STUB_PROVIDER_NAME,
        model="",
        degraded=True,
        attempts=0,
        latency_ms=latency_ms,
    )

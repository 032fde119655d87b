"""Per-provider circuit breaker.

Closed: calls allowed. Open: after ``failure_threshold`` consecutive failures
the provider is skipped. Once ``cooldown_seconds`` have passed since the last
failure a single probe call is let through; success closes the circuit,
failure re-opens it with a fresh timestamp.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from fleetmatch.models.domain import CircuitState
from fleetmatch.observability.logger import get_logger

logger = get_logger("circuit_breaker")


class CircuitBreaker:
    def __init__(
        self,
        failure_threshold: int = 3,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = failure_threshold
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._states: dict[str, CircuitState] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, provider: str) -> asyncio.Lock:
        lock = self._locks.get(provider)
        if lock is None:
            lock = self._locks[provider] = asyncio.Lock()
        return lock

    def _state(self, provider: str) -> CircuitState:
        state = self._states.get(provider)
        if state is None:
            state = self._states[provider] = CircuitState()
        return state

    async def acquire(self, provider: str) -> bool:
        """Return True if a call to ``provider`` may proceed now."""
        async with self._lock(provider):
            state = self._state(provider)
            if state.consecutive_failures < self._threshold:
                return True
            elapsed = self._clock() - (state.last_failure_at or 0.0)
            if elapsed > self._cooldown and not state.probe_in_flight:
                state.probe_in_flight = True
                logger.info("circuit_half_open_probe", provider=provider)
                return True
            return False

    async def record_success(self, provider: str) -> None:
        async with self._lock(provider):
            state = self._state(provider)
            if state.consecutive_failures >= self._threshold:
                logger.info("circuit_closed", provider=provider)
            state.consecutive_failures = 0
            state.probe_in_flight = False

    async def record_failure(self, provider: str) -> None:
        async with self._lock(provider):
            state = self._state(provider)
            state.consecutive_failures += 1
            state.last_failure_at = self._clock()
            state.probe_in_flight = False
            if state.consecutive_failures >= self._threshold:
                logger.warning(
                    "circuit_open",
                    provider=provider,
                    failures=state.consecutive_failures,
                )

    async def release(self, provider: str) -> None:
        """Clear a probe reservation that ended without a recorded outcome."""
        async with self._lock(provider):
            self._state(provider).probe_in_flight = False

    def is_open(self, provider: str) -> bool:
        state = self._states.get(provider)
        if state is None or state.consecutive_failures < self._threshold:
            return False
        elapsed = self._clock() - (state.last_failure_at or 0.0)
        return elapsed <= self._cooldown or state.probe_in_flight

    def snapshot(self, provider: str) -> CircuitState:
        state = self._state(provider)
        return CircuitState(
            consecutive_failures=state.consecutive_failures,
            last_failure_at=state.last_failure_at,
            probe_in_flight=state.probe_in_flight,
        )

    def reset(self) -> None:
        self._states.clear()

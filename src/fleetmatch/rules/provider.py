"""Cached access to the latest fresh rule snapshot per jurisdiction."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

from fleetmatch.exceptions import StaleOrMissingRuleSet
from fleetmatch.models.domain import DEFAULT_CATEGORIES, RuleSet
from fleetmatch.observability.logger import get_logger
from fleetmatch.protocols.rules import RulesRepository

logger = get_logger("rules_provider")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RuleSetProvider:
    """Read-only view over a RulesRepository with an in-memory cache.

    ``get`` raises StaleOrMissingRuleSet when no fresh snapshot exists;
    repository failures are reported the same way. Refreshing the repository
    itself happens elsewhere.
    """

    def __init__(self, repository: RulesRepository, clock: Callable[[], datetime] = _utcnow) -> None:
        self._repository = repository
        self._clock = clock
        self._cache: dict[str, RuleSet] = {}
        self._lock = asyncio.Lock()

    async def get(self, jurisdiction: str) -> RuleSet:
        cached = self._cache.get(jurisdiction)
        if cached is not None and cached.is_fresh(self._clock()):
            return cached

        async with self._lock:
            cached = self._cache.get(jurisdiction)
            if cached is not None and cached.is_fresh(self._clock()):
                return cached

            try:
                snapshot = await self._repository.get_latest_snapshot(jurisdiction)
            except Exception as e:
                logger.warning(
                    "rules_repository_failed",
                    jurisdiction=jurisdiction,
                    error=str(e),
                )
                raise StaleOrMissingRuleSet(
                    f"rules repository unavailable for {jurisdiction}"
                ) from e

            if snapshot is None:
                self._cache.pop(jurisdiction, None)
                raise StaleOrMissingRuleSet(f"no rule snapshot for {jurisdiction}")
            if not snapshot.is_fresh(self._clock()):
                self._cache.pop(jurisdiction, None)
                logger.info(
                    "rules_snapshot_stale",
                    jurisdiction=jurisdiction,
                    fetched_at=snapshot.fetched_at.isoformat(),
                )
                raise StaleOrMissingRuleSet(f"rule snapshot for {jurisdiction} is stale")

            for category in DEFAULT_CATEGORIES:
                snapshot.rules_by_category.setdefault(category, [])
            self._cache[jurisdiction] = snapshot
            logger.info(
                "rules_snapshot_loaded",
                jurisdiction=jurisdiction,
                categories=sorted(snapshot.rules_by_category),
                rules=sum(len(r) for r in snapshot.rules_by_category.values()),
            )
            return snapshot

    def invalidate(self, jurisdiction: str | None = None) -> None:
        if jurisdiction is None:
            self._cache.clear()
        else:
            self._cache.pop(jurisdiction, None)

"""Protocol for the rules repository collaborator."""

from __future__ import annotations

from typing import Protocol

from fleetmatch.models.domain import EligibilityRule, RuleSet


class RulesRepository(Protocol):
    async def get_latest_snapshot(self, jurisdiction: str) -> RuleSet | None: ...

    async def list_rules(self, jurisdiction: str) -> list[EligibilityRule]: ...

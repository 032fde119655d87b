"""Protocol for candidate retrieval over the catalog."""

from __future__ import annotations

from typing import Protocol


class CandidateRetriever(Protocol):
    def is_ready(self) -> bool: ...

    async def search(self, query_text: str, k: int = 10) -> list[tuple[str, float]]: ...

"""Protocol for generative-text providers."""

from __future__ import annotations

from typing import Protocol

from fleetmatch.models.domain import ChatMessage


class GenerativeProvider(Protocol):
    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> str: ...

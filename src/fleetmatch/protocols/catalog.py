"""Protocol for the read-mostly catalog collaborator."""

from __future__ import annotations

from typing import Protocol

from fleetmatch.models.domain import CatalogItem, EmbeddingRecord, RankingContext


class CatalogStore(Protocol):
    async def list_items(self) -> list[CatalogItem]: ...

    async def get_items(self, item_ids: list[str]) -> list[CatalogItem]: ...

    async def get_item(self, item_id: str) -> CatalogItem | None: ...

    async def query(self, context: RankingContext, limit: int = 50) -> list[CatalogItem]: ...

    async def load_embeddings(self) -> dict[str, EmbeddingRecord]: ...

    async def save_embeddings(self, records: list[EmbeddingRecord]) -> None: ...

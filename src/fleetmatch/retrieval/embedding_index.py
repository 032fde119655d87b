"""In-memory embedding index over the catalog with exhaustive cosine search."""

from __future__ import annotations

import asyncio

import numpy as np

from fleetmatch.embeddings.description import build_item_description
from fleetmatch.exceptions import EmbeddingError
from fleetmatch.models.domain import CatalogItem, EmbeddingRecord
from fleetmatch.observability.logger import get_logger
from fleetmatch.protocols.catalog import CatalogStore
from fleetmatch.protocols.embedder import Embedder

logger = get_logger("embedding_index")


class EmbeddingIndex:
    """One vector per catalog item, searched by a full similarity scan.

    Satisfies the CandidateRetriever protocol so an approximate index can
    replace it without touching callers.
    """

    def __init__(self, catalog: CatalogStore, embedder: Embedder, batch_size: int = 100) -> None:
        self._catalog = catalog
        self._embedder = embedder
        self._batch_size = batch_size
        self._records: dict[str, EmbeddingRecord] = {}
        self._ids: list[str] = []
        self._matrix: np.ndarray | None = None
        self._ready = False
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    def is_ready(self) -> bool:
        return self._ready

    @property
    def size(self) -> int:
        return len(self._ids)

    def start(self) -> asyncio.Task:
        """Schedule initialization in the background and return the task."""
        if self._task is None:
            self._task = asyncio.create_task(self._initialize_logged())
        return self._task

    async def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _initialize_logged(self) -> None:
        try:
            await self.initialize()
        except Exception as e:
            logger.error("index_initialization_failed", error=str(e))

    async def initialize(self) -> None:
        async with self._lock:
            if self._ready:
                return
            items = await self._catalog.list_items()
            try:
                persisted = await self._catalog.load_embeddings()
            except Exception as e:
                logger.warning("load_persisted_embeddings_failed", error=str(e))
                persisted = {}
            self._records = dict(persisted)
            computed = await self._sync(items)
            self._ready = True
            logger.info(
                "index_ready",
                items=len(self._ids),
                reused=len(self._ids) - computed,
                computed=computed,
            )

    async def refresh(self, items: list[CatalogItem] | None = None) -> int:
        """Re-embed items whose description changed. Returns the number recomputed.

        Without ``items`` the index is resynced with the whole catalog. Given
        ``items``, only those are checked; other indexed items stay searchable
        and unseen ids are appended.
        """
        async with self._lock:
            if items is None:
                computed = await self._sync(await self._catalog.list_items())
            else:
                computed = await self._sync(items, merge=True)
            logger.info("index_refreshed", items=len(self._ids), computed=computed)
            return computed

    async def search(self, query_text: str, k: int = 10) -> list[tuple[str, float]]:
        if not self._ready or self._matrix is None or k <= 0:
            return []
        if not query_text or not query_text.strip():
            return []
        try:
            query_vec = await self._embedder.embed_query(query_text)
        except EmbeddingError as e:
            logger.warning("query_embedding_failed", error=str(e))
            return []

        query = np.asarray(query_vec, dtype=np.float64)
        if query.shape[0] != self._matrix.shape[1]:
            logger.warning(
                "query_dimension_mismatch",
                expected=self._matrix.shape[1],
                got=query.shape[0],
            )
            return []
        norm = np.linalg.norm(query)
        if norm == 0:
            return []
        sims = self._matrix @ (query / norm)
        # Stable sort keeps catalog insertion order among equal similarities.
        order = np.argsort(-sims, kind="stable")[:k]
        return [(self._ids[i], float(sims[i])) for i in order]

    async def _sync(self, items: list[CatalogItem], merge: bool = False) -> int:
        descriptions = {item.item_id: build_item_description(item) for item in items}
        dims = self._embedder.dimensions
        stale = [
            item_id
            for item_id, text in descriptions.items()
            if item_id not in self._records
            or self._records[item_id].source_text != text
            or len(self._records[item_id].vector) != dims
        ]

        fresh_records: list[EmbeddingRecord] = []
        for start in range(0, len(stale), self._batch_size):
            batch_ids = stale[start : start + self._batch_size]
            texts = [descriptions[i] for i in batch_ids]
            vectors = await self._embedder.embed_texts(texts)
            for item_id, text, vector in zip(batch_ids, texts, vectors):
                record = EmbeddingRecord(item_id=item_id, vector=list(vector), source_text=text)
                self._records[item_id] = record
                fresh_records.append(record)

        if fresh_records:
            await self._persist(fresh_records)

        if merge:
            known = set(self._ids)
            self._ids = self._ids + [i for i in descriptions if i not in known]
        else:
            self._ids = list(descriptions)
        self._rebuild_matrix()
        return len(fresh_records)

    async def _persist(self, records: list[EmbeddingRecord]) -> None:
        try:
            await self._catalog.save_embeddings(records)
        except Exception as e:
            logger.warning("persist_embeddings_failed", count=len(records), error=str(e))

    def _rebuild_matrix(self) -> None:
        if not self._ids:
            self._matrix = None
            return
        matrix = np.asarray([self._records[i].vector for i in self._ids], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        self._matrix = matrix / norms

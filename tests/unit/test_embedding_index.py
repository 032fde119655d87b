"""Tests for the exhaustive-scan embedding index."""

from __future__ import annotations

import asyncio
from dataclasses import replace

from conftest import CountingEmbedder, InMemoryCatalog, make_item

from fleetmatch.embeddings.description import build_item_description
from fleetmatch.exceptions import EmbeddingError
from fleetmatch.models.domain import EmbeddingRecord
from fleetmatch.retrieval.embedding_index import EmbeddingIndex


def catalog_items():
    return [
        make_item("corolla", brand="Toyota", model="Corolla", body_type="sedan", color="silver"),
        make_item("compass", brand="Jeep", model="Compass", body_type="suv", color="black"),
        make_item("strada", brand="Fiat", model="Strada", body_type="pickup", color="red"),
    ]


async def test_search_before_ready_returns_empty():
    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), CountingEmbedder())
    assert index.is_ready() is False
    assert await index.search("jeep compass suv", 5) == []


async def test_search_ranks_by_cosine_similarity():
    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), CountingEmbedder(dimensions=512))
    await index.initialize()

    hits = await index.search("Jeep Compass suv black", 3)

    assert hits[0][0] == "compass"
    sims = [s for _, s in hits]
    assert sims == sorted(sims, reverse=True)
    assert all(abs(s) <= 1.0 + 1e-9 for s in sims)


async def test_ties_keep_catalog_order():
    items = [make_item("first"), make_item("second"), make_item("third")]
    index = EmbeddingIndex(InMemoryCatalog(items), CountingEmbedder())
    await index.initialize()

    hits = await index.search("Toyota Corolla", 3)

    assert [item_id for item_id, _ in hits] == ["first", "second", "third"]


async def test_blank_query_returns_empty():
    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), CountingEmbedder())
    await index.initialize()
    assert await index.search("   ", 3) == []


async def test_persisted_embeddings_are_reused():
    items = catalog_items()
    catalog = InMemoryCatalog(items)
    embedder = CountingEmbedder()
    text = build_item_description(items[0])
    catalog.embeddings["corolla"] = EmbeddingRecord(
        item_id="corolla", vector=[1.0] + [0.0] * 63, source_text=text
    )

    index = EmbeddingIndex(catalog, embedder)
    await index.initialize()

    assert len(embedder.embedded) == 2
    assert text not in embedder.embedded
    assert {r.item_id for r in catalog.saved_batches[0]} == {"compass", "strada"}


async def test_changed_description_is_recomputed():
    items = catalog_items()
    catalog = InMemoryCatalog(items)
    embedder = CountingEmbedder()
    index = EmbeddingIndex(catalog, embedder)
    await index.initialize()
    assert len(embedder.embedded) == 3

    changed = [replace(items[0], description="new tyres")] + items[1:]
    recomputed = await index.refresh(changed)

    assert recomputed == 1
    assert "new tyres" in embedder.embedded[-1]


async def test_refresh_subset_keeps_other_items():
    items = catalog_items()
    index = EmbeddingIndex(InMemoryCatalog(items), CountingEmbedder(dimensions=512))
    await index.initialize()

    changed = replace(items[0], description="new tyres")
    added = make_item("onix", brand="Chevrolet", model="Onix", body_type="hatch")
    recomputed = await index.refresh([changed, added])

    assert recomputed == 2
    assert index.size == 4
    hits = await index.search("Fiat Strada pickup red", 4)
    assert {item_id for item_id, _ in hits} == {"corolla", "compass", "strada", "onix"}


async def test_initialize_is_idempotent():
    embedder = CountingEmbedder()
    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), embedder)
    await asyncio.gather(index.initialize(), index.initialize())
    await index.initialize()
    assert len(embedder.embedded) == 3
    assert index.size == 3


async def test_persist_failure_does_not_block_readiness():
    index = EmbeddingIndex(InMemoryCatalog(catalog_items(), fail_save=True), CountingEmbedder())
    await index.initialize()
    assert index.is_ready() is True
    assert await index.search("Fiat Strada pickup", 1) != []


async def test_background_start():
    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), CountingEmbedder())
    task = index.start()
    assert index.start() is task
    await task
    assert index.is_ready() is True
    await index.stop()


async def test_background_failure_leaves_index_not_ready():
    class FailingEmbedder(CountingEmbedder):
        async def embed_texts(self, texts):
            raise EmbeddingError("quota exceeded")

    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), FailingEmbedder())
    await index.start()
    assert index.is_ready() is False
    assert await index.search("anything", 3) == []


async def test_query_embedding_failure_returns_empty():
    class QueryFails(CountingEmbedder):
        async def embed_query(self, query):
            raise EmbeddingError("timeout")

    index = EmbeddingIndex(InMemoryCatalog(catalog_items()), QueryFails())
    await index.initialize()
    assert await index.search("suv", 3) == []

"""SQLite-backed catalog and embedding store."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone

import aiosqlite

from fleetmatch.models.domain import CatalogItem, EmbeddingRecord, RankingContext, SubScores
from fleetmatch.ranking.filters import matches_context
from fleetmatch.storage.migrations import initialize_catalog_db

_COLUMNS = (
    "item_id, position, brand, model, year, price, distance_km, body_type, transmission, "
    "fuel, doors, air_conditioning, version, color, description, available, scores"
)


class SQLiteCatalogStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_catalog_db(self._db_path)

    async def save_items(self, items: list[CatalogItem]) -> None:
        """Insert or replace items; new items are appended after existing ones."""
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT COALESCE(MAX(position), -1) FROM items") as cursor:
                row = await cursor.fetchone()
                next_position = row[0] + 1
            async with db.execute("SELECT item_id, position FROM items") as cursor:
                positions = {r[0]: r[1] for r in await cursor.fetchall()}

            rows = []
            for item in items:
                position = positions.get(item.item_id)
                if position is None:
                    position = next_position
                    next_position += 1
                rows.append(
                    (
                        item.item_id,
                        position,
                        item.brand,
                        item.model,
                        item.year,
                        item.price,
                        item.distance_km,
                        item.body_type,
                        item.transmission,
                        item.fuel,
                        item.doors,
                        int(item.air_conditioning),
                        item.version,
                        item.color,
                        item.description,
                        int(item.available),
                        json.dumps(asdict(item.scores)),
                    )
                )
            await db.executemany(
                f"INSERT OR REPLACE INTO items ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
            await db.commit()

    async def list_items(self) -> list[CatalogItem]:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM items ORDER BY position") as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_item(row) for row in rows]

    async def get_item(self, item_id: str) -> CatalogItem | None:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM items WHERE item_id = ?", (item_id,)) as cursor:
                row = await cursor.fetchone()
                if row is None:
                    return None
                return self._row_to_item(row)

    async def get_items(self, item_ids: list[str]) -> list[CatalogItem]:
        """Items for ``item_ids`` in the order given; unknown ids are skipped."""
        if not item_ids:
            return []
        placeholders = ",".join("?" for _ in item_ids)
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM items WHERE item_id IN ({placeholders})",
                item_ids,
            ) as cursor:
                rows = await cursor.fetchall()
        by_id = {row["item_id"]: self._row_to_item(row) for row in rows}
        return [by_id[i] for i in item_ids if i in by_id]

    async def query(self, context: RankingContext, limit: int = 50) -> list[CatalogItem]:
        clauses = ["available = 1"]
        params: list = []
        if context.budget is not None:
            clauses.append("price <= ?")
            params.append(context.budget)
        if context.min_year is not None:
            clauses.append("year >= ?")
            params.append(context.min_year)
        if context.max_distance is not None:
            clauses.append("distance_km <= ?")
            params.append(context.max_distance)
        if context.body_types:
            clauses.append(f"LOWER(body_type) IN ({','.join('?' for _ in context.body_types)})")
            params.extend(b.strip().lower() for b in context.body_types)

        sql = f"SELECT * FROM items WHERE {' AND '.join(clauses)} ORDER BY position"
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(sql, params) as cursor:
                rows = await cursor.fetchall()

        # transmission synonyms (automatic/CVT) are resolved in Python
        items = [self._row_to_item(row) for row in rows]
        return [i for i in items if matches_context(i, context)][:limit]

    async def count_items(self) -> int:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT COUNT(*) FROM items") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def load_embeddings(self) -> dict[str, EmbeddingRecord]:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM embeddings") as cursor:
                rows = await cursor.fetchall()
                return {
                    row["item_id"]: EmbeddingRecord(
                        item_id=row["item_id"],
                        vector=json.loads(row["vector"]),
                        source_text=row["source_text"],
                    )
                    for row in rows
                }

    async def save_embeddings(self, records: list[EmbeddingRecord]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with aiosqlite.connect(self._db_path) as db:
            await db.executemany(
                "INSERT OR REPLACE INTO embeddings (item_id, vector, source_text, updated_at) "
                "VALUES (?, ?, ?, ?)",
                [(r.item_id, json.dumps(list(r.vector)), r.source_text, now) for r in records],
            )
            await db.commit()

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> CatalogItem:
        return CatalogItem(
            item_id=row["item_id"],
            brand=row["brand"],
            model=row["model"],
            year=row["year"],
            price=row["price"],
            distance_km=row["distance_km"],
            body_type=row["body_type"],
            transmission=row["transmission"],
            fuel=row["fuel"],
            doors=row["doors"],
            air_conditioning=bool(row["air_conditioning"]),
            version=row["version"],
            color=row["color"],
            description=row["description"],
            available=bool(row["available"]),
            scores=SubScores(**json.loads(row["scores"])),
        )

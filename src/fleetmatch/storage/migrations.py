"""Idempotent database schema creation."""

from __future__ import annotations

import aiosqlite

ITEMS_TABLE = """
CREATE TABLE IF NOT EXISTS items (
    item_id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    brand TEXT NOT NULL,
    model TEXT NOT NULL,
    year INTEGER NOT NULL,
    price REAL NOT NULL DEFAULT 0,
    distance_km INTEGER NOT NULL DEFAULT 0,
    body_type TEXT NOT NULL DEFAULT '',
    transmission TEXT NOT NULL DEFAULT '',
    fuel TEXT NOT NULL DEFAULT '',
    doors INTEGER NOT NULL DEFAULT 4,
    air_conditioning INTEGER NOT NULL DEFAULT 1,
    version TEXT NOT NULL DEFAULT '',
    color TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    available INTEGER NOT NULL DEFAULT 1,
    scores TEXT NOT NULL DEFAULT '{}'
)
"""

ITEMS_POSITION_INDEX = """
CREATE INDEX IF NOT EXISTS idx_items_position ON items(position)
"""

EMBEDDINGS_TABLE = """
CREATE TABLE IF NOT EXISTS embeddings (
    item_id TEXT PRIMARY KEY,
    vector TEXT NOT NULL,
    source_text TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

RULE_SNAPSHOTS_TABLE = """
CREATE TABLE IF NOT EXISTS rule_snapshots (
    jurisdiction TEXT PRIMARY KEY,
    source_url TEXT NOT NULL,
    fetched_at TEXT NOT NULL
)
"""

RULES_TABLE = """
CREATE TABLE IF NOT EXISTS rules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    jurisdiction TEXT NOT NULL,
    category TEXT NOT NULL,
    brand TEXT NOT NULL,
    model TEXT NOT NULL,
    min_year INTEGER NOT NULL,
    raw TEXT NOT NULL DEFAULT ''
)
"""

RULES_JURISDICTION_INDEX = """
CREATE INDEX IF NOT EXISTS idx_rules_jurisdiction ON rules(jurisdiction, category)
"""


async def initialize_catalog_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(ITEMS_TABLE)
        await db.execute(ITEMS_POSITION_INDEX)
        await db.execute(EMBEDDINGS_TABLE)
        await db.commit()


async def initialize_rules_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(RULE_SNAPSHOTS_TABLE)
        await db.execute(RULES_TABLE)
        await db.execute(RULES_JURISDICTION_INDEX)
        await db.commit()

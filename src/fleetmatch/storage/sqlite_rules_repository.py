"""SQLite-backed eligibility rules repository."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import aiosqlite

from fleetmatch.models.domain import EligibilityRule, RuleSet
from fleetmatch.storage.migrations import initialize_rules_db


class SQLiteRulesRepository:
    def __init__(self, db_path: str, ttl_days: int = 30) -> None:
        self._db_path = db_path
        self._ttl = timedelta(days=ttl_days)

    async def initialize(self) -> None:
        await initialize_rules_db(self._db_path)

    async def get_latest_snapshot(self, jurisdiction: str) -> RuleSet | None:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT * FROM rule_snapshots WHERE jurisdiction = ?", (jurisdiction,)
            ) as cursor:
                meta = await cursor.fetchone()
                if meta is None:
                    return None
            async with db.execute(
                "SELECT * FROM rules WHERE jurisdiction = ? ORDER BY id", (jurisdiction,)
            ) as cursor:
                rows = await cursor.fetchall()

        by_category: dict[str, list[EligibilityRule]] = {}
        for row in rows:
            by_category.setdefault(row["category"], []).append(self._row_to_rule(row))

        fetched_at = datetime.fromisoformat(meta["fetched_at"])
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        return RuleSet(
            jurisdiction=jurisdiction,
            fetched_at=fetched_at,
            ttl=self._ttl,
            source_provenance=meta["source_url"],
            rules_by_category=by_category,
        )

    async def list_rules(self, jurisdiction: str) -> list[EligibilityRule]:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT * FROM rules WHERE jurisdiction = ? ORDER BY id", (jurisdiction,)
            ) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_rule(row) for row in rows]

    async def replace_all_for_jurisdiction(
        self,
        jurisdiction: str,
        source_url: str,
        rules_by_category: dict[str, list[EligibilityRule]],
        fetched_at: datetime | None = None,
    ) -> int:
        """Swap in a new snapshot for ``jurisdiction``; returns rows written."""
        fetched_at = fetched_at or datetime.now(timezone.utc)
        rows = [
            (jurisdiction, category, r.brand, r.model, r.min_year, r.raw)
            for category, rules in rules_by_category.items()
            for r in rules
        ]
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("DELETE FROM rules WHERE jurisdiction = ?", (jurisdiction,))
            await db.executemany(
                "INSERT INTO rules (jurisdiction, category, brand, model, min_year, raw) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )
            await db.execute(
                "INSERT OR REPLACE INTO rule_snapshots (jurisdiction, source_url, fetched_at) "
                "VALUES (?, ?, ?)",
                (jurisdiction, source_url, fetched_at.isoformat()),
            )
            await db.commit()
        return len(rows)

    @staticmethod
    def _row_to_rule(row: aiosqlite.Row) -> EligibilityRule:
        return EligibilityRule(
            brand=row["brand"],
            model=row["model"],
            min_year=row["min_year"],
            raw=row["raw"],
        )

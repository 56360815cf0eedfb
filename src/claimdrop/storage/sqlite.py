"""SQLite store - persisted cooldowns and distribution history."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from claimdrop.models.outcomes import DistributionReport
from claimdrop.models.records import CooldownEntry, DistributionRecord

SCHEMA = """
-- Last successful distribution per requester
CREATE TABLE IF NOT EXISTS cooldowns (
    requester_id TEXT PRIMARY KEY,
    last_address TEXT NOT NULL,
    last_success_at REAL NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Finished distributions
CREATE TABLE IF NOT EXISTS distributions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    requester_id TEXT NOT NULL,
    address TEXT NOT NULL,
    status TEXT NOT NULL,
    reason TEXT,
    tx_hashes TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_distributions_requester ON distributions(requester_id);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStateStore:
    """SQLite-backed CooldownStore and DistributionHistory."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Cooldowns ──────────────────────────────────────────

    async def get_cooldown(self, requester_id: str) -> CooldownEntry | None:
        async with self.db.execute(
            "SELECT * FROM cooldowns WHERE requester_id=?", (requester_id,)
        ) as cur:
            row = await cur.fetchone()
            if row is None:
                return None
            return CooldownEntry(
                requester_id=row["requester_id"],
                last_address=row["last_address"],
                last_success_at=row["last_success_at"],
            )

    async def put_cooldown(self, entry: CooldownEntry) -> None:
        await self.db.execute(
            "INSERT INTO cooldowns (requester_id, last_address, last_success_at, updated_at)"
            " VALUES (?, ?, ?, ?)"
            " ON CONFLICT(requester_id) DO UPDATE SET"
            " last_address=excluded.last_address,"
            " last_success_at=excluded.last_success_at, updated_at=excluded.updated_at",
            (entry.requester_id, entry.last_address, entry.last_success_at, _now()),
        )
        await self.db.commit()

    # ── Distribution history ───────────────────────────────

    async def record_distribution(self, report: DistributionReport) -> None:
        await self.db.execute(
            "INSERT INTO distributions"
            " (requester_id, address, status, reason, tx_hashes, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (
                report.requester_id, report.address, report.status,
                report.reason, json.dumps(report.hashes), _now(),
            ),
        )
        await self.db.commit()

    async def get_recent_distributions(self, limit: int = 20) -> list[DistributionRecord]:
        async with self.db.execute(
            "SELECT * FROM distributions ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                DistributionRecord(
                    requester_id=row["requester_id"],
                    address=row["address"],
                    status=row["status"],
                    reason=row["reason"],
                    tx_hashes=json.loads(row["tx_hashes"] or "[]"),
                    created_at=row["created_at"],
                )
                async for row in cur
            ]

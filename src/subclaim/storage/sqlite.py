"""SQLite implementation of the ClaimStore protocol."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from subclaim.errors import InvalidTransitionError
from subclaim.models.records import (
    ActivityRecord,
    ClaimRecord,
    ClaimStatus,
    FAILED_TX_HASH,
    PENDING_TX_HASH,
    normalize_address,
    now_ms,
)
from subclaim.storage.common import blocks_new_claim, iso_now, stale_cutoff

log = logging.getLogger(__name__)

SCHEMA = """
-- One claim per wallet address
CREATE TABLE IF NOT EXISTS claims (
    wallet_address TEXT PRIMARY KEY,
    tx_hash TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('pending', 'complete', 'failed')),
    attempt_id TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_claims_status ON claims(status);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    wallet_address TEXT,
    tx_hash TEXT,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""

# Upsert that only overwrites failed (or stale pending) records. An active
# record makes the DO UPDATE a no-op, which shows up as rowcount == 0.
_PENDING_UPSERT = (
    "INSERT INTO claims"
    " (wallet_address, tx_hash, timestamp, status, attempt_id, created_at, updated_at)"
    " VALUES (?, ?, ?, 'pending', ?, ?, ?)"
    " ON CONFLICT(wallet_address) DO UPDATE SET"
    " tx_hash=excluded.tx_hash, timestamp=excluded.timestamp, status='pending',"
    " attempt_id=excluded.attempt_id, updated_at=excluded.updated_at"
    " WHERE claims.status='failed'"
    " OR (claims.status='pending' AND ? IS NOT NULL AND claims.timestamp < ?)"
)


class SQLiteClaimStore:
    """SQLite-backed implementation of the ClaimStore protocol.

    Every transition is a single conditional statement, so the
    compare-and-set holds even when several processes share the file.
    """

    def __init__(self, db_path: str, pending_ttl: int | None = None) -> None:
        self._db_path = db_path
        self._pending_ttl = pending_ttl
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

    # ── Reads ──────────────────────────────────────────────

    async def get(self, address: str) -> ClaimRecord | None:
        async with self.db.execute(
            "SELECT * FROM claims WHERE wallet_address=?", (normalize_address(address),)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_claim(row) if row else None

    async def check(self, address: str) -> ClaimRecord | None:
        record = await self.get(address)
        if blocks_new_claim(record, stale_cutoff(self._pending_ttl)):
            return record
        return None

    async def list_claims(self, status: ClaimStatus | None = None) -> list[ClaimRecord]:
        if status:
            async with self.db.execute(
                "SELECT * FROM claims WHERE status=? ORDER BY timestamp",
                (ClaimStatus(status).value,),
            ) as cur:
                return [_row_to_claim(row) async for row in cur]
        async with self.db.execute("SELECT * FROM claims ORDER BY timestamp") as cur:
            return [_row_to_claim(row) async for row in cur]

    # ── Transitions ────────────────────────────────────────

    async def record_pending(
        self,
        address: str,
        timestamp: int | None = None,
        tx_hash: str = PENDING_TX_HASH,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        addr = normalize_address(address)
        ts = timestamp if timestamp is not None else now_ms()
        cutoff = stale_cutoff(self._pending_ttl)
        now = iso_now()

        cur = await self.db.execute(
            _PENDING_UPSERT,
            (addr, tx_hash, ts, attempt_id, now, now, cutoff, cutoff),
        )
        created = cur.rowcount > 0
        await cur.close()
        await self.db.commit()

        if not created:
            existing = await self.get(addr)
            log.info("Refused duplicate pending claim for %s", addr[:12])
            assert existing is not None
            return existing

        log.debug("Recorded pending claim for %s", addr[:12])
        return ClaimRecord(
            wallet_address=addr,
            tx_hash=tx_hash,
            timestamp=ts,
            status=ClaimStatus.PENDING,
            attempt_id=attempt_id,
        )

    async def record_complete(
        self,
        address: str,
        tx_hash: str,
        timestamp: int | None = None,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        return await self._finish(
            address, ClaimStatus.COMPLETE, tx_hash, timestamp, attempt_id,
        )

    async def record_failed(
        self,
        address: str,
        tx_hash: str = FAILED_TX_HASH,
        timestamp: int | None = None,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        return await self._finish(
            address, ClaimStatus.FAILED, tx_hash, timestamp, attempt_id,
        )

    async def record_broadcast(
        self,
        address: str,
        tx_hash: str,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        addr = normalize_address(address)
        cur = await self.db.execute(
            "UPDATE claims SET tx_hash=?, updated_at=?"
            " WHERE wallet_address=? AND status='pending'"
            " AND (? IS NULL OR attempt_id=?)",
            (tx_hash, iso_now(), addr, attempt_id, attempt_id),
        )
        updated = cur.rowcount > 0
        await cur.close()
        await self.db.commit()

        record = await self.get(addr)
        if not updated or record is None:
            current = record.status.value if record else None
            if record is not None and record.status == ClaimStatus.PENDING:
                current = "pending (other attempt)"
            raise InvalidTransitionError(addr, current, ClaimStatus.PENDING.value)

        log.debug("Pending claim for %s broadcast as %s", addr[:12], tx_hash[:16])
        return record

    async def _finish(
        self,
        address: str,
        target: ClaimStatus,
        tx_hash: str,
        timestamp: int | None,
        attempt_id: str | None,
    ) -> ClaimRecord:
        addr = normalize_address(address)
        ts = timestamp if timestamp is not None else now_ms()

        cur = await self.db.execute(
            "UPDATE claims SET tx_hash=?, timestamp=?, status=?, updated_at=?"
            " WHERE wallet_address=? AND status='pending'"
            " AND (? IS NULL OR attempt_id=?)",
            (tx_hash, ts, target.value, iso_now(), addr, attempt_id, attempt_id),
        )
        updated = cur.rowcount > 0
        await cur.close()
        await self.db.commit()

        record = await self.get(addr)
        if not updated or record is None:
            current = record.status.value if record else None
            if record is not None and record.status == ClaimStatus.PENDING:
                current = "pending (other attempt)"
            raise InvalidTransitionError(addr, current, target.value)

        log.debug("Claim for %s -> %s (%s)", addr[:12], target.value, tx_hash[:16])
        return record

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        address: str | None = None,
        tx_hash: str | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, wallet_address, tx_hash, message, created_at)"
            " VALUES (?, ?, ?, ?, ?)",
            (
                event_type,
                normalize_address(address) if address else None,
                tx_hash,
                message,
                iso_now(),
            ),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    wallet_address=row["wallet_address"],
                    tx_hash=row["tx_hash"],
                    message=row["message"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


# ── Row converters ─────────────────────────────────────────


def _row_to_claim(row: aiosqlite.Row) -> ClaimRecord:
    return ClaimRecord(
        wallet_address=row["wallet_address"],
        tx_hash=row["tx_hash"],
        timestamp=row["timestamp"],
        status=ClaimStatus(row["status"]),
        attempt_id=row["attempt_id"],
    )

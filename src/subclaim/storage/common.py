"""Helpers shared by the ClaimStore implementations."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from subclaim.models.records import ClaimRecord, ClaimStatus, now_ms


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def stale_cutoff(pending_ttl: int | None) -> int | None:
    """Pending records with a timestamp before this (ms) no longer block."""
    if not pending_ttl:
        return None
    return now_ms() - pending_ttl * 1000


def blocks_new_claim(record: ClaimRecord | None, cutoff: int | None) -> bool:
    if record is None or not record.is_active:
        return False
    if record.status == ClaimStatus.PENDING and cutoff is not None:
        return record.timestamp >= cutoff
    return True


class KeyedLock:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

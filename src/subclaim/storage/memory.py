"""In-process implementation of the ClaimStore protocol."""

from __future__ import annotations

import logging
from dataclasses import replace

from subclaim.errors import InvalidTransitionError
from subclaim.models.records import (
    ActivityRecord,
    ClaimRecord,
    ClaimStatus,
    FAILED_TX_HASH,
    PENDING_TX_HASH,
    can_transition,
    normalize_address,
    now_ms,
)
from subclaim.storage.common import KeyedLock, blocks_new_claim, iso_now, stale_cutoff

log = logging.getLogger(__name__)


class MemoryClaimStore:
    """Dict-backed ClaimStore. Writes to one address are serialized by a
    per-address lock; different addresses never contend.

    State is lost on restart, so this is meant for tests and single-process
    development runs.
    """

    def __init__(self, pending_ttl: int | None = None) -> None:
        self._pending_ttl = pending_ttl
        self._claims: dict[str, ClaimRecord] = {}
        self._activity: list[ActivityRecord] = []
        self._locks = KeyedLock()

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, address: str) -> ClaimRecord | None:
        record = self._claims.get(normalize_address(address))
        return replace(record) if record else None

    async def check(self, address: str) -> ClaimRecord | None:
        record = await self.get(address)
        if blocks_new_claim(record, stale_cutoff(self._pending_ttl)):
            return record
        return None

    async def list_claims(self, status: ClaimStatus | None = None) -> list[ClaimRecord]:
        records = sorted(self._claims.values(), key=lambda r: r.timestamp)
        if status:
            records = [r for r in records if r.status == ClaimStatus(status)]
        return [replace(r) for r in records]

    async def record_pending(
        self,
        address: str,
        timestamp: int | None = None,
        tx_hash: str = PENDING_TX_HASH,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        addr = normalize_address(address)
        async with self._locks.hold(addr):
            existing = self._claims.get(addr)
            if blocks_new_claim(existing, stale_cutoff(self._pending_ttl)):
                log.info("Refused duplicate pending claim for %s", addr[:12])
                return replace(existing)

            record = ClaimRecord(
                wallet_address=addr,
                tx_hash=tx_hash,
                timestamp=timestamp if timestamp is not None else now_ms(),
                status=ClaimStatus.PENDING,
                attempt_id=attempt_id,
            )
            self._claims[addr] = record
            log.debug("Recorded pending claim for %s", addr[:12])
            return replace(record)

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
        async with self._locks.hold(addr):
            existing = self._claims.get(addr)
            if existing is None or existing.status != ClaimStatus.PENDING:
                raise InvalidTransitionError(
                    addr, existing.status.value if existing else None,
                    ClaimStatus.PENDING.value,
                )
            if attempt_id is not None and existing.attempt_id != attempt_id:
                raise InvalidTransitionError(
                    addr, "pending (other attempt)", ClaimStatus.PENDING.value,
                )

            record = replace(existing, tx_hash=tx_hash)
            self._claims[addr] = record
            log.debug("Pending claim for %s broadcast as %s", addr[:12], tx_hash[:16])
            return replace(record)

    async def _finish(
        self,
        address: str,
        target: ClaimStatus,
        tx_hash: str,
        timestamp: int | None,
        attempt_id: str | None,
    ) -> ClaimRecord:
        addr = normalize_address(address)
        async with self._locks.hold(addr):
            existing = self._claims.get(addr)
            current = existing.status if existing else None
            if existing is None or not can_transition(current, target):
                raise InvalidTransitionError(
                    addr, current.value if current else None, target.value,
                )
            if attempt_id is not None and existing.attempt_id != attempt_id:
                raise InvalidTransitionError(addr, "pending (other attempt)", target.value)

            record = replace(
                existing,
                tx_hash=tx_hash,
                timestamp=timestamp if timestamp is not None else now_ms(),
                status=target,
            )
            self._claims[addr] = record
            log.debug("Claim for %s -> %s (%s)", addr[:12], target.value, tx_hash[:16])
            return replace(record)

    async def log_activity(
        self,
        event_type: str,
        message: str,
        address: str | None = None,
        tx_hash: str | None = None,
    ) -> None:
        self._activity.append(
            ActivityRecord(
                id=len(self._activity) + 1,
                event_type=event_type,
                wallet_address=normalize_address(address) if address else None,
                tx_hash=tx_hash,
                message=message,
                created_at=iso_now(),
            )
        )

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        return list(reversed(self._activity))[:limit]

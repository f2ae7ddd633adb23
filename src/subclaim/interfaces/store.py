"""ClaimStore protocol - keyed claim records with per-address compare-and-set."""

from __future__ import annotations

from typing import Protocol

from subclaim.models.records import ActivityRecord, ClaimRecord, ClaimStatus


class ClaimStore(Protocol):
    """Durable store mapping a normalized wallet address to its claim record.

    Operations on the same address are serialized. ``record_pending`` is a
    compare-and-set: it only writes when no pending/complete record exists.
    """

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    # ── Reads ──────────────────────────────────────────────

    async def check(self, address: str) -> ClaimRecord | None:
        """Active (pending or complete) record for ``address``, else None."""
        ...

    async def get(self, address: str) -> ClaimRecord | None:
        """Record for ``address`` regardless of status."""
        ...

    async def list_claims(self, status: ClaimStatus | None = None) -> list[ClaimRecord]:
        ...

    # ── Transitions ────────────────────────────────────────

    async def record_pending(
        self,
        address: str,
        timestamp: int | None = None,
        tx_hash: str = "pending",
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        """Create a pending record unless an active one exists.

        Returns the existing active record unchanged when there is one.
        """
        ...

    async def record_complete(
        self,
        address: str,
        tx_hash: str,
        timestamp: int | None = None,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        """pending -> complete. Raises InvalidTransitionError otherwise."""
        ...

    async def record_failed(
        self,
        address: str,
        tx_hash: str = "failed",
        timestamp: int | None = None,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        """pending -> failed. Raises InvalidTransitionError otherwise."""
        ...

    async def record_broadcast(
        self,
        address: str,
        tx_hash: str,
        attempt_id: str | None = None,
    ) -> ClaimRecord:
        """Attach a broadcast but unconfirmed tx hash to a pending record.

        The record stays pending and keeps its timestamp. Raises
        InvalidTransitionError unless the record is pending.
        """
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        address: str | None = None,
        tx_hash: str | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...

"""Claim data API - the sole interface between the claim backend and a UI."""

from __future__ import annotations

import logging

from subclaim.claims.orchestrator import ClaimOrchestrator
from subclaim.claims.status import ClaimStatusQuery
from subclaim.interfaces.minter import TokenMinter
from subclaim.interfaces.store import ClaimStore
from subclaim.models.outcomes import ClaimOutcome
from subclaim.models.records import (
    ActivityRecord,
    ClaimRecord,
    ClaimStatusView,
    PENDING_TX_HASH,
    TransactionStatus,
    normalize_address,
)

log = logging.getLogger(__name__)


class ClaimDataAPI:
    """Exposes claim submission, status polling and balances.

    Results are dataclasses; call ``to_dict()`` / ``outcome_to_dict()``
    for the JSON shape the frontend expects.
    """

    def __init__(
        self,
        store: ClaimStore,
        orchestrator: ClaimOrchestrator,
        minter: TokenMinter,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._status = ClaimStatusQuery(store)
        self._minter = minter

    async def claim_status(self, address: str) -> ClaimStatusView:
        return await self._status.status(address)

    async def submit_claim(self, address: str, credential: str) -> ClaimOutcome:
        return await self._orchestrator.claim(address, credential)

    async def get_balance(self, address: str) -> str:
        return await self._minter.get_balance(address)

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        return await self._store.get_recent_activity(limit)

    async def transaction_status(self, tx_hash: str) -> TransactionStatus:
        return await self._minter.get_transaction_status(tx_hash)

    async def release_pending(self, address: str) -> ClaimRecord:
        return await release_pending(self._store, address)


async def release_pending(store: ClaimStore, address: str) -> ClaimRecord:
    """Mark a stuck pending claim failed so the wallet may retry.

    Raises InvalidTransitionError unless the record is pending.
    """
    addr = normalize_address(address)
    previous = await store.get(addr)
    record = await store.record_failed(addr)
    broadcast = previous.tx_hash if previous and previous.tx_hash != PENDING_TX_HASH else None
    log.warning("Released pending claim for %s (tx=%s)", addr[:12], broadcast)
    await store.log_activity(
        "claim_released", "Pending claim released by operator",
        address=addr, tx_hash=broadcast,
    )
    return record

"""Status query - read-only view of a wallet's claim."""

from __future__ import annotations

from subclaim.interfaces.store import ClaimStore
from subclaim.models.records import ClaimStatusView


class ClaimStatusQuery:
    """Answers "has this wallet claimed?" for frontend polling. Never writes."""

    def __init__(self, store: ClaimStore) -> None:
        self._store = store

    async def status(self, address: str) -> ClaimStatusView:
        record = await self._store.check(address)
        return ClaimStatusView.from_record(record)

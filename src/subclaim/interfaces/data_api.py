"""DataAPI protocol - the surface consumed by the claim frontend."""

from __future__ import annotations

from typing import Protocol

from subclaim.models.outcomes import ClaimOutcome
from subclaim.models.records import (
    ActivityRecord,
    ClaimRecord,
    ClaimStatusView,
    TransactionStatus,
)


class DataAPI(Protocol):
    """Frontend-facing claim operations."""

    async def claim_status(self, address: str) -> ClaimStatusView:
        ...

    async def submit_claim(self, address: str, credential: str) -> ClaimOutcome:
        ...

    async def get_balance(self, address: str) -> str:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...

    async def transaction_status(self, tx_hash: str) -> TransactionStatus:
        ...

    async def release_pending(self, address: str) -> ClaimRecord:
        """Operator action: mark a stuck pending claim as failed."""
        ...

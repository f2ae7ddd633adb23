"""Claim record types and the claim state transition table."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

PENDING_TX_HASH = "pending"
FAILED_TX_HASH = "failed"


class ClaimStatus(str, Enum):
    """Lifecycle state of a claim record."""

    PENDING = "pending"  # mint in flight
    COMPLETE = "complete"
    FAILED = "failed"


# Allowed transitions; ``None`` stands for "no record".
TRANSITIONS: dict[ClaimStatus | None, frozenset[ClaimStatus]] = {
    None: frozenset({ClaimStatus.PENDING}),
    ClaimStatus.FAILED: frozenset({ClaimStatus.PENDING}),
    ClaimStatus.PENDING: frozenset({ClaimStatus.COMPLETE, ClaimStatus.FAILED}),
    ClaimStatus.COMPLETE: frozenset(),
}

ACTIVE_STATUSES = frozenset({ClaimStatus.PENDING, ClaimStatus.COMPLETE})


def can_transition(current: ClaimStatus | None, target: ClaimStatus) -> bool:
    return target in TRANSITIONS[current]


def normalize_address(address: str) -> str:
    """Canonical store key for a wallet address."""
    return address.strip().lower()


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ClaimRecord:
    """One claim per wallet address."""

    wallet_address: str
    tx_hash: str
    timestamp: int  # ms since epoch
    status: ClaimStatus = ClaimStatus.PENDING
    attempt_id: str | None = None

    @property
    def is_active(self) -> bool:
        """Pending and complete records block new claims."""
        return self.status in ACTIVE_STATUSES


@dataclass
class ClaimStatusView:
    """Read-only claim status exposed to the frontend."""

    has_claimed: bool
    tx_hash: str | None = None
    timestamp: int | None = None
    status: ClaimStatus | None = None

    @classmethod
    def from_record(cls, record: ClaimRecord | None) -> ClaimStatusView:
        if record is None:
            return cls(has_claimed=False)
        return cls(
            has_claimed=True,
            tx_hash=record.tx_hash,
            timestamp=record.timestamp,
            status=record.status,
        )

    def to_dict(self) -> dict:
        if not self.has_claimed:
            return {"hasClaimed": False}
        return {
            "hasClaimed": True,
            "txHash": self.tx_hash,
            "timestamp": self.timestamp,
            "status": self.status.value if self.status else None,
        }


@dataclass
class MintResult:
    """Confirmed mint transaction."""

    transaction_id: str
    amount: int  # whole tokens
    block_number: int | None = None


@dataclass
class ActivityRecord:
    """A single claim activity log entry."""

    id: int
    event_type: str
    wallet_address: str | None
    tx_hash: str | None
    message: str
    created_at: str


class TransactionState(str, Enum):
    """On-chain state of a mint transaction."""

    NOT_FOUND = "not_found"
    PENDING = "pending"  # in the mempool
    MINING = "mining"  # in a block, receipt not served yet
    CONFIRMED = "confirmed"
    FAILED = "failed"
    UNKNOWN = "unknown"  # the node could not be asked


@dataclass
class TransactionStatus:
    """Result of looking up a transaction by hash."""

    tx_hash: str
    state: TransactionState
    confirmations: int = 0
    block_number: int | None = None
    gas_used: int | None = None
    error: str | None = None

    @property
    def settled(self) -> bool:
        """True when the transaction can no longer land."""
        return self.state in (TransactionState.NOT_FOUND, TransactionState.FAILED)

    def to_dict(self) -> dict:
        data: dict = {
            "txHash": self.tx_hash,
            "status": self.state.value,
            "confirmations": self.confirmations,
        }
        if self.block_number is not None:
            data["blockNumber"] = self.block_number
        if self.gas_used is not None:
            data["gasUsed"] = str(self.gas_used)
        if self.error:
            data["error"] = self.error
        return data

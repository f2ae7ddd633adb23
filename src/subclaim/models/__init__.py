"""Data models for subclaim."""

from subclaim.models.records import (
    ACTIVE_STATUSES,
    FAILED_TX_HASH,
    PENDING_TX_HASH,
    TRANSITIONS,
    ActivityRecord,
    ClaimRecord,
    ClaimStatus,
    ClaimStatusView,
    MintResult,
    TransactionState,
    TransactionStatus,
    can_transition,
    normalize_address,
    now_ms,
)
from subclaim.models.outcomes import (
    AlreadyClaimed,
    ClaimOutcome,
    MintFailed,
    Success,
    SubscriptionRequired,
    VerificationFailed,
    outcome_to_dict,
)
from subclaim.models.config import ChainConfig, ServiceConfig, StorageConfig, YouTubeConfig

__all__ = [
    "ACTIVE_STATUSES", "FAILED_TX_HASH", "PENDING_TX_HASH", "TRANSITIONS",
    "ActivityRecord", "ClaimRecord", "ClaimStatus", "ClaimStatusView", "MintResult",
    "TransactionState", "TransactionStatus",
    "can_transition", "normalize_address", "now_ms",
    "AlreadyClaimed", "ClaimOutcome", "MintFailed", "Success",
    "SubscriptionRequired", "VerificationFailed", "outcome_to_dict",
    "ChainConfig", "ServiceConfig", "StorageConfig", "YouTubeConfig",
]

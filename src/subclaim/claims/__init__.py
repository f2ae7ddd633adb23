"""Claim state machine and read path."""

from subclaim.claims.orchestrator import CLAIM_AMOUNT, ClaimOrchestrator
from subclaim.claims.status import ClaimStatusQuery

__all__ = ["CLAIM_AMOUNT", "ClaimOrchestrator", "ClaimStatusQuery"]

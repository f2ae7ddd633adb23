"""Claim orchestrator - the verify -> pending -> mint -> record state machine."""

from __future__ import annotations

import logging
import uuid

from subclaim.errors import InvalidTransitionError, MintError, VerificationError
from subclaim.interfaces.minter import TokenMinter
from subclaim.interfaces.store import ClaimStore
from subclaim.interfaces.verifier import SubscriptionVerifier
from subclaim.models.outcomes import (
    AlreadyClaimed,
    ClaimOutcome,
    MintFailed,
    Success,
    SubscriptionRequired,
    VerificationFailed,
)
from subclaim.models.records import FAILED_TX_HASH, PENDING_TX_HASH, normalize_address, now_ms

log = logging.getLogger(__name__)

CLAIM_AMOUNT = 250  # whole tokens per wallet


class ClaimOrchestrator:
    """Runs one claim attempt per call and reports a typed outcome.

    Steps, in order:
    1. Normalize the wallet address.
    2. Active record in the store -> AlreadyClaimed.
    3. Verify the subscription (error -> VerificationFailed,
       not subscribed -> SubscriptionRequired).
    4. Create the pending record. If another attempt got there first the
       store hands back its record instead -> AlreadyClaimed.
    5. Mint, then promote the record to complete or mark it failed. A
       mint that was broadcast but never confirmed leaves the record
       pending on its tx hash for an operator to settle.

    The pending record is written before minting so that at most one
    attempt per address ever reaches the mint call.
    """

    def __init__(
        self,
        store: ClaimStore,
        verifier: SubscriptionVerifier,
        minter: TokenMinter,
    ) -> None:
        self._store = store
        self._verifier = verifier
        self._minter = minter

    async def claim(self, address: str, credential: str) -> ClaimOutcome:
        addr = normalize_address(address)

        # 1. Existing active claim
        existing = await self._store.check(addr)
        if existing is not None:
            log.info(
                "Claim for %s rejected: already %s (%s)",
                addr[:12], existing.status.value, existing.tx_hash[:16],
            )
            return AlreadyClaimed(tx_hash=existing.tx_hash)

        # 2. Subscription
        try:
            subscribed = await self._verifier.is_subscribed(credential)
        except VerificationError as exc:
            log.warning("Subscription verification failed for %s: %s", addr[:12], exc)
            await self._store.log_activity(
                "verification_failed", f"Verification failed: {exc}", address=addr,
            )
            return VerificationFailed(reason=str(exc) or "verification error")
        except Exception as exc:
            log.error("Unexpected verifier error for %s: %s", addr[:12], exc, exc_info=True)
            reason = str(exc) or type(exc).__name__
            await self._store.log_activity(
                "verification_failed", f"Verification failed: {reason}", address=addr,
            )
            return VerificationFailed(reason=reason)

        if not subscribed:
            log.info("Claim for %s rejected: not subscribed", addr[:12])
            await self._store.log_activity(
                "claim_rejected", "Not subscribed to channel", address=addr,
            )
            return SubscriptionRequired()

        # 3. Pending record (compare-and-set)
        attempt_id = uuid.uuid4().hex
        record = await self._store.record_pending(
            addr, timestamp=now_ms(), tx_hash=PENDING_TX_HASH, attempt_id=attempt_id,
        )
        if record.attempt_id != attempt_id:
            log.info("Claim for %s lost race to a concurrent attempt", addr[:12])
            return AlreadyClaimed(tx_hash=record.tx_hash)

        await self._store.log_activity(
            "claim_started", f"Minting {CLAIM_AMOUNT} tokens", address=addr,
        )

        # 4. Mint
        try:
            result = await self._minter.mint(addr, CLAIM_AMOUNT)
        except MintError as exc:
            if exc.in_flight:
                return await self._unconfirmed(addr, attempt_id, exc)
            return await self._fail(addr, attempt_id, str(exc) or exc.reason)
        except Exception as exc:
            log.error("Unexpected minter error for %s: %s", addr[:12], exc, exc_info=True)
            return await self._fail(addr, attempt_id, str(exc) or type(exc).__name__)

        # 5. Promote
        tx_hash = result.transaction_id
        try:
            await self._store.record_complete(
                addr, tx_hash, timestamp=now_ms(), attempt_id=attempt_id,
            )
        except InvalidTransitionError as exc:
            # Tokens were minted; the claim record no longer belongs to this attempt.
            log.error("Minted for %s but could not complete claim: %s", addr[:12], exc)
        await self._store.log_activity(
            "claim_success",
            f"Minted {CLAIM_AMOUNT} tokens",
            address=addr,
            tx_hash=tx_hash,
        )
        log.info("Claim for %s succeeded (tx=%s)", addr[:12], tx_hash[:16])
        return Success(tx_hash=tx_hash)

    async def _fail(self, addr: str, attempt_id: str, reason: str) -> MintFailed:
        log.warning("Mint failed for %s: %s", addr[:12], reason)
        try:
            await self._store.record_failed(
                addr, FAILED_TX_HASH, timestamp=now_ms(), attempt_id=attempt_id,
            )
        except InvalidTransitionError as exc:
            log.error("Could not mark claim failed for %s: %s", addr[:12], exc)
        await self._store.log_activity(
            "claim_failed", f"Mint failed: {reason}", address=addr,
        )
        return MintFailed(reason=reason)

    async def _unconfirmed(self, addr: str, attempt_id: str, exc: MintError) -> MintFailed:
        # The transaction may still land, so the record must keep blocking.
        reason = str(exc) or exc.reason
        log.error(
            "Mint for %s broadcast but not confirmed (tx=%s): %s",
            addr[:12], exc.tx_hash, reason,
        )
        try:
            await self._store.record_broadcast(addr, exc.tx_hash, attempt_id=attempt_id)
        except InvalidTransitionError as err:
            log.error("Could not attach tx to pending claim for %s: %s", addr[:12], err)
        await self._store.log_activity(
            "claim_unconfirmed",
            f"Mint not confirmed: {reason}",
            address=addr,
            tx_hash=exc.tx_hash,
        )
        return MintFailed(reason=reason, tx_hash=exc.tx_hash)

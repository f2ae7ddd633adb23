"""Status query and the frontend data API."""

from __future__ import annotations

import pytest

from subclaim.claims.status import ClaimStatusQuery
from subclaim.errors import InvalidTransitionError
from subclaim.models.outcomes import (
    AlreadyClaimed,
    MintFailed,
    Success,
    SubscriptionRequired,
    outcome_to_dict,
)
from subclaim.models.records import ClaimStatus, ClaimStatusView, TransactionState

from tests.conftest import GOOD_TOKEN, WALLET, WALLET_MIXED
from tests.factories import seed_claim, seed_pending


async def test_status_unclaimed(store):
    view = await ClaimStatusQuery(store).status(WALLET)

    assert view == ClaimStatusView(has_claimed=False)
    assert view.to_dict() == {"hasClaimed": False}


async def test_status_after_success(data_api):
    outcome = await data_api.submit_claim(WALLET, GOOD_TOKEN)
    assert outcome == Success(tx_hash="0xaaa")

    view = await data_api.claim_status(WALLET)
    data = view.to_dict()
    assert data["hasClaimed"] is True
    assert data["txHash"] == "0xaaa"
    assert data["status"] == "complete"
    assert isinstance(data["timestamp"], int)


async def test_status_pending_counts_as_claimed(store):
    await seed_pending(store, WALLET_MIXED)

    view = await ClaimStatusQuery(store).status(WALLET_MIXED.lower())
    assert view.has_claimed is True
    assert view.status == ClaimStatus.PENDING
    assert view.tx_hash == "pending"


async def test_status_failed_is_not_claimed(store):
    await seed_claim(store, WALLET, status=ClaimStatus.FAILED)

    view = await ClaimStatusQuery(store).status(WALLET)
    assert view.has_claimed is False


async def test_status_does_not_write(store):
    await ClaimStatusQuery(store).status(WALLET)
    assert await store.get(WALLET) is None
    assert await store.get_recent_activity() == []


async def test_get_balance_passthrough(data_api):
    assert await data_api.get_balance(WALLET) == "250.0"


async def test_transaction_status_passthrough(data_api, mock_minter):
    mock_minter.tx_state = TransactionState.MINING

    status = await data_api.transaction_status("0xabc")

    assert status.tx_hash == "0xabc"
    assert status.state == TransactionState.MINING


async def test_release_pending(data_api, store):
    await seed_pending(store, WALLET)

    record = await data_api.release_pending(WALLET)

    assert record.status == ClaimStatus.FAILED
    assert (await data_api.claim_status(WALLET)).has_claimed is False
    activity = await data_api.get_recent_activity()
    assert activity[0].event_type == "claim_released"


async def test_release_requires_pending(data_api, store):
    await seed_claim(store, WALLET)

    with pytest.raises(InvalidTransitionError):
        await data_api.release_pending(WALLET)
    assert (await store.get(WALLET)).status == ClaimStatus.COMPLETE


# ── Outcome serialization ─────────────────────────────────────────


def test_outcome_dicts():
    assert outcome_to_dict(Success(tx_hash="0xaaa")) == {
        "outcome": "Success",
        "success": True,
        "message": "Tokens minted successfully",
        "retryable": False,
        "txHash": "0xaaa",
        "alreadyClaimed": False,
    }

    already = outcome_to_dict(AlreadyClaimed(tx_hash="pending"))
    assert already["alreadyClaimed"] is True
    assert already["retryable"] is False
    assert already["success"] is False

    failed = outcome_to_dict(MintFailed(reason="execution reverted"))
    assert failed["error"] == "execution reverted"
    assert failed["retryable"] is True
    assert "execution reverted" in failed["message"]

    required = outcome_to_dict(SubscriptionRequired())
    assert "txHash" not in required
    assert "error" not in required


def test_unconfirmed_mint_outcome_dict():
    data = outcome_to_dict(MintFailed(reason="no receipt after 120s", tx_hash="0xsent"))

    assert data["success"] is False
    assert data["retryable"] is False
    assert data["txHash"] == "0xsent"
    assert data["error"] == "no receipt after 120s"
    assert "not confirmed" in data["message"]

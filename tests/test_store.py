"""ClaimStore contract, run against both backends."""

from __future__ import annotations

import asyncio

import pytest

from subclaim.errors import InvalidTransitionError
from subclaim.models.records import ClaimStatus, now_ms
from subclaim.storage.memory import MemoryClaimStore
from subclaim.storage.sqlite import SQLiteClaimStore

from tests.conftest import OTHER_WALLET, WALLET, WALLET_MIXED
from tests.factories import seed_claim, seed_pending


# ── check ─────────────────────────────────────────────────────────


async def test_check_empty_store(store):
    assert await store.check(WALLET) is None
    assert await store.get(WALLET) is None


async def test_check_returns_pending_and_complete(store):
    await seed_pending(store, WALLET)
    record = await store.check(WALLET)
    assert record is not None
    assert record.status == ClaimStatus.PENDING
    assert record.tx_hash == "pending"

    await store.record_complete(WALLET, "0xabc")
    record = await store.check(WALLET)
    assert record.status == ClaimStatus.COMPLETE
    assert record.tx_hash == "0xabc"


async def test_check_ignores_failed_record(store):
    await seed_claim(store, WALLET, status=ClaimStatus.FAILED)

    assert await store.check(WALLET) is None
    raw = await store.get(WALLET)
    assert raw.status == ClaimStatus.FAILED
    assert raw.tx_hash == "failed"


async def test_check_is_case_insensitive(store):
    await seed_claim(store, WALLET_MIXED, tx_hash="0xmixed")

    record = await store.check(WALLET_MIXED.lower())
    assert record is not None
    assert record.wallet_address == WALLET_MIXED.lower()
    assert (await store.check(WALLET_MIXED.upper().replace("0X", "0x"))).tx_hash == "0xmixed"


# ── record_pending ────────────────────────────────────────────────


async def test_record_pending_creates_record(store):
    ts = now_ms()
    record = await store.record_pending(WALLET, timestamp=ts, attempt_id="a1")

    assert record.wallet_address == WALLET
    assert record.status == ClaimStatus.PENDING
    assert record.tx_hash == "pending"
    assert record.timestamp == ts
    assert record.attempt_id == "a1"


async def test_record_pending_refuses_duplicate_active(store):
    first = await store.record_pending(WALLET, attempt_id="a1")
    second = await store.record_pending(WALLET.upper().replace("0X", "0x"), attempt_id="a2")

    assert second.attempt_id == "a1"
    assert second.timestamp == first.timestamp

    await store.record_complete(WALLET, "0xdone", attempt_id="a1")
    third = await store.record_pending(WALLET, attempt_id="a3")
    assert third.status == ClaimStatus.COMPLETE
    assert third.tx_hash == "0xdone"


async def test_record_pending_overwrites_failed(store):
    await seed_claim(store, WALLET, status=ClaimStatus.FAILED)

    record = await store.record_pending(WALLET, attempt_id="retry")
    assert record.status == ClaimStatus.PENDING
    assert record.attempt_id == "retry"
    assert (await store.check(WALLET)).attempt_id == "retry"
    assert len(await store.list_claims()) == 1


async def test_concurrent_record_pending_single_winner(store):
    """Only one of many simultaneous pending writes for a key succeeds."""
    results = await asyncio.gather(*[
        store.record_pending(WALLET, attempt_id=f"attempt-{i}") for i in range(10)
    ])

    winners = {r.attempt_id for r in results}
    assert len(winners) == 1
    assert (await store.get(WALLET)).attempt_id in winners


async def test_addresses_are_independent(store):
    await seed_claim(store, WALLET)
    record = await store.record_pending(OTHER_WALLET, attempt_id="other")
    assert record.attempt_id == "other"


# ── record_complete / record_failed ───────────────────────────────


async def test_record_complete_requires_existing_record(store):
    with pytest.raises(InvalidTransitionError) as exc_info:
        await store.record_complete(WALLET, "0xabc")
    assert exc_info.value.current is None
    assert exc_info.value.target == "complete"
    assert await store.get(WALLET) is None


async def test_record_failed_requires_existing_record(store):
    with pytest.raises(InvalidTransitionError):
        await store.record_failed(WALLET)
    assert await store.get(WALLET) is None


async def test_complete_record_is_terminal(store):
    await seed_claim(store, WALLET, tx_hash="0xfirst")

    with pytest.raises(InvalidTransitionError):
        await store.record_complete(WALLET, "0xsecond")
    with pytest.raises(InvalidTransitionError):
        await store.record_failed(WALLET)
    assert (await store.get(WALLET)).tx_hash == "0xfirst"


async def test_failed_record_cannot_complete(store):
    await seed_claim(store, WALLET, status=ClaimStatus.FAILED)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await store.record_complete(WALLET, "0xlate")
    assert exc_info.value.current == "failed"


async def test_transition_checks_attempt_id(store):
    await store.record_pending(WALLET, attempt_id="mine")

    with pytest.raises(InvalidTransitionError):
        await store.record_complete(WALLET, "0xabc", attempt_id="someone-else")

    record = await store.record_complete(WALLET, "0xabc", timestamp=42, attempt_id="mine")
    assert record.status == ClaimStatus.COMPLETE
    assert record.timestamp == 42


# ── record_broadcast ──────────────────────────────────────────────


async def test_record_broadcast_keeps_claim_pending(store):
    await store.record_pending(WALLET, timestamp=1000, attempt_id="mine")

    record = await store.record_broadcast(WALLET, "0xsent", attempt_id="mine")

    assert record.status == ClaimStatus.PENDING
    assert record.tx_hash == "0xsent"
    assert record.timestamp == 1000
    assert (await store.check(WALLET)).tx_hash == "0xsent"


async def test_record_broadcast_checks_attempt_and_status(store):
    await store.record_pending(WALLET, attempt_id="mine")

    with pytest.raises(InvalidTransitionError):
        await store.record_broadcast(WALLET, "0xsent", attempt_id="someone-else")
    assert (await store.get(WALLET)).tx_hash == "pending"

    await store.record_complete(WALLET, "0xdone", attempt_id="mine")
    with pytest.raises(InvalidTransitionError) as exc_info:
        await store.record_broadcast(WALLET, "0xsent")
    assert exc_info.value.current == "complete"

    with pytest.raises(InvalidTransitionError):
        await store.record_broadcast(OTHER_WALLET, "0xsent")


# ── Listing & activity ────────────────────────────────────────────


async def test_list_claims_by_status(store):
    await seed_claim(store, WALLET, timestamp=1)
    await seed_claim(store, OTHER_WALLET, status=ClaimStatus.FAILED, timestamp=2)

    assert [r.wallet_address for r in await store.list_claims()] == [WALLET, OTHER_WALLET]
    failed = await store.list_claims(ClaimStatus.FAILED)
    assert [r.wallet_address for r in failed] == [OTHER_WALLET]


async def test_activity_log_newest_first(store):
    await store.log_activity("claim_started", "first", address=WALLET_MIXED)
    await store.log_activity("claim_success", "second", address=WALLET_MIXED, tx_hash="0xabc")

    entries = await store.get_recent_activity(10)
    assert [e.event_type for e in entries] == ["claim_success", "claim_started"]
    assert entries[0].wallet_address == WALLET_MIXED.lower()
    assert entries[0].tx_hash == "0xabc"
    assert len(await store.get_recent_activity(1)) == 1


# ── Stale pending TTL ─────────────────────────────────────────────


@pytest.fixture(params=["sqlite", "memory"])
async def ttl_store(request):
    if request.param == "sqlite":
        s = SQLiteClaimStore(":memory:", pending_ttl=60)
    else:
        s = MemoryClaimStore(pending_ttl=60)
    await s.initialize()
    yield s
    await s.close()


async def test_stale_pending_no_longer_blocks(ttl_store):
    old = now_ms() - 120_000
    await ttl_store.record_pending(WALLET, timestamp=old, attempt_id="abandoned")

    assert await ttl_store.check(WALLET) is None

    record = await ttl_store.record_pending(WALLET, attempt_id="fresh")
    assert record.attempt_id == "fresh"

    # The abandoned attempt can no longer touch the new record
    with pytest.raises(InvalidTransitionError):
        await ttl_store.record_complete(WALLET, "0xlate", attempt_id="abandoned")


async def test_recent_pending_still_blocks(ttl_store):
    await ttl_store.record_pending(WALLET, attempt_id="live")

    assert (await ttl_store.check(WALLET)).attempt_id == "live"
    record = await ttl_store.record_pending(WALLET, attempt_id="intruder")
    assert record.attempt_id == "live"


async def test_sqlite_store_persists_across_connections(tmp_path):
    db_path = str(tmp_path / "nested" / "claims.db")
    s = SQLiteClaimStore(db_path)
    await s.initialize()
    await seed_claim(s, WALLET, tx_hash="0xpersisted")
    await s.close()

    s = SQLiteClaimStore(db_path)
    await s.initialize()
    try:
        assert (await s.check(WALLET)).tx_hash == "0xpersisted"
    finally:
        await s.close()


async def test_memory_store_drops_idle_locks():
    s = MemoryClaimStore()
    await asyncio.gather(*[
        s.record_pending(f"0x{i:040x}", attempt_id=str(i)) for i in range(5)
    ])
    await s.record_complete("0x" + "0" * 40, "0xabc")

    assert len(s._locks) == 0

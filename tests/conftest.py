"""Shared fixtures for subclaim tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from subclaim.api.data_api import ClaimDataAPI
from subclaim.claims.orchestrator import ClaimOrchestrator
from subclaim.models.config import ServiceConfig, StorageConfig, YouTubeConfig, ChainConfig
from subclaim.storage.memory import MemoryClaimStore
from subclaim.storage.sqlite import SQLiteClaimStore

from tests.mocks import MockMinter, MockVerifier

WALLET = "0x1111111111111111111111111111111111111111"
WALLET_MIXED = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
OTHER_WALLET = "0x2222222222222222222222222222222222222222"

GOOD_TOKEN = "ya29.good-token"

CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add service info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Claim amount"] = "250 tokens"
    meta["Store backends"] = "sqlite, memory"


def make_test_config(**overrides) -> ServiceConfig:
    """Build a ServiceConfig suitable for testing."""
    defaults = dict(
        log_level="debug",
        youtube=YouTubeConfig(channel_id="UC_test_channel", timeout=1),
        chain=ChainConfig(
            rpc_url="http://127.0.0.1:8545",
            contract_address=CONTRACT_ADDRESS,
            private_key="0x" + "ab" * 32,
            chain_id=31337,
        ),
        storage=StorageConfig(backend="memory", db_path=":memory:"),
    )
    defaults.update(overrides)
    return ServiceConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture(params=["sqlite", "memory"])
async def store(request):
    """Initialized ClaimStore, once per backend."""
    if request.param == "sqlite":
        s = SQLiteClaimStore(":memory:")
    else:
        s = MemoryClaimStore()
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_verifier():
    return MockVerifier(subscribed=True)


@pytest.fixture
def mock_minter():
    return MockMinter(succeed=True, tx_hash="0xaaa")


@pytest.fixture
def orchestrator(store, mock_verifier, mock_minter):
    return ClaimOrchestrator(store, mock_verifier, mock_minter)


@pytest.fixture
def data_api(store, orchestrator, mock_minter):
    return ClaimDataAPI(store, orchestrator, mock_minter)

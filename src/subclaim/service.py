"""Claim service - wires all components together from configuration."""

from __future__ import annotations

import logging

from subclaim.api.data_api import ClaimDataAPI
from subclaim.chain.minter import Web3TokenMinter
from subclaim.claims.orchestrator import ClaimOrchestrator
from subclaim.errors import ConfigError
from subclaim.interfaces.data_api import DataAPI
from subclaim.interfaces.minter import TokenMinter
from subclaim.interfaces.store import ClaimStore
from subclaim.interfaces.verifier import SubscriptionVerifier
from subclaim.models.config import ServiceConfig
from subclaim.storage.memory import MemoryClaimStore
from subclaim.storage.sqlite import SQLiteClaimStore
from subclaim.youtube.verifier import YouTubeSubscriptionVerifier

log = logging.getLogger(__name__)


def build_store(cfg: ServiceConfig) -> ClaimStore:
    backend = cfg.storage.backend
    if backend == "sqlite":
        return SQLiteClaimStore(cfg.storage.db_path, pending_ttl=cfg.storage.pending_ttl)
    if backend == "memory":
        return MemoryClaimStore(pending_ttl=cfg.storage.pending_ttl)
    raise ConfigError(f"Unknown storage backend: {backend!r}")


class ClaimService:
    """Owns the claim store lifecycle and exposes the ClaimDataAPI.

    Collaborators default to the YouTube verifier and the web3 minter
    built from ``cfg``; pass them explicitly to substitute others.
    """

    def __init__(
        self,
        cfg: ServiceConfig,
        store: ClaimStore | None = None,
        verifier: SubscriptionVerifier | None = None,
        minter: TokenMinter | None = None,
    ) -> None:
        self._cfg = cfg
        self.store = store or build_store(cfg)
        self.verifier = verifier or YouTubeSubscriptionVerifier(
            cfg.youtube.channel_id, cfg.youtube.api_url, cfg.youtube.timeout,
        )
        self.minter = minter or Web3TokenMinter(
            cfg.chain.rpc_url,
            cfg.chain.contract_address,
            cfg.chain.private_key,
            chain_id=cfg.chain.chain_id,
            receipt_timeout=cfg.chain.receipt_timeout,
        )
        self.orchestrator = ClaimOrchestrator(self.store, self.verifier, self.minter)
        self.api: DataAPI = ClaimDataAPI(self.store, self.orchestrator, self.minter)

    async def start(self) -> None:
        log.info("Starting claim service")
        log.info("  Storage: %s", self._cfg.storage.backend)
        log.info("  Channel: %s", self._cfg.youtube.channel_id or "(not set)")
        log.info("  Contract: %s", self._cfg.chain.contract_address or "(not set)")
        await self.store.initialize()

    async def close(self) -> None:
        await self.store.close()
        log.info("Claim service shut down cleanly")

    async def __aenter__(self) -> ClaimService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

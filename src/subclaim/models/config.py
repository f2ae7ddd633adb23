"""Configuration models for the claim service."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class YouTubeConfig:
    """Subscription verification settings."""

    channel_id: str = ""  # loaded from env var SUBCLAIM_CHANNEL_ID
    api_url: str = "https://www.googleapis.com/youtube/v3"
    timeout: int = 10  # seconds


@dataclass
class ChainConfig:
    """Token contract and minting account."""

    rpc_url: str = ""
    contract_address: str = ""
    private_key: str = ""  # loaded from env var SUBCLAIM_PRIVATE_KEY
    chain_id: int | None = None  # queried from the node when unset
    receipt_timeout: int = 120  # seconds to wait for a mint receipt


@dataclass
class StorageConfig:
    """Claim store settings."""

    backend: str = "sqlite"  # "sqlite" or "memory"
    db_path: str = "~/.subclaim/claims.db"
    pending_ttl: int | None = None  # seconds; None keeps pending records forever


@dataclass
class ServiceConfig:
    """Complete service configuration."""

    log_level: str = "info"
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

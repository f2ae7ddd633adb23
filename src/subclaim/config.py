"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from subclaim.errors import ConfigError
from subclaim.models.config import ServiceConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "SUBCLAIM_",
) -> ServiceConfig:
    """Load service configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (SUBCLAIM_PRIVATE_KEY, etc.)
        2. TOML config file
        3. Defaults from ServiceConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                try:
                    raw = tomllib.load(f)
                except tomllib.TOMLDecodeError as exc:
                    raise ConfigError(f"Invalid config file {p}: {exc}") from exc

    cfg = ServiceConfig()

    # ── Service section ────────────────────────────────────
    service = raw.get("service", {})
    if v := service.get("log_level"):
        cfg.log_level = str(v)

    # ── YouTube section ────────────────────────────────────
    youtube = raw.get("youtube", {})
    if v := youtube.get("channel_id"):
        cfg.youtube.channel_id = str(v)
    if v := youtube.get("api_url"):
        cfg.youtube.api_url = str(v)
    if v := youtube.get("timeout"):
        cfg.youtube.timeout = int(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("rpc_url"):
        cfg.chain.rpc_url = str(v)
    if v := chain.get("contract_address"):
        cfg.chain.contract_address = str(v)
    if v := chain.get("private_key"):
        cfg.chain.private_key = str(v)
    if v := chain.get("chain_id"):
        cfg.chain.chain_id = int(v)
    if v := chain.get("receipt_timeout"):
        cfg.chain.receipt_timeout = int(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("backend"):
        cfg.storage.backend = str(v)
    if v := storage.get("db_path"):
        cfg.storage.db_path = str(v)
    if v := storage.get("pending_ttl"):
        cfg.storage.pending_ttl = int(v)

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get(f"{env_prefix}PRIVATE_KEY"):
        cfg.chain.private_key = key
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.chain.rpc_url = rpc
    if addr := os.environ.get(f"{env_prefix}CONTRACT_ADDRESS"):
        cfg.chain.contract_address = addr
    if channel := os.environ.get(f"{env_prefix}CHANNEL_ID"):
        cfg.youtube.channel_id = channel
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.storage.db_path = db

    if cfg.storage.backend not in ("sqlite", "memory"):
        raise ConfigError(f"Unknown storage backend: {cfg.storage.backend!r}")

    # Expand ~ in paths
    if cfg.storage.db_path != ":memory:":
        cfg.storage.db_path = str(Path(cfg.storage.db_path).expanduser())

    return cfg

"""CLI entry point for the subclaim service."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sys
from datetime import datetime, timezone

import click
from web3 import Web3

from subclaim.api.data_api import release_pending
from subclaim.chain.minter import Web3TokenMinter
from subclaim.claims.status import ClaimStatusQuery
from subclaim.config import load_config
from subclaim.errors import ConfigError, InvalidTransitionError
from subclaim.models.outcomes import outcome_to_dict
from subclaim.models.records import PENDING_TX_HASH, ClaimStatus
from subclaim.service import ClaimService, build_store


def _ts(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _load(ctx: click.Context):
    try:
        return load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _require_address(address: str) -> str:
    """Exit with error unless ``address`` is a valid EVM address."""
    if not Web3.is_address(address):
        click.echo(f"Error: {address!r} is not a valid wallet address.", err=True)
        sys.exit(1)
    return address


def _require_tx_hash(tx_hash: str) -> str:
    """Exit with error unless ``tx_hash`` looks like a 32-byte hex hash."""
    if not re.fullmatch(r"0x[0-9a-fA-F]{64}", tx_hash):
        click.echo(f"Error: {tx_hash!r} is not a valid transaction hash.", err=True)
        sys.exit(1)
    return tx_hash


def _require_chain(cfg):
    """Exit with error if the token contract is not fully configured."""
    if not (cfg.chain.rpc_url and cfg.chain.contract_address and cfg.chain.private_key):
        click.echo("Error: Token contract not configured.", err=True)
        click.echo(
            "Set SUBCLAIM_RPC_URL, SUBCLAIM_CONTRACT_ADDRESS and SUBCLAIM_PRIVATE_KEY"
            " or the [chain] section in config.",
            err=True,
        )
        sys.exit(1)


def _require_channel(cfg):
    """Exit with error if no YouTube channel is configured."""
    if not cfg.youtube.channel_id:
        click.echo("Error: No YouTube channel configured.", err=True)
        click.echo("Set SUBCLAIM_CHANNEL_ID or channel_id in [youtube].", err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """subclaim - one-time token rewards for YouTube subscribers."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show service configuration."""
    cfg = _load(ctx)
    ttl = f"{cfg.storage.pending_ttl}s" if cfg.storage.pending_ttl else "(never)"
    click.echo(f"Channel:      {cfg.youtube.channel_id or '(not set)'}")
    click.echo(f"YouTube API:  {cfg.youtube.api_url}")
    click.echo(f"RPC URL:      {cfg.chain.rpc_url or '(not set)'}")
    click.echo(f"Contract:     {cfg.chain.contract_address or '(not set)'}")
    click.echo(f"Chain ID:     {cfg.chain.chain_id or '(from node)'}")
    click.echo(f"Private key:  {'***configured***' if cfg.chain.private_key else '(not set)'}")
    click.echo(f"Storage:      {cfg.storage.backend}")
    click.echo(f"DB path:      {cfg.storage.db_path}")
    click.echo(f"Pending TTL:  {ttl}")


@cli.command()
@click.argument("address")
@click.option("--json", "as_json", is_flag=True, help="Print the frontend JSON shape")
@click.pass_context
def status(ctx: click.Context, address: str, as_json: bool) -> None:
    """Show the claim status of a wallet."""
    cfg = _load(ctx)
    _require_address(address)

    async def _status():
        store = build_store(cfg)
        await store.initialize()
        try:
            view = await ClaimStatusQuery(store).status(address)
        finally:
            await store.close()

        if as_json:
            click.echo(json.dumps(view.to_dict()))
            return
        if not view.has_claimed:
            click.echo("Not claimed.")
            return
        click.echo(f"Status:     {view.status.value}")
        click.echo(f"Tx hash:    {view.tx_hash}")
        click.echo(f"Updated:    {_ts(view.timestamp)}")

    asyncio.run(_status())


@cli.command()
@click.argument("address")
@click.pass_context
def balance(ctx: click.Context, address: str) -> None:
    """Show the reward token balance of a wallet."""
    cfg = _load(ctx)
    _require_address(address)
    _require_chain(cfg)

    async def _balance():
        minter = Web3TokenMinter(
            cfg.chain.rpc_url, cfg.chain.contract_address, cfg.chain.private_key,
            chain_id=cfg.chain.chain_id,
        )
        click.echo(f"Balance:    {await minter.get_balance(address)}")

    asyncio.run(_balance())


@cli.command("tx")
@click.argument("tx_hash")
@click.option("--json", "as_json", is_flag=True, help="Print the frontend JSON shape")
@click.pass_context
def tx_status(ctx: click.Context, tx_hash: str, as_json: bool) -> None:
    """Show where a mint transaction stands on-chain."""
    cfg = _load(ctx)
    _require_tx_hash(tx_hash)
    _require_chain(cfg)

    async def _tx():
        minter = Web3TokenMinter(
            cfg.chain.rpc_url, cfg.chain.contract_address, cfg.chain.private_key,
            chain_id=cfg.chain.chain_id,
        )
        return await minter.get_transaction_status(tx_hash)

    result = asyncio.run(_tx())
    if as_json:
        click.echo(json.dumps(result.to_dict()))
        return
    click.echo(f"Status:         {result.state.value}")
    click.echo(f"Confirmations:  {result.confirmations}")
    if result.block_number is not None:
        click.echo(f"Block:          {result.block_number}")
    if result.gas_used is not None:
        click.echo(f"Gas used:       {result.gas_used}")
    if result.error:
        click.echo(f"Error:          {result.error}")


# ── Claims ─────────────────────────────────────────────


@cli.command()
@click.argument("address")
@click.option("--token", required=True, envvar="SUBCLAIM_GOOGLE_TOKEN",
              help="Google OAuth access token of the subscriber")
@click.pass_context
def claim(ctx: click.Context, address: str, token: str) -> None:
    """Verify the subscription and mint the reward to ADDRESS."""
    cfg = _load(ctx)
    _require_address(address)
    _require_channel(cfg)
    _require_chain(cfg)

    async def _claim():
        async with ClaimService(cfg) as service:
            return await service.api.submit_claim(address, token)

    outcome = asyncio.run(_claim())
    data = outcome_to_dict(outcome)
    click.echo(f"{data['outcome']}: {data['message']}")
    if data.get("txHash"):
        click.echo(f"Tx hash:    {data['txHash']}")
    if not data["success"]:
        sys.exit(2)


@cli.command("claims")
@click.option("--status", "filter_status", default=None,
              type=click.Choice([s.value for s in ClaimStatus]),
              help="Filter by claim status")
@click.pass_context
def list_claims(ctx: click.Context, filter_status: str | None) -> None:
    """List recorded claims."""
    cfg = _load(ctx)

    async def _claims():
        store = build_store(cfg)
        await store.initialize()
        try:
            records = await store.list_claims(
                ClaimStatus(filter_status) if filter_status else None,
            )
            if not records:
                click.echo("No claims recorded.")
                return

            for r in records:
                click.echo(f"  [{r.status.value:8s}] {r.wallet_address} "
                           f"tx={r.tx_hash[:18]} at={_ts(r.timestamp)}")
        finally:
            await store.close()

    asyncio.run(_claims())


@cli.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of recent entries to show")
@click.pass_context
def activity(ctx: click.Context, limit: int) -> None:
    """Show recent claim activity."""
    cfg = _load(ctx)

    async def _activity():
        store = build_store(cfg)
        await store.initialize()
        try:
            entries = await store.get_recent_activity(limit)
            if not entries:
                click.echo("No activity recorded.")
                return

            for a in entries:
                who = a.wallet_address[:12] + "..." if a.wallet_address else "-"
                click.echo(f"  {a.created_at} {a.event_type:20s} {who} {a.message}")
        finally:
            await store.close()

    asyncio.run(_activity())


@cli.command()
@click.argument("address")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def release(ctx: click.Context, address: str, yes: bool) -> None:
    """Mark a stuck pending claim as failed so the wallet can retry.

    Only do this when the mint transaction is known not to have landed;
    check it first with `subclaim tx HASH`.
    """
    cfg = _load(ctx)
    _require_address(address)

    async def _pending_record():
        store = build_store(cfg)
        await store.initialize()
        try:
            return await store.get(address)
        finally:
            await store.close()

    record = asyncio.run(_pending_record())
    if record is None or record.status != ClaimStatus.PENDING:
        state = record.status.value if record else "no claim"
        click.echo(f"Nothing to release ({state}).", err=True)
        sys.exit(1)

    if record.tx_hash != PENDING_TX_HASH:
        click.echo(f"Broadcast tx:  {record.tx_hash}")

    if not yes:
        click.confirm(
            f"Release pending claim for {record.wallet_address} "
            f"(started {_ts(record.timestamp)})?",
            abort=True,
        )

    async def _release():
        store = build_store(cfg)
        await store.initialize()
        try:
            await release_pending(store, address)
        finally:
            await store.close()

    try:
        asyncio.run(_release())
    except InvalidTransitionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Released pending claim for {record.wallet_address}.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

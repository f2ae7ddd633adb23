"""ERC-20 reward minter - submits mint(address,uint256) with web3."""

from __future__ import annotations

import asyncio
import logging

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    TransactionNotFound,
    Web3Exception,
)

from subclaim.errors import ConfigError, MintError
from subclaim.models.records import MintResult, TransactionState, TransactionStatus

log = logging.getLogger(__name__)

TOKEN_DECIMALS = 18

TOKEN_ABI = [
    {
        "name": "mint",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


def to_base_units(amount: int, decimals: int = TOKEN_DECIMALS) -> int:
    return amount * 10 ** decimals


def format_units(raw: int, decimals: int = TOKEN_DECIMALS) -> str:
    """Render a base-unit amount as a decimal string ("250.0", "0.5")."""
    whole, frac = divmod(raw, 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{whole}.{frac_str}"


def classify_error(exc: Exception) -> str:
    """Short classification of a mint failure from its message."""
    msg = str(exc).lower()
    if "already" in msg and ("claim" in msg or "mint" in msg):
        return "already_claimed"
    if "insufficient funds" in msg:
        return "insufficient_funds"
    if "nonce" in msg:
        return "nonce_conflict"
    if isinstance(exc, ContractLogicError):
        return "reverted"
    return "unknown"


class Web3TokenMinter:
    """Mints reward tokens from the contract owner account.

    Nonce allocation and broadcast are serialized so concurrent mints for
    different wallets never reuse a nonce; receipt waits run in parallel.
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        private_key: str,
        chain_id: int | None = None,
        receipt_timeout: int = 120,
    ) -> None:
        if not (rpc_url and contract_address and private_key):
            raise ConfigError("rpc_url, contract_address and private_key are required")
        self._w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=TOKEN_ABI,
        )
        self._account = self._w3.eth.account.from_key(private_key)
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout
        self._send_lock = asyncio.Lock()

    @property
    def minter_address(self) -> str:
        return self._account.address

    async def mint(self, address: str, amount: int) -> MintResult:
        recipient = Web3.to_checksum_address(address)
        log.info("Minting %d tokens to %s", amount, recipient)

        tx_hash: str | None = None
        try:
            async with self._send_lock:
                if self._chain_id is None:
                    self._chain_id = await self._w3.eth.chain_id
                nonce = await self._w3.eth.get_transaction_count(
                    self._account.address, "pending",
                )
                tx = await self._contract.functions.mint(
                    recipient, to_base_units(amount),
                ).build_transaction({
                    "from": self._account.address,
                    "nonce": nonce,
                    "chainId": self._chain_id,
                })
                signed = self._account.sign_transaction(tx)
                raw_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
                tx_hash = Web3.to_hex(raw_hash)

            log.info("Mint transaction sent: %s", tx_hash)
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                raw_hash, timeout=self._receipt_timeout,
            )

        except TimeExhausted as exc:
            log.error("Mint receipt timeout for %s (tx=%s)", recipient, tx_hash)
            raise MintError(
                f"no receipt after {self._receipt_timeout}s", reason="timeout", tx_hash=tx_hash,
            ) from exc

        except (ContractLogicError, Web3Exception, ValueError) as exc:
            reason = classify_error(exc)
            log.warning("Mint failed for %s: %s (%s)", recipient, reason, exc)
            raise MintError(str(exc) or reason, reason=reason, tx_hash=tx_hash) from exc

        if receipt["status"] != 1:
            log.error("Mint transaction reverted: %s", tx_hash)
            raise MintError("transaction reverted", reason="reverted", tx_hash=tx_hash)

        log.info("Mint confirmed in block %s (tx=%s)", receipt["blockNumber"], tx_hash)
        return MintResult(
            transaction_id=tx_hash,
            amount=amount,
            block_number=receipt["blockNumber"],
        )

    async def get_balance(self, address: str) -> str:
        try:
            raw = await self._contract.functions.balanceOf(
                Web3.to_checksum_address(address),
            ).call()
        except Exception as exc:
            log.warning("Balance lookup failed for %s: %s", address[:12], exc)
            return "0"
        return format_units(raw)

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatus:
        try:
            try:
                tx = await self._w3.eth.get_transaction(tx_hash)
            except TransactionNotFound:
                return TransactionStatus(
                    tx_hash, TransactionState.NOT_FOUND, error="transaction not found",
                )

            block_number = tx.get("blockNumber")
            if block_number is None:
                return TransactionStatus(tx_hash, TransactionState.PENDING)

            try:
                receipt = await self._w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                return TransactionStatus(
                    tx_hash, TransactionState.MINING, block_number=block_number,
                )

            head = await self._w3.eth.block_number
        except Exception as exc:
            log.warning("Transaction lookup failed for %s: %s", tx_hash[:16], exc)
            return TransactionStatus(tx_hash, TransactionState.UNKNOWN, error=str(exc))

        confirmed = receipt["status"] == 1
        return TransactionStatus(
            tx_hash,
            TransactionState.CONFIRMED if confirmed else TransactionState.FAILED,
            confirmations=max(0, head - block_number + 1),
            block_number=block_number,
            gas_used=receipt["gasUsed"],
            error=None if confirmed else "transaction reverted",
        )

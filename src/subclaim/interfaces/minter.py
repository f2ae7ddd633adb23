"""TokenMinter protocol - issues reward tokens on-chain."""

from __future__ import annotations

from typing import Protocol

from subclaim.models.records import MintResult, TransactionStatus


class TokenMinter(Protocol):
    """Mints tokens to a wallet and reads token balances."""

    async def mint(self, address: str, amount: int) -> MintResult:
        """Mint ``amount`` whole tokens to ``address``.

        Raises MintError when no confirmed transaction results, including
        when the contract rejects the address as already rewarded.
        """
        ...

    async def get_balance(self, address: str) -> str:
        """Formatted token balance. Returns "0" on transient failures."""
        ...

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatus:
        """Where a mint transaction stands on-chain. Never raises for RPC faults."""
        ...

"""EVM token contract integration."""

from subclaim.chain.minter import Web3TokenMinter

__all__ = ["Web3TokenMinter"]

"""ClaimStore implementations."""

from subclaim.storage.memory import MemoryClaimStore
from subclaim.storage.sqlite import SQLiteClaimStore

__all__ = ["MemoryClaimStore", "SQLiteClaimStore"]

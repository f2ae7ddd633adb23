"""Protocol interfaces for all subclaim components."""

from subclaim.interfaces.store import ClaimStore
from subclaim.interfaces.verifier import SubscriptionVerifier
from subclaim.interfaces.minter import TokenMinter
from subclaim.interfaces.data_api import DataAPI

__all__ = [
    "ClaimStore",
    "SubscriptionVerifier",
    "TokenMinter",
    "DataAPI",
]

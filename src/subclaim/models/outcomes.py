"""Typed results of a claim attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    """Mint succeeded and the claim record is complete."""

    tx_hash: str

    retryable = False

    @property
    def message(self) -> str:
        return "Tokens minted successfully"


@dataclass(frozen=True)
class AlreadyClaimed:
    """An active claim already exists for this wallet.

    ``tx_hash`` may be the "pending" sentinel while another attempt is
    still minting; it still blocks.
    """

    tx_hash: str

    retryable = False

    @property
    def message(self) -> str:
        return "Tokens already claimed for this wallet"


@dataclass(frozen=True)
class SubscriptionRequired:
    """The credential owner is not subscribed to the channel."""

    retryable = True

    @property
    def message(self) -> str:
        return "You need to subscribe to the YouTube channel first"


@dataclass(frozen=True)
class VerificationFailed:
    """The subscription check itself failed."""

    reason: str

    retryable = True

    @property
    def message(self) -> str:
        return f"Failed to verify YouTube subscription: {self.reason}"


@dataclass(frozen=True)
class MintFailed:
    """Mint failed after a pending record was created.

    Without ``tx_hash`` the failure is definitive and the record is failed.
    With it, the transaction was broadcast but never confirmed: the record
    stays pending on that hash and the wallet may not retry until an
    operator settles it.
    """

    reason: str
    tx_hash: str | None = None

    @property
    def retryable(self) -> bool:
        return self.tx_hash is None

    @property
    def message(self) -> str:
        if self.tx_hash is not None:
            return f"Mint transaction not confirmed yet: {self.reason}"
        return f"Failed to mint tokens: {self.reason}"


ClaimOutcome = Union[Success, AlreadyClaimed, SubscriptionRequired, VerificationFailed, MintFailed]


def outcome_to_dict(outcome: ClaimOutcome) -> dict:
    """Flatten an outcome into the shape the frontend consumes."""
    data: dict = {
        "outcome": type(outcome).__name__,
        "success": isinstance(outcome, Success),
        "message": outcome.message,
        "retryable": outcome.retryable,
    }
    if isinstance(outcome, (Success, AlreadyClaimed)):
        data["txHash"] = outcome.tx_hash
        data["alreadyClaimed"] = isinstance(outcome, AlreadyClaimed)
    if isinstance(outcome, (VerificationFailed, MintFailed)):
        data["error"] = outcome.reason
    if isinstance(outcome, MintFailed) and outcome.tx_hash is not None:
        data["txHash"] = outcome.tx_hash
    return data

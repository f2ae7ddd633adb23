"""Exception types raised by subclaim components."""

from __future__ import annotations


class SubclaimError(Exception):
    """Base class for all subclaim errors."""


class ConfigError(SubclaimError):
    """Configuration is missing or invalid."""


class VerificationError(SubclaimError):
    """The subscription check could not be completed (transport or auth problem)."""


class MintError(SubclaimError):
    """The on-chain mint did not produce a confirmed transaction.

    ``reason`` is a short classification ("already_claimed", "reverted",
    "timeout", "unknown", ...). ``tx_hash`` is set when a transaction was
    broadcast before the failure was detected.
    """

    def __init__(
        self, message: str, reason: str = "unknown", tx_hash: str | None = None
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.tx_hash = tx_hash

    @property
    def in_flight(self) -> bool:
        """A transaction was broadcast but its outcome is unknown."""
        return self.tx_hash is not None and self.reason != "reverted"


class InvalidTransitionError(SubclaimError):
    """A claim record transition is not allowed from its current state."""

    def __init__(self, address: str, current: str | None, target: str) -> None:
        super().__init__(
            f"Illegal claim transition for {address}: {current or 'none'} -> {target}"
        )
        self.address = address
        self.current = current
        self.target = target

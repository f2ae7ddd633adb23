"""SubscriptionVerifier protocol - checks a YouTube channel subscription."""

from __future__ import annotations

from typing import Protocol


class SubscriptionVerifier(Protocol):
    """Decides whether the owner of ``credential`` is subscribed."""

    async def is_subscribed(self, credential: str) -> bool:
        """Raises VerificationError on transport or auth problems."""
        ...

"""YouTube Data API integration."""

from subclaim.youtube.verifier import YouTubeSubscriptionVerifier

__all__ = ["YouTubeSubscriptionVerifier"]

"""Subscription verifier - asks the YouTube Data API whether the OAuth user
is subscribed to the reward channel."""

from __future__ import annotations

import logging

import httpx

from subclaim.errors import ConfigError, VerificationError

log = logging.getLogger(__name__)


class YouTubeSubscriptionVerifier:
    """Checks ``subscriptions?mine=true&forChannelId=<channel>`` for the
    user behind an OAuth access token.

    A non-empty ``items`` list means subscribed. Timeouts and 5xx responses
    are retried; anything else that prevents a definitive answer raises
    VerificationError.
    """

    def __init__(
        self,
        channel_id: str,
        api_url: str = "https://www.googleapis.com/youtube/v3",
        timeout: int = 10,
        retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not channel_id:
            raise ConfigError("YouTube channel ID is not configured")
        self._channel_id = channel_id
        self._base_url = api_url.rstrip("/")
        self._timeout = timeout
        self._retries = max(1, retries)
        self._transport = transport

    async def is_subscribed(self, credential: str) -> bool:
        if not credential:
            raise VerificationError("missing Google access token")

        for attempt in range(1, self._retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport,
                ) as client:
                    resp = await client.get(
                        f"{self._base_url}/subscriptions",
                        params={
                            "part": "snippet",
                            "forChannelId": self._channel_id,
                            "mine": "true",
                        },
                        headers={
                            "Authorization": f"Bearer {credential}",
                            "Accept": "application/json",
                        },
                    )
                    resp.raise_for_status()
                    data = resp.json()

            except (httpx.TimeoutException, httpx.HTTPStatusError) as exc:
                retryable = isinstance(exc, httpx.TimeoutException) or (
                    isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500
                )
                if retryable and attempt < self._retries:
                    log.warning(
                        "YouTube API call failed (attempt %d/%d): %s",
                        attempt, self._retries, exc,
                    )
                    continue
                if isinstance(exc, httpx.HTTPStatusError):
                    status = exc.response.status_code
                    if status in (401, 403):
                        raise VerificationError(
                            f"YouTube API rejected the access token (HTTP {status})"
                        ) from exc
                    raise VerificationError(f"YouTube API error: HTTP {status}") from exc
                raise VerificationError(
                    f"YouTube API timeout after {self._retries} attempts"
                ) from exc

            except httpx.HTTPError as exc:
                raise VerificationError(f"YouTube API unreachable: {exc}") from exc

            except ValueError as exc:
                raise VerificationError("YouTube API returned invalid JSON") from exc

            if not isinstance(data, dict):
                raise VerificationError("YouTube API returned an unexpected payload")

            items = data.get("items") or []
            subscribed = len(items) > 0
            log.debug(
                "Subscription check for channel %s: %s",
                self._channel_id, "subscribed" if subscribed else "not subscribed",
            )
            return subscribed

        raise VerificationError("YouTube API call failed")

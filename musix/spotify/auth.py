"""
Client-credentials token management for the Spotify adapter.

The TokenManager owns the single cached AccessToken of one adapter
instance. Nothing else reads or writes the token: the request pipeline
only ever calls get_valid_token() and, after a 401, refresh().

Lifecycle:
    1. No token cached -> exchange client id/secret for a token
    2. Token cached and not within the expiry margin -> reuse it
    3. Token within the margin (or known rejected) -> exchange again

    The margin never exceeds half the token's lifetime, so a provider
    issuing tokens shorter than the margin does not force an exchange
    on every call.

Single-flight Refresh:
    The first caller that finds the cache stale starts the exchange as an
    asyncio.Task and publishes it. Every caller arriving while that task
    is pending awaits the same task instead of starting another one, so a
    burst of concurrent requests causes exactly one exchange. A failed
    exchange is not cached; the next call tries again.

Usage:
    tokens = TokenManager(transport, "client-id", "client-secret")
    token = await tokens.get_valid_token()
    headers = {"Authorization": token.authorization}
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from musix.core.config import SPOTIFY_TOKEN_URL
from musix.core.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    RateLimitError,
    SpotifyApiError,
)
from musix.core.http import HttpResponse, HttpTransport
from musix.core.logger import get_logger
from musix.spotify.responses import parse_json_object, parse_retry_after, provider_message

logger = get_logger(__name__)

# Status codes the token endpoint uses for rejected credentials
AUTH_FAILURE_STATUSES = frozenset({400, 401, 403})


@dataclass(frozen=True)
class AccessToken:
    """
    A bearer token with its absolute expiry time.

    Attributes:
        value: The opaque access token string.
        expires_at: Expiry as a Unix timestamp (seconds).
        token_type: Token type reported by the provider.
        lifetime: Seconds the token was valid for when issued, if known.
    """
    value: str = field(repr=False)
    expires_at: float
    token_type: str = "Bearer"
    lifetime: float | None = None

    def is_valid(self, now: float, margin: float = 0.0) -> bool:
        """True if the token does not expire within `margin` seconds of `now`."""
        return self.expires_at > now + margin

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"Bearer {self.value}"


class TokenManager:
    """
    Cached client-credentials token with single-flight refresh.

    Attributes:
        exchange_count: Number of credential exchanges started so far.

    Concurrency:
        Designed for one asyncio event loop. Reading the cache never
        blocks; only callers that observe a stale cache await the shared
        exchange task.
    """

    def __init__(
        self,
        transport: HttpTransport,
        client_id: str,
        client_secret: str,
        *,
        token_url: str = SPOTIFY_TOKEN_URL,
        expiry_margin: float = 30.0,
        clock: Callable[[], float] = time.time
    ) -> None:
        self._transport = transport
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._expiry_margin = expiry_margin
        self._clock = clock
        self._token: AccessToken | None = None
        self._pending: asyncio.Task | None = None
        self.exchange_count = 0

    async def get_valid_token(self) -> AccessToken:
        """
        Return a token that does not expire within the safety margin.

        Raises:
            AuthenticationError: If the provider rejects the credentials.
            RateLimitError: If the token endpoint is rate limiting us.
            NetworkError: If the token endpoint cannot be reached.
            SpotifyApiError: For any other token endpoint failure.
        """
        token = self._token
        if token is not None and token.is_valid(self._clock(), self._margin_for(token)):
            return token
        return await self._await_exchange()

    async def refresh(self, stale: AccessToken | None = None) -> AccessToken:
        """
        Replace a token the provider has rejected.

        The cached token is dropped only if it is still `stale`. If a
        concurrent caller already replaced it, the newer token is returned
        without another exchange.
        """
        if stale is None or self._token is stale:
            self._token = None
        token = self._token
        if token is not None and token.is_valid(self._clock(), 0.0):
            return token
        return await self._await_exchange()

    def invalidate(self) -> None:
        """Forget the cached token; the next call performs an exchange."""
        self._token = None

    def _margin_for(self, token: AccessToken) -> float:
        # Short-lived tokens keep at least half their lifetime usable
        if token.lifetime is None:
            return self._expiry_margin
        return min(self._expiry_margin, token.lifetime / 2)

    async def _await_exchange(self) -> AccessToken:
        if self._pending is None:
            self.exchange_count += 1
            logger.debug(f"Starting token exchange #{self.exchange_count}")
            self._pending = asyncio.ensure_future(self._exchange())
            self._pending.add_done_callback(self._on_exchange_done)
        else:
            logger.debug("Joining in-flight token exchange")
        # shield: a cancelled caller must not cancel the shared exchange
        return await asyncio.shield(self._pending)

    def _on_exchange_done(self, task: asyncio.Task) -> None:
        if self._pending is task:
            self._pending = None
        if not task.cancelled():
            # Mark the exception retrieved even if every waiter was cancelled
            task.exception()

    async def _exchange(self) -> AccessToken:
        requested_at = self._clock()
        response = await self._transport.send(
            "POST",
            self._token_url,
            data={"grant_type": "client_credentials"},
            auth=(self._client_id, self._client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"}
        )
        token = self._parse_token_response(response, requested_at)
        self._token = token
        logger.info(f"Obtained Spotify access token (valid {int(token.expires_at - requested_at)}s)")
        return token

    def _parse_token_response(self, response: HttpResponse, requested_at: float) -> AccessToken:
        if response.status in AUTH_FAILURE_STATUSES:
            description = provider_message(response)
            logger.error(f"Spotify rejected client credentials ({response.status}): {description}")
            raise AuthenticationError(
                f"Spotify rejected the client credentials: {description}",
                details={"http_status": response.status, "endpoint": "token"}
            )

        if response.status == 429:
            retry_after = parse_retry_after(response.header("Retry-After"))
            logger.warning(f"Token endpoint rate limited, retry after {retry_after}s")
            raise RateLimitError(retry_after, details={"endpoint": "token"})

        if not response.ok:
            raise SpotifyApiError(
                response.status,
                provider_message(response),
                details={"endpoint": "token"}
            )

        payload = parse_json_object(response.text)
        if payload is None:
            raise InvalidResponseError(
                "token response is not a JSON object",
                details={"endpoint": "token"}
            )

        value = payload.get("access_token")
        expires_in = payload.get("expires_in")
        if not isinstance(value, str) or not value:
            raise InvalidResponseError(
                "token response has no access_token",
                details={"endpoint": "token", "field": "access_token"}
            )
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)) or expires_in <= 0:
            raise InvalidResponseError(
                "token response has no positive expires_in",
                details={"endpoint": "token", "field": "expires_in"}
            )

        return AccessToken(
            value=value,
            expires_at=requested_at + float(expires_in),
            token_type=str(payload.get("token_type") or "Bearer"),
            lifetime=float(expires_in)
        )


"""
Authenticated request pipeline for the Spotify Web API.

SpotifyClient is the translation boundary between Spotify's HTTP
behaviour and the musix error taxonomy. Mappers and the adapter facade
call request() and receive either a parsed JSON object or one of the
exceptions below; they never see a raw status code or error body.

Classification:
    2xx                          -> parsed JSON object
    404, 400 "invalid id"        -> NotFoundError(resource_type, resource_id)
    429                          -> RateLimitError(retry_after)
    401 (resource call)          -> one transparent token refresh + retry,
                                    AuthenticationError if still 401
    transport failure / timeout  -> NetworkError (raised by the transport)
    anything else                -> SpotifyApiError(status_code, message)

Retry Policy:
    The only retry performed here is the single retry after a 401.
    Rate limits and other API errors are surfaced immediately; backing
    off is the caller's decision.

Usage:
    client = SpotifyClient(transport, token_manager)
    raw = await client.request(
        "GET", "/tracks/4iV5W9uYEdYUVa79Axb7Rh",
        resource_type=ResourceType.TRACK,
        resource_id="4iV5W9uYEdYUVa79Axb7Rh"
    )
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from musix.core.config import SPOTIFY_API_BASE_URL
from musix.core.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    NotFoundError,
    RateLimitError,
    ResourceType,
    SpotifyApiError,
)
from musix.core.http import HttpResponse, HttpTransport
from musix.core.logger import get_logger
from musix.spotify.auth import AccessToken, TokenManager
from musix.spotify.responses import parse_json_object, parse_retry_after, provider_message

logger = get_logger(__name__)

# Spotify answers malformed ids with 400 and this message instead of 404
INVALID_ID_MESSAGE = "invalid id"


def resource_path(collection: str, resource_id: str) -> str:
    """
    Build a resource path with the id safely quoted.

    Quoting keeps ids containing "/", "?" or spaces inside the path
    segment, so the provider answers with 404 instead of routing the
    request somewhere else.

    Example:
        resource_path("tracks", "abc")  # "/tracks/abc"
    """
    return f"/{collection}/{quote(resource_id, safe='')}"


class SpotifyClient:
    """
    Issues authenticated Web API calls and classifies their outcome.

    Attributes:
        api_base_url: Base URL every path is appended to.

    Thread Safety:
        Stateless apart from the shared TokenManager; request() may be
        awaited concurrently any number of times.
    """

    def __init__(
        self,
        transport: HttpTransport,
        tokens: TokenManager,
        api_base_url: str = SPOTIFY_API_BASE_URL
    ) -> None:
        self._transport = transport
        self._tokens = tokens
        self.api_base_url = api_base_url.rstrip("/")

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        resource_type: ResourceType | str | None = None,
        resource_id: str | None = None
    ) -> dict[str, Any]:
        """
        Perform an authenticated request and return the parsed JSON body.

        Args:
            method: HTTP method.
            path: Path relative to api_base_url ("/tracks/{id}"), or an
                  absolute URL (as found in Spotify's "next" links).
            params: Query string parameters.
            resource_type: Kind of resource requested. Needed so a 404 can
                           be reported as NotFoundError for that kind.
            resource_id: The id as the caller supplied it.

        Returns:
            The JSON object body ({} for an empty 2xx body).

        Raises:
            NotFoundError: Resource does not exist (only when resource_type given).
            RateLimitError: Spotify returned 429.
            AuthenticationError: Still 401 after one token refresh, or the
                                 credential exchange was rejected.
            NetworkError: Connection failure or timeout.
            SpotifyApiError: Any other non-2xx status.
            InvalidResponseError: 2xx body that is not a JSON object.
        """
        url = path if path.startswith(("http://", "https://")) else f"{self.api_base_url}{path}"

        token = await self._tokens.get_valid_token()
        response = await self._send(method, url, params, token)

        if response.status == 401:
            logger.info(f"{method} {path} returned 401, refreshing token and retrying once")
            token = await self._tokens.refresh(token)
            response = await self._send(method, url, params, token)
            if response.status == 401:
                message = provider_message(response)
                logger.error(f"{method} {path} still unauthorized after token refresh: {message}")
                raise AuthenticationError(
                    f"Spotify rejected a freshly issued access token: {message}",
                    details={"http_status": 401, "path": path}
                )

        return self._classify(response, method, path, resource_type, resource_id)

    async def _send(
        self,
        method: str,
        url: str,
        params: Mapping[str, Any] | None,
        token: AccessToken
    ) -> HttpResponse:
        return await self._transport.send(
            method,
            url,
            headers={"Authorization": token.authorization, "Accept": "application/json"},
            params=params
        )

    def _classify(
        self,
        response: HttpResponse,
        method: str,
        path: str,
        resource_type: ResourceType | str | None,
        resource_id: str | None
    ) -> dict[str, Any]:
        if response.ok:
            payload = parse_json_object(response.text)
            if payload is None:
                raise InvalidResponseError(
                    "response body is not a JSON object",
                    details={"path": path, "http_status": response.status}
                )
            return payload

        message = provider_message(response)

        if resource_type is not None and self._is_not_found(response, message):
            logger.debug(f"{method} {path}: {resource_type} not found")
            raise NotFoundError(
                resource_type,
                resource_id if resource_id is not None else path.rsplit("/", 1)[-1],
                details={"http_status": response.status, "provider_message": message}
            )

        if response.status == 429:
            retry_after = parse_retry_after(response.header("Retry-After"))
            logger.warning(f"{method} {path} rate limited, retry after {retry_after}s")
            raise RateLimitError(
                retry_after,
                details={"path": path, "http_status": 429}
            )

        logger.warning(f"{method} {path} failed with {response.status}: {message}")
        raise SpotifyApiError(
            response.status,
            message,
            details={"path": path, "http_status": response.status}
        )

    @staticmethod
    def _is_not_found(response: HttpResponse, message: str) -> bool:
        if response.status == 404:
            return True
        return response.status == 400 and message.strip().lower() == INVALID_ID_MESSAGE

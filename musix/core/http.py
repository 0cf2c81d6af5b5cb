"""
HTTP transport built on aiohttp.

The transport is the only place that touches the network. It sends one
request, reads the whole body and hands back an HttpResponse; it does not
interpret status codes. Connection failures, DNS failures and timeouts
surface as NetworkError with the aiohttp exception kept as the cause.

Each adapter owns one transport, and each transport owns one
aiohttp.ClientSession created on first use (so constructing an adapter
performs no I/O and needs no running event loop).
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from musix.core.exceptions import NetworkError
from musix.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """
    A fully read HTTP response.

    Attributes:
        status: HTTP status code.
        headers: Response headers keyed by lower-cased name.
        text: Decoded response body ("" when empty).
        reason: HTTP reason phrase, if the server sent one.
    """
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    text: str = ""
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


class HttpTransport:
    """
    Minimal async HTTP client used by provider pipelines.

    Attributes:
        timeout: Overall timeout in seconds applied to every request.

    Example:
        transport = HttpTransport(timeout=10)
        try:
            response = await transport.send("GET", "https://api.example.com/x")
        finally:
            await transport.close()
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, str] | None = None,
        auth: tuple[str, str] | None = None
    ) -> HttpResponse:
        """
        Send one request and read the full response.

        Args:
            method: HTTP method.
            url: Absolute URL.
            headers: Extra request headers.
            params: Query string parameters.
            data: Form-encoded body.
            auth: (username, password) for HTTP Basic authentication.

        Returns:
            HttpResponse with the body already read.

        Raises:
            NetworkError: On connection failure, DNS failure or timeout.
        """
        session = self._get_session()
        request_headers = dict(headers or {})
        if auth:
            request_headers["Authorization"] = aiohttp.BasicAuth(*auth).encode()

        try:
            async with session.request(
                method,
                url,
                headers=request_headers,
                params=_encode_params(params),
                data=data
            ) as response:
                # Gateway error pages are not always valid in their declared charset
                text = await response.text(errors="replace")
                return HttpResponse(
                    status=response.status,
                    headers={k.lower(): v for k, v in response.headers.items()},
                    text=text,
                    reason=response.reason
                )
        except asyncio.TimeoutError as e:
            logger.error(f"{method} {url} timed out after {self.timeout}s")
            raise NetworkError(
                f"request timed out after {self.timeout}s",
                cause=e,
                details={"method": method, "url": url}
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(
                str(e) or type(e).__name__,
                cause=e,
                details={"method": method, "url": url}
            ) from e

    async def close(self) -> None:
        """Close the underlying session. Safe to call more than once."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, str] | None:
    # aiohttp rejects non-str query values such as ints and bools
    if params is None:
        return None
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        encoded[key] = str(value)
    return encoded

"""Test the request pipeline and its error classification"""

import asyncio

import pytest

from musix.core.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ResourceType,
    SpotifyApiError,
)
from musix.core.http import HttpResponse
from musix.spotify.auth import TokenManager
from musix.spotify.client import SpotifyClient, resource_path
from musix.spotify.responses import parse_retry_after, provider_message
from tests.support.stub_transport import error_response, json_response, token_response


class TestResourcePath:
    """Test URL path construction"""

    def test_plain_id(self):
        """Test resource path for a plain id"""
        assert resource_path("tracks", "4iV5W9uYEdYUVa79Axb7Rh") == "/tracks/4iV5W9uYEdYUVa79Axb7Rh"

    def test_id_is_quoted(self):
        """Test resource ids are percent-encoded"""
        assert resource_path("tracks", "a/b?c d") == "/tracks/a%2Fb%3Fc%20d"


class TestResponseHelpers:
    """Test Retry-After and error message parsing"""

    @pytest.mark.parametrize("value,expected", [
        ("30", 30),
        ("2.5", 3),
        ("0", 1),
        ("-5", 1),
        ("soon", 1),
        ("Wed, 21 Oct 2015 07:28:00 GMT", 1),
        (None, 1),
    ])
    def test_parse_retry_after(self, value, expected):
        """Test Retry-After parsing"""
        assert parse_retry_after(value) == expected

    def test_message_from_web_api_error(self):
        """Test message extraction from a Web API error body"""
        assert provider_message(error_response(404, "Non existing id")) == "Non existing id"

    def test_message_from_accounts_error(self):
        """Test message extraction from an accounts error body"""
        response = json_response({"error": "invalid_client", "error_description": "Invalid client secret"}, 400)
        assert provider_message(response) == "Invalid client secret"

    def test_message_from_non_json_body(self):
        """Test message extraction from a non-JSON body"""
        response = HttpResponse(status=502, text="<html>Bad Gateway</html>")
        assert provider_message(response) == "<html>Bad Gateway</html>"

    def test_message_falls_back_to_reason(self):
        """Test message falls back to the HTTP reason"""
        assert provider_message(HttpResponse(status=500, reason="Internal Server Error")) == "Internal Server Error"
        assert provider_message(HttpResponse(status=500)) == "HTTP 500"


class TestSpotifyClient:
    """Test authenticated requests"""

    @pytest.mark.asyncio
    async def test_successful_request_returns_json(self, client, transport):
        """Test a successful request returns the decoded object"""
        transport.get("/tracks/abc", json_response({"id": "abc"}))

        payload = await client.request("GET", "/tracks/abc")

        assert payload == {"id": "abc"}
        request = transport.requests_to("/tracks/abc")[0]
        assert request.headers["Authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_params_are_forwarded(self, client, transport):
        """Test query parameters reach the transport"""
        transport.get("/search", json_response({}))

        await client.request("GET", "/search", {"q": "eagles", "limit": 5})

        assert transport.requests_to("/search")[0].params == {"q": "eagles", "limit": 5}

    @pytest.mark.asyncio
    async def test_absolute_url_is_used_as_is(self, client, transport):
        """Test absolute URLs bypass the API base"""
        url = "https://api.spotify.com/v1/playlists/p/tracks?offset=100"
        transport.add("GET", url, json_response({"items": []}))

        assert await client.request("GET", url) == {"items": []}

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_object(self, client, transport):
        """Test an empty body decodes to an empty object"""
        transport.get("/empty", HttpResponse(status=204))

        assert await client.request("GET", "/empty") == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["not json", "[1, 2, 3]"])
    async def test_non_object_body_is_invalid(self, client, transport, body):
        """Test a JSON body that is not an object is rejected"""
        transport.get("/tracks/abc", HttpResponse(status=200, text=body))

        with pytest.raises(InvalidResponseError) as exc_info:
            await client.request("GET", "/tracks/abc")
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, client, transport):
        """Test 404 maps to NotFoundError"""
        transport.get("/tracks/invalid-id", error_response(404, "Non existing id"))

        with pytest.raises(NotFoundError) as exc_info:
            await client.request(
                "GET", "/tracks/invalid-id",
                resource_type=ResourceType.TRACK, resource_id="invalid-id"
            )

        assert exc_info.value.resource_type == "track"
        assert exc_info.value.resource_id == "invalid-id"

    @pytest.mark.asyncio
    async def test_400_invalid_id_is_not_found(self, client, transport):
        """Test 400 invalid id maps to NotFoundError"""
        transport.get("/albums/%21%21", error_response(400, "invalid id"))

        with pytest.raises(NotFoundError) as exc_info:
            await client.request(
                "GET", resource_path("albums", "!!"),
                resource_type="album", resource_id="!!"
            )

        assert exc_info.value.resource_type is ResourceType.ALBUM
        assert exc_info.value.resource_id == "!!"

    @pytest.mark.asyncio
    async def test_other_400_is_api_error(self, client, transport):
        """Test other 400 responses map to SpotifyApiError"""
        transport.get("/tracks/abc", error_response(400, "Only valid bearer authentication supported"))

        with pytest.raises(SpotifyApiError) as exc_info:
            await client.request("GET", "/tracks/abc", resource_type="track", resource_id="abc")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_404_without_resource_type_is_api_error(self, client, transport):
        """Test 404 without a resource maps to SpotifyApiError"""
        transport.get("/nowhere", error_response(404, "Service not found"))

        with pytest.raises(SpotifyApiError) as exc_info:
            await client.request("GET", "/nowhere")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_429_is_rate_limit_with_retry_after(self, client, transport):
        """Test 429 maps to RateLimitError"""
        transport.get(
            "/tracks/abc",
            error_response(429, "API rate limit exceeded", headers={"Retry-After": "30"})
        )

        with pytest.raises(RateLimitError) as exc_info:
            await client.request("GET", "/tracks/abc", resource_type="track", resource_id="abc")

        assert exc_info.value.retry_after == 30
        assert len(transport.requests_to("/tracks/abc")) == 1

    @pytest.mark.asyncio
    async def test_429_without_header_defaults_to_one_second(self, client, transport):
        """Test 429 without Retry-After waits one second"""
        transport.get("/tracks/abc", error_response(429, "API rate limit exceeded"))

        with pytest.raises(RateLimitError) as exc_info:
            await client.request("GET", "/tracks/abc")
        assert exc_info.value.retry_after == 1

    @pytest.mark.asyncio
    async def test_server_error_is_api_error(self, client, transport):
        """Test server errors map to SpotifyApiError"""
        transport.get("/tracks/abc", error_response(503, "Service unavailable"))

        with pytest.raises(SpotifyApiError) as exc_info:
            await client.request("GET", "/tracks/abc", resource_type="track", resource_id="abc")

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider_message == "Service unavailable"
        assert str(exc_info.value) == "Spotify API error: 503 Service unavailable"

    @pytest.mark.asyncio
    async def test_network_error_propagates(self, client, transport):
        """Test transport failures propagate as NetworkError"""
        cause = ConnectionResetError("reset by peer")
        transport.get("/tracks/abc", NetworkError("reset by peer", cause=cause))

        with pytest.raises(NetworkError) as exc_info:
            await client.request("GET", "/tracks/abc")
        assert exc_info.value.cause is cause


class TestUnauthorizedRetry:
    """Test the transparent refresh after a 401"""

    @pytest.fixture
    def retry_client(self, bare_transport, clock):
        bare_transport.add_token(token_response("token-1"), token_response("token-2"), token_response("token-3"))
        tokens = TokenManager(bare_transport, "id", "secret", clock=clock)
        return SpotifyClient(bare_transport, tokens), tokens

    @pytest.mark.asyncio
    async def test_401_refreshes_once_and_retries(self, retry_client, bare_transport):
        """Test a 401 triggers one refresh and one retry"""
        client, tokens = retry_client
        bare_transport.get(
            "/tracks/abc",
            error_response(401, "The access token expired"),
            json_response({"id": "abc"})
        )

        payload = await client.request("GET", "/tracks/abc")

        assert payload == {"id": "abc"}
        sent = [r.headers["Authorization"] for r in bare_transport.requests_to("/tracks/abc")]
        assert sent == ["Bearer token-1", "Bearer token-2"]
        assert tokens.exchange_count == 2

    @pytest.mark.asyncio
    async def test_second_401_is_authentication_error(self, retry_client, bare_transport):
        """Test a repeated 401 raises AuthenticationError"""
        client, tokens = retry_client
        bare_transport.get("/tracks/abc", error_response(401, "Invalid access token"))

        with pytest.raises(AuthenticationError):
            await client.request("GET", "/tracks/abc", resource_type="track", resource_id="abc")

        assert len(bare_transport.requests_to("/tracks/abc")) == 2
        assert tokens.exchange_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_401s_share_one_refresh(self, retry_client, bare_transport):
        """Test concurrent 401s share one token refresh"""
        client, tokens = retry_client
        bare_transport.get(
            "/tracks/abc",
            error_response(401, "The access token expired"),
            error_response(401, "The access token expired"),
            json_response({"id": "abc"})
        )

        results = await asyncio.gather(
            client.request("GET", "/tracks/abc"),
            client.request("GET", "/tracks/abc")
        )

        assert results == [{"id": "abc"}, {"id": "abc"}]
        assert tokens.exchange_count == 2

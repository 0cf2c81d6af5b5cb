"""
Spotify implementation of the musix adapter interface.

SpotifyAdapter wires the three layers together and owns their state:
    HttpTransport  -> one aiohttp session per adapter
    TokenManager   -> one cached client-credentials token per adapter
    SpotifyClient  -> request pipeline and error classification
    mappers        -> raw JSON to common model

Creating an adapter validates the configuration and nothing else; the
first network call happens when the first operation is awaited.

Usage:
    from musix import create_spotify_adapter

    async with create_spotify_adapter({"client_id": "...", "client_secret": "..."}) as spotify:
        track = await spotify.get_track("4iV5W9uYEdYUVa79Axb7Rh")
        print(track.name, track.primary_artist.name)
"""

import time
from collections.abc import Callable, Mapping
from typing import Any

from musix.core.adapter import MusicAdapter
from musix.core.config import Config, SpotifyConfig, coerce_config
from musix.core.exceptions import ResourceType
from musix.core.http import HttpTransport
from musix.core.logger import get_logger
from musix.core.models import Album, Artist, Playlist, SearchOptions, SearchResult, Track
from musix.spotify.auth import TokenManager
from musix.spotify.client import SpotifyClient, resource_path
from musix.spotify.mappers import (
    collect_track_stubs,
    hydrate_tracks,
    map_album,
    map_artist,
    map_track,
    map_track_search,
    normalize_pagination,
    parse_playlist_shell,
    playlist_items_page,
    search_params,
)

logger = get_logger(__name__)

# Page size used when following a playlist's item pages
PLAYLIST_PAGE_SIZE = 100


class SpotifyAdapter(MusicAdapter):
    """
    Fetches tracks, albums, artists and playlists from the Spotify Web API.

    Attributes:
        config: The validated configuration this adapter was built from.
        tokens: The adapter's token manager (exposed for observability).

    Concurrency:
        All operations may run concurrently on one instance. They share
        the token cache, so a burst of calls performs one token exchange.
    """

    def __init__(self, config: Config, transport: HttpTransport, tokens: TokenManager) -> None:
        self.config = config
        self.tokens = tokens
        self._transport = transport
        self._client = SpotifyClient(transport, tokens, api_base_url=config.http.api_base_url)

    @property
    def provider(self) -> str:
        return "spotify"

    async def get_track(self, track_id: str) -> Track:
        raw = await self._fetch(ResourceType.TRACK, "tracks", track_id)
        return map_track(raw)

    async def search_tracks(
        self,
        query: str,
        options: SearchOptions | Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None
    ) -> SearchResult[Track]:
        """
        Search Spotify's catalogue for tracks.

        Args:
            query: Free-text search query.
            options: SearchOptions or a {"limit", "offset"} mapping.
            limit: Page size (overrides options). Clamped to [1, 50], default 20.
            offset: Result offset (overrides options). Default 0.

        Returns:
            SearchResult whose limit/offset are the normalized values.
        """
        opt_limit, opt_offset = _option_values(options)
        page = normalize_pagination(
            limit if limit is not None else opt_limit,
            offset if offset is not None else opt_offset
        )
        logger.debug(f"Searching tracks for {query!r} (limit={page.limit}, offset={page.offset})")
        raw = await self._client.request("GET", "/search", search_params(query, page))
        return map_track_search(raw, page)

    async def get_album(self, album_id: str) -> Album:
        raw = await self._fetch(ResourceType.ALBUM, "albums", album_id)
        return map_album(raw)

    async def get_artist(self, artist_id: str) -> Artist:
        raw = await self._fetch(ResourceType.ARTIST, "artists", artist_id)
        return map_artist(raw)

    async def get_playlist(self, playlist_id: str) -> Playlist:
        """
        Fetch a playlist with every track fully hydrated.

        Follows all item pages, skips entries that are not Spotify tracks
        (removed tracks, episodes, local files) and fetches full track
        data for any partial entries.

        Raises:
            NotFoundError: If the playlist, or a track it references,
                           does not exist.
            Any other classified error from a page or hydration request
            fails the whole call.
        """
        raw = await self._fetch(ResourceType.PLAYLIST, "playlists", playlist_id)
        shell = parse_playlist_shell(raw)

        items, next_url = playlist_items_page(raw)
        items = list(items)
        offset = len(items)
        while next_url:
            page = await self._client.request(
                "GET",
                f"{resource_path('playlists', playlist_id)}/tracks",
                {"limit": PLAYLIST_PAGE_SIZE, "offset": offset},
                resource_type=ResourceType.PLAYLIST,
                resource_id=playlist_id
            )
            page_items, next_url = playlist_items_page(page, embedded=False)
            if not page_items:
                break
            items.extend(page_items)
            offset += len(page_items)

        stubs = collect_track_stubs(items)
        tracks = await hydrate_tracks(
            stubs,
            lambda track_id: self._fetch(ResourceType.TRACK, "tracks", track_id),
            max_concurrency=self.config.http.max_concurrency
        )
        logger.debug(f"Playlist {playlist_id}: {len(tracks)} tracks from {len(items)} items")
        return shell.with_tracks(tracks)

    async def aclose(self) -> None:
        await self._transport.close()

    async def _fetch(self, resource_type: ResourceType, collection: str, resource_id: str) -> dict[str, Any]:
        return await self._client.request(
            "GET",
            resource_path(collection, resource_id),
            resource_type=resource_type,
            resource_id=resource_id
        )


def _option_values(options: SearchOptions | Mapping[str, Any] | None) -> tuple[Any, Any]:
    if options is None:
        return None, None
    if isinstance(options, SearchOptions):
        return options.limit, options.offset
    if isinstance(options, Mapping):
        return options.get("limit"), options.get("offset")
    raise TypeError(f"options must be SearchOptions or a mapping, got {type(options).__name__}")


def create_spotify_adapter(
    config: Config | SpotifyConfig | Mapping[str, Any],
    *,
    transport: HttpTransport | None = None,
    clock: Callable[[], float] = time.time
) -> SpotifyAdapter:
    """
    Create a Spotify adapter.

    Args:
        config: Config, SpotifyConfig, or a mapping with client_id and
                client_secret (camelCase clientId/clientSecret accepted).
        transport: HTTP transport to use. Defaults to a new aiohttp-based
                   HttpTransport; tests pass a scripted stub.
        clock: Time source for token expiry, in epoch seconds.

    Returns:
        A ready SpotifyAdapter. No network I/O has happened yet.

    Raises:
        ConfigError: If the configuration is malformed or incomplete.
    """
    resolved = coerce_config(config)
    if transport is None:
        transport = HttpTransport(timeout=resolved.http.timeout)

    tokens = TokenManager(
        transport,
        resolved.spotify.client_id,
        resolved.spotify.client_secret,
        token_url=resolved.http.token_url,
        expiry_margin=resolved.http.token_expiry_margin,
        clock=clock
    )
    logger.debug("Created Spotify adapter")
    return SpotifyAdapter(resolved, transport, tokens)

"""
musix: one interface for music-streaming provider APIs.

musix lets applications fetch tracks, albums, artists and playlists, and
search tracks, without learning each provider's schema or auth flow.
Every provider adapter returns the same immutable domain model and
raises the same small set of exceptions.

Architecture:
    Each adapter call flows through three layers:

    Token Manager (spotify/auth.py)
        - Exchanges client credentials for an access token
        - Caches it until shortly before expiry
        - Shares one in-flight exchange between concurrent callers

    Request Pipeline (spotify/client.py)
        - Attaches the token, performs the HTTP call
        - Retries once with a fresh token after a 401
        - Classifies failures into the musix exception taxonomy

    Resource Mappers (spotify/mappers.py)
        - Translate raw JSON into Track, Album, Artist, Playlist, ...
        - Normalize search pagination
        - Hydrate partial playlist entries into full tracks

Modules:
    core/       - Models, exceptions, configuration, logging, transport
    spotify/    - The Spotify adapter

Usage:
    import asyncio
    from musix import create_spotify_adapter, NotFoundError

    async def main():
        async with create_spotify_adapter({
            "client_id": "your_client_id",
            "client_secret": "your_client_secret",
        }) as spotify:
            track = await spotify.get_track("4iV5W9uYEdYUVa79Axb7Rh")
            results = await spotify.search_tracks("hotel california", limit=5)
            try:
                await spotify.get_album("does-not-exist")
            except NotFoundError as e:
                print(e.resource_type, e.resource_id)

    asyncio.run(main())

Dependencies:
    - aiohttp: Async HTTP client
    - pyyaml: Configuration file parsing
    - python-dotenv: .env support for credentials
    - colorama: Coloured console logging
"""

__version__ = "0.1.0"
__author__ = "musix"
__license__ = "MIT"

from musix.core import (
    Album,
    ApiError,
    Artist,
    AuthenticationError,
    Config,
    ConfigError,
    HttpConfig,
    Image,
    InvalidResponseError,
    MusicAdapter,
    MusixError,
    NetworkError,
    NotFoundError,
    Playlist,
    RateLimitError,
    ResourceType,
    SearchOptions,
    SearchResult,
    SpotifyApiError,
    SpotifyConfig,
    Track,
    User,
    get_logger,
    load_config,
    setup_logging,
)
from musix.spotify import SpotifyAdapter, create_spotify_adapter

__all__ = [
    # Version
    "__version__",
    # Adapters
    "MusicAdapter",
    "SpotifyAdapter",
    "create_spotify_adapter",
    # Config
    "Config",
    "HttpConfig",
    "SpotifyConfig",
    "load_config",
    # Logging
    "setup_logging",
    "get_logger",
    # Exceptions
    "MusixError",
    "ConfigError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "SpotifyApiError",
    "InvalidResponseError",
    "ResourceType",
    # Models
    "Album",
    "Artist",
    "Image",
    "Playlist",
    "SearchOptions",
    "SearchResult",
    "Track",
    "User",
]

"""
Provider-neutral core of musix.

This module holds everything that is shared by all provider adapters:
    - exceptions: The error taxonomy raised at the adapter boundary
    - config: Credential and HTTP configuration loading and validation
    - logger: Logging setup for applications using musix
    - models: The common domain model (Track, Album, Artist, ...)
    - adapter: The abstract MusicAdapter interface
    - http: The aiohttp-based transport

Usage:
    from musix.core import (
        Config, SpotifyConfig, load_config,
        setup_logging, get_logger,
        MusixError, NotFoundError, RateLimitError
    )
"""

from musix.core.adapter import MusicAdapter
from musix.core.config import (
    Config,
    HttpConfig,
    SpotifyConfig,
    coerce_config,
    load_config,
)
from musix.core.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigError,
    InvalidResponseError,
    MusixError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ResourceType,
    SpotifyApiError,
)
from musix.core.http import HttpResponse, HttpTransport
from musix.core.logger import get_logger, setup_logging, shutdown_logging
from musix.core.models import (
    Album,
    Artist,
    Image,
    Playlist,
    SearchOptions,
    SearchResult,
    Track,
    User,
)

__all__ = [
    # Adapter
    "MusicAdapter",
    # Config
    "Config",
    "HttpConfig",
    "SpotifyConfig",
    "coerce_config",
    "load_config",
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
    # HTTP
    "HttpResponse",
    "HttpTransport",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
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

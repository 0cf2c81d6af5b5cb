"""
Spotify provider for musix.

Modules:
    auth       - Client-credentials token manager (single-flight refresh)
    client     - Authenticated request pipeline and error classification
    responses  - Helpers for Spotify error bodies and Retry-After
    mappers    - Spotify JSON to common model, pagination, playlist hydration
    adapter    - SpotifyAdapter facade and create_spotify_adapter()
"""

from musix.spotify.adapter import SpotifyAdapter, create_spotify_adapter
from musix.spotify.auth import AccessToken, TokenManager
from musix.spotify.client import SpotifyClient

__all__ = [
    "SpotifyAdapter",
    "create_spotify_adapter",
    "AccessToken",
    "TokenManager",
    "SpotifyClient",
]

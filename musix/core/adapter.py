"""
Provider-neutral adapter interface.

Every streaming provider (Spotify today; Apple Music and YouTube Music
follow the same pattern) implements MusicAdapter with its own token
manager, request pipeline and mappers. Adapters share no mutable state,
neither with each other nor across instances of the same provider.

Example:
    async with create_spotify_adapter(config) as adapter:
        track = await adapter.get_track("4iV5W9uYEdYUVa79Axb7Rh")
        page = await adapter.search_tracks("hotel california", limit=5)
"""

from abc import ABC, abstractmethod

from musix.core.models import Album, Artist, Playlist, SearchOptions, SearchResult, Track


class MusicAdapter(ABC):
    """
    The five read operations every provider adapter exposes.

    All operations are coroutines, are independent of each other and may
    be awaited concurrently on the same adapter instance.

    Errors:
        Operations only raise the exceptions in musix.core.exceptions:
        AuthenticationError, NotFoundError, RateLimitError, NetworkError
        and ApiError (including its subclasses).
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """Provider identifier (e.g. 'spotify')."""

    @abstractmethod
    async def get_track(self, track_id: str) -> Track:
        """Fetch a track by its provider id."""

    @abstractmethod
    async def search_tracks(
        self,
        query: str,
        options: SearchOptions | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None
    ) -> SearchResult[Track]:
        """
        Search tracks matching a free-text query.

        Pagination may be given either as a SearchOptions value or as the
        limit/offset keywords; keywords win when both are supplied.
        """

    @abstractmethod
    async def get_album(self, album_id: str) -> Album:
        """Fetch an album by its provider id."""

    @abstractmethod
    async def get_artist(self, artist_id: str) -> Artist:
        """Fetch an artist by its provider id."""

    @abstractmethod
    async def get_playlist(self, playlist_id: str) -> Playlist:
        """Fetch a playlist with every track fully hydrated."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources held by the adapter."""

    async def __aenter__(self) -> "MusicAdapter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

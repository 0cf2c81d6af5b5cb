"""
Common domain model shared by every provider adapter.

These immutable dataclasses are what callers receive from an adapter,
regardless of which streaming provider produced them. Provider-specific
mappers build them from raw API responses; nothing mutates them after
construction.

Design Decisions:
    - All dataclasses are frozen (immutable)
    - Sequences are tuples, so values are hashable and safe to share
    - Field names are provider-neutral (external_url, not spotify_url)
    - Required fields carry no defaults; the mappers guarantee them

Usage:
    from musix.core.models import Track

    track = await adapter.get_track("4iV5W9uYEdYUVa79Axb7Rh")
    print(f"{track.name} by {track.primary_artist.name}")
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Image:
    """
    Artwork reference.

    Attributes:
        url: Image URL.
        width: Width in pixels, or None when the provider does not say.
        height: Height in pixels, or None when the provider does not say.
    """

    url: str
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class User:
    """Owner of a playlist."""

    id: str
    display_name: str


@dataclass(frozen=True)
class Artist:
    """
    A performing artist.

    Attributes:
        id: Provider artist id.
        name: Artist name.
        external_url: Link to the artist page on the provider's site.
        genres: Genres, or None when the provider returned a simplified
                artist object without genre information.
        images: Artist images, or None for simplified artist objects.
    """

    id: str
    name: str
    external_url: str
    genres: tuple[str, ...] | None = None
    images: tuple[Image, ...] | None = None


@dataclass(frozen=True)
class Album:
    """
    An album, single or compilation.

    Attributes:
        id: Provider album id.
        name: Album title.
        artists: Album artists, never empty.
        release_date: Release date as reported ("1976-12-08", "1976-12" or "1976").
        total_tracks: Number of tracks on the album, always positive.
        images: Cover images, possibly empty.
        external_url: Link to the album page on the provider's site.
    """

    id: str
    name: str
    artists: tuple[Artist, ...]
    release_date: str
    total_tracks: int
    images: tuple[Image, ...]
    external_url: str

    @property
    def year(self) -> int | None:
        """Release year parsed from release_date, if it has one."""
        try:
            return int(self.release_date[:4])
        except (ValueError, TypeError):
            return None

    @property
    def cover(self) -> Image | None:
        """Highest-resolution cover image, or None when there are none."""
        return best_image(self.images)


@dataclass(frozen=True)
class Track:
    """
    A single recording.

    Attributes:
        id: Provider track id.
        name: Track title.
        artists: Performing artists in provider order, never empty.
        album: The album the track belongs to.
        duration_ms: Duration in milliseconds, always positive.
        preview_url: 30-second preview clip, or None.
        external_url: Link to the track page on the provider's site.
    """

    id: str
    name: str
    artists: tuple[Artist, ...]
    album: Album
    duration_ms: int
    preview_url: str | None
    external_url: str

    @property
    def primary_artist(self) -> Artist:
        return self.artists[0]

    @property
    def duration_seconds(self) -> int:
        """Duration in whole seconds (rounded down)."""
        return self.duration_ms // 1000


@dataclass(frozen=True)
class Playlist:
    """
    A playlist with its fully hydrated tracks.

    Attributes:
        id: Provider playlist id.
        name: Playlist name.
        description: Description text (may contain HTML), or None.
        owner: User owning the playlist.
        tracks: Full Track values in playlist order.
        images: Playlist cover images, possibly empty.
        external_url: Link to the playlist page on the provider's site.
    """

    id: str
    name: str
    description: str | None
    owner: User
    tracks: tuple[Track, ...]
    images: tuple[Image, ...]
    external_url: str

    @property
    def track_count(self) -> int:
        return len(self.tracks)


@dataclass(frozen=True)
class SearchOptions:
    """Optional pagination parameters for search operations."""

    limit: int | None = None
    offset: int | None = None


@dataclass(frozen=True)
class SearchResult(Generic[T]):
    """
    One page of search results.

    limit and offset echo the normalized pagination parameters that were
    sent to the provider, not whatever the provider echoed back.

    Attributes:
        items: Results in provider order; len(items) <= limit.
        total: Total number of matches the provider reports.
        limit: Effective page size.
        offset: Effective offset.
    """

    items: tuple[T, ...]
    total: int
    limit: int
    offset: int

    @property
    def has_next(self) -> bool:
        return self.offset + len(self.items) < self.total


def best_image(images: tuple[Image, ...] | None) -> Image | None:
    """
    Pick the highest-resolution image.

    Images without dimensions rank lowest; ties keep provider order.
    """
    if not images:
        return None
    return max(images, key=lambda img: (img.width or 0) * (img.height or 0))

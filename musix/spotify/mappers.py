"""
Mapping from Spotify Web API objects to the musix common model.

Each map_* function takes one raw Spotify JSON object and returns the
matching immutable model value. The functions are pure and total: every
required model field is read from the response, and a missing or
mistyped required field raises InvalidResponseError instead of letting a
null, an empty artist list or a zero duration into the common model.

Playlists need more than one response to map. Spotify embeds only the
first page of playlist items, and items may be partial references. So
playlist mapping is two-phase:
    Phase 1 (pure): parse_playlist_shell() and collect_track_stubs()
    Phase 2 (I/O):  hydrate_tracks() fetches every incomplete stub
                    concurrently and reassembles them in playlist order

Pagination:
    normalize_pagination() clamps limit to [1, 50] (default 20) and
    defaults offset to 0. search_params() turns the normalized page into
    Spotify's search query, and map_track_search() copies the normalized
    values, not Spotify's echoed ones, into the SearchResult.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from musix.core.exceptions import InvalidResponseError, ResourceType
from musix.core.logger import get_logger
from musix.core.models import Album, Artist, Image, Playlist, SearchResult, Track, User

logger = get_logger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 50
MIN_LIMIT = 1
DEFAULT_OFFSET = 0

Raw = Mapping[str, Any]


# =========================================================================
# Field readers
# =========================================================================

def _require(raw: Raw, key: str, kind: str) -> Any:
    value = raw.get(key) if isinstance(raw, Mapping) else None
    if value is None:
        raise InvalidResponseError(
            f"{kind} object has no '{key}'",
            details={"resource_type": kind, "field": key}
        )
    return value


def _require_str(raw: Raw, key: str, kind: str) -> str:
    value = _require(raw, key, kind)
    if not isinstance(value, str) or not value:
        raise InvalidResponseError(
            f"{kind} field '{key}' must be a non-empty string",
            details={"resource_type": kind, "field": key}
        )
    return value


def _require_positive_int(raw: Raw, key: str, kind: str) -> int:
    value = _require(raw, key, kind)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidResponseError(
            f"{kind} field '{key}' must be a positive integer",
            details={"resource_type": kind, "field": key, "value": value}
        )
    return value


def _require_mapping(raw: Raw, key: str, kind: str) -> Raw:
    value = _require(raw, key, kind)
    if not isinstance(value, Mapping):
        raise InvalidResponseError(
            f"{kind} field '{key}' must be an object",
            details={"resource_type": kind, "field": key}
        )
    return value


def _require_list(raw: Raw, key: str, kind: str, non_empty: bool = False) -> list:
    value = _require(raw, key, kind)
    if not isinstance(value, list):
        raise InvalidResponseError(
            f"{kind} field '{key}' must be a list",
            details={"resource_type": kind, "field": key}
        )
    if non_empty and not value:
        raise InvalidResponseError(
            f"{kind} field '{key}' must not be empty",
            details={"resource_type": kind, "field": key}
        )
    return value


def _external_url(raw: Raw, kind: str) -> str:
    urls = _require_mapping(raw, "external_urls", kind)
    return _require_str(urls, "spotify", kind)


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _ensure_object(raw: Any, kind: str) -> Raw:
    if not isinstance(raw, Mapping):
        raise InvalidResponseError(
            f"expected a {kind} object",
            details={"resource_type": kind}
        )
    return raw


# =========================================================================
# Resource mappers
# =========================================================================

def map_image(raw: Raw) -> Image:
    raw = _ensure_object(raw, "image")
    return Image(
        url=_require_str(raw, "url", "image"),
        width=_optional_int(raw.get("width")),
        height=_optional_int(raw.get("height")),
    )


def map_images(raw_images: Any) -> tuple[Image, ...]:
    """Map an image list; a missing or null list becomes an empty tuple."""
    if not raw_images:
        return ()
    if not isinstance(raw_images, list):
        raise InvalidResponseError("images must be a list", details={"field": "images"})
    return tuple(map_image(img) for img in raw_images)


def map_user(raw: Raw) -> User:
    """
    Map a Spotify user object.

    Spotify returns a null display_name for some accounts; the user id is
    used instead so display_name is never empty.
    """
    raw = _ensure_object(raw, "user")
    user_id = _require_str(raw, "id", "user")
    display_name = raw.get("display_name")
    if not isinstance(display_name, str) or not display_name:
        display_name = user_id
    return User(id=user_id, display_name=display_name)


def map_artist(raw: Raw) -> Artist:
    """
    Map a full or simplified Spotify artist object.

    Simplified artist objects (embedded in tracks and albums) carry no
    genres or images; those fields stay None rather than becoming empty
    tuples, so "unknown" and "none" remain distinguishable.
    """
    raw = _ensure_object(raw, ResourceType.ARTIST.value)
    kind = ResourceType.ARTIST.value

    genres = raw.get("genres")
    if genres is not None:
        if not isinstance(genres, list):
            raise InvalidResponseError(
                "artist field 'genres' must be a list",
                details={"resource_type": kind, "field": "genres"}
            )
        genres = tuple(str(g) for g in genres)

    images = raw.get("images")
    if images is not None:
        images = map_images(images)

    return Artist(
        id=_require_str(raw, "id", kind),
        name=_require_str(raw, "name", kind),
        external_url=_external_url(raw, kind),
        genres=genres,
        images=images,
    )


def _map_artists(raw: Raw, kind: str) -> tuple[Artist, ...]:
    return tuple(map_artist(a) for a in _require_list(raw, "artists", kind, non_empty=True))


def map_album(raw: Raw) -> Album:
    raw = _ensure_object(raw, ResourceType.ALBUM.value)
    kind = ResourceType.ALBUM.value

    release_date = _require(raw, "release_date", kind)
    if not isinstance(release_date, str):
        raise InvalidResponseError(
            "album field 'release_date' must be a string",
            details={"resource_type": kind, "field": "release_date"}
        )

    return Album(
        id=_require_str(raw, "id", kind),
        name=_require_str(raw, "name", kind),
        artists=_map_artists(raw, kind),
        release_date=release_date,
        total_tracks=_require_positive_int(raw, "total_tracks", kind),
        images=map_images(raw.get("images")),
        external_url=_external_url(raw, kind),
    )


def map_track(raw: Raw) -> Track:
    """
    Map a full Spotify track object.

    Raises:
        InvalidResponseError: If any required field is missing, artists is
                              empty, or duration_ms is not positive.

    Example:
        track = map_track(await client.request("GET", "/tracks/abc", ...))
        track.artists[0].name  # "Eagles"
    """
    raw = _ensure_object(raw, ResourceType.TRACK.value)
    kind = ResourceType.TRACK.value

    preview_url = raw.get("preview_url")
    if preview_url is not None and not isinstance(preview_url, str):
        preview_url = None

    return Track(
        id=_require_str(raw, "id", kind),
        name=_require_str(raw, "name", kind),
        artists=_map_artists(raw, kind),
        album=map_album(_require_mapping(raw, "album", kind)),
        duration_ms=_require_positive_int(raw, "duration_ms", kind),
        preview_url=preview_url or None,
        external_url=_external_url(raw, kind),
    )


# =========================================================================
# Pagination and search
# =========================================================================

@dataclass(frozen=True)
class Page:
    """Normalized pagination parameters."""
    limit: int
    offset: int


def normalize_pagination(limit: int | None = None, offset: int | None = None) -> Page:
    """
    Clamp pagination parameters to what the search endpoint accepts.

    Args:
        limit: Requested page size. None -> 20; above 50 -> 50; below 1 -> 1.
        offset: Requested offset. None or negative -> 0.

    Raises:
        ValueError: If limit or offset is not an integer.

    Example:
        normalize_pagination(100)      # Page(limit=50, offset=0)
        normalize_pagination(5, 10)    # Page(limit=5, offset=10)
    """
    if limit is None:
        limit = DEFAULT_LIMIT
    if offset is None:
        offset = DEFAULT_OFFSET
    for name, value in (("limit", limit), ("offset", offset)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be an integer, got {value!r}")
    return Page(
        limit=min(MAX_LIMIT, max(MIN_LIMIT, limit)),
        offset=max(DEFAULT_OFFSET, offset),
    )


def search_params(query: str, page: Page) -> dict[str, Any]:
    """Query parameters for Spotify's track search endpoint."""
    return {"q": query, "type": "track", "limit": page.limit, "offset": page.offset}


def map_track_search(raw: Raw, page: Page) -> SearchResult[Track]:
    """
    Map a Spotify search response into a SearchResult of tracks.

    The result echoes the normalized page, never the provider's echoed
    limit/offset. Items beyond page.limit are dropped.
    """
    raw = _ensure_object(raw, "search")
    tracks_page = _require_mapping(raw, "tracks", "search")
    raw_items = _require_list(tracks_page, "items", "search")

    # Spotify occasionally returns null entries in search pages
    items = tuple(map_track(item) for item in raw_items if item is not None)[: page.limit]

    total = _require(tracks_page, "total", "search")
    if isinstance(total, bool) or not isinstance(total, int):
        raise InvalidResponseError(
            "search field 'total' must be an integer",
            details={"resource_type": "search", "field": "total", "value": total}
        )
    total = max(total, len(items))

    return SearchResult(items=items, total=total, limit=page.limit, offset=page.offset)


# =========================================================================
# Playlists (two-phase)
# =========================================================================

@dataclass(frozen=True)
class TrackStub:
    """
    A track reference found in a playlist, before hydration.

    Attributes:
        index: Position among the playlist's mappable tracks.
        id: Spotify track id.
        raw: Whatever track data the playlist embedded (possibly partial).
    """
    index: int
    id: str
    raw: Raw

    @property
    def is_complete(self) -> bool:
        """True if raw already satisfies map_track()."""
        try:
            map_track(self.raw)
        except InvalidResponseError:
            return False
        return True


@dataclass(frozen=True)
class PlaylistShell:
    """Playlist fields that need no further requests."""
    id: str
    name: str
    description: str | None
    owner: User
    images: tuple[Image, ...]
    external_url: str

    def with_tracks(self, tracks: Sequence[Track]) -> Playlist:
        return Playlist(
            id=self.id,
            name=self.name,
            description=self.description,
            owner=self.owner,
            tracks=tuple(tracks),
            images=self.images,
            external_url=self.external_url,
        )


def parse_playlist_shell(raw: Raw) -> PlaylistShell:
    """Phase 1: map everything about a playlist except its tracks."""
    raw = _ensure_object(raw, ResourceType.PLAYLIST.value)
    kind = ResourceType.PLAYLIST.value

    description = raw.get("description")
    if not isinstance(description, str) or not description:
        description = None

    return PlaylistShell(
        id=_require_str(raw, "id", kind),
        name=_require_str(raw, "name", kind),
        description=description,
        owner=map_user(_require_mapping(raw, "owner", kind)),
        images=map_images(raw.get("images")),
        external_url=_external_url(raw, kind),
    )


def playlist_items_page(raw: Raw, embedded: bool = True) -> tuple[list, str | None]:
    """
    Extract (items, next_url) from a playlist-items paging object.

    Args:
        raw: The full playlist object when embedded is True (items live
             under "tracks"), otherwise a bare paging object as returned
             by /playlists/{id}/tracks.
        embedded: Which of the two shapes raw has.

    Raises:
        InvalidResponseError: If the paging object or its items list is missing.
    """
    kind = ResourceType.PLAYLIST.value
    if embedded:
        paging = _require_mapping(_ensure_object(raw, kind), "tracks", kind)
        prefix = "tracks."
    else:
        paging = _ensure_object(raw, kind)
        prefix = ""

    items = paging.get("items")
    if not isinstance(items, list):
        raise InvalidResponseError(
            f"playlist field '{prefix}items' must be a list",
            details={"resource_type": kind, "field": f"{prefix}items"}
        )
    next_url = paging.get("next")
    return items, next_url if isinstance(next_url, str) and next_url else None


def collect_track_stubs(items: Sequence[Raw]) -> list[TrackStub]:
    """
    Phase 1: turn playlist items into ordered track stubs.

    Items that can never become a Track are skipped: removed tracks
    (null), podcast episodes and local files without a Spotify id.
    """
    stubs: list[TrackStub] = []
    skipped = 0
    for item in items:
        track = item.get("track") if isinstance(item, Mapping) else None
        if not isinstance(track, Mapping):
            skipped += 1
            continue
        if track.get("type", "track") != "track" or track.get("is_local") or not track.get("id"):
            skipped += 1
            continue
        stubs.append(TrackStub(index=len(stubs), id=str(track["id"]), raw=track))

    if skipped:
        logger.debug(f"Skipped {skipped} playlist items that are not Spotify tracks")
    return stubs


async def hydrate_tracks(
    stubs: Sequence[TrackStub],
    fetch_track: Callable[[str], Awaitable[Raw]],
    max_concurrency: int = 10
) -> list[Track]:
    """
    Phase 2: resolve every stub to a full Track, preserving stub order.

    Complete stubs are mapped directly. Incomplete ones are fetched with
    fetch_track(id) concurrently (at most max_concurrency in flight) and
    put back at their original index regardless of completion order.

    Any failure fails the whole call: the first exception propagates and
    the remaining in-flight fetches are cancelled.

    Args:
        stubs: Stubs from collect_track_stubs().
        fetch_track: Coroutine function returning the raw track JSON.
        max_concurrency: Upper bound on simultaneous fetches.

    Returns:
        Tracks in the same order as stubs.
    """
    results: list[Track | None] = [None] * len(stubs)
    pending: list[TrackStub] = []

    for stub in stubs:
        if stub.is_complete:
            results[stub.index] = map_track(stub.raw)
        else:
            pending.append(stub)

    if pending:
        logger.debug(f"Hydrating {len(pending)} of {len(stubs)} playlist tracks")
        semaphore = asyncio.Semaphore(max_concurrency)

        async def hydrate(stub: TrackStub) -> None:
            async with semaphore:
                raw = await fetch_track(stub.id)
            results[stub.index] = map_track(raw)

        tasks = [asyncio.ensure_future(hydrate(stub)) for stub in pending]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled siblings finish unwinding before re-raising
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    return [track for track in results if track is not None]

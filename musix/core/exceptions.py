"""
Exception classes for musix.

Every failure a caller can observe from an adapter is one of the classes
below. The classification happens once, inside each provider's request
pipeline, so callers can branch on the exception type (or on its
attributes) without parsing messages or knowing any provider's raw error
shape.

Exception Hierarchy:
    MusixError (base)
        ConfigError - Malformed or missing configuration
        AuthenticationError - Credentials rejected by the provider
        NotFoundError - Requested resource does not exist
        RateLimitError - Provider asked us to slow down
        NetworkError - Connection failure, DNS failure, timeout
        ApiError - Any other provider API failure
            SpotifyApiError - Spotify-specific API failure
            InvalidResponseError - 2xx response that breaks the provider contract

Retry Policy:
    The adapter never retries RateLimitError or ApiError on its own.
    RateLimitError.retry_after and ApiError.status_code give the caller
    what it needs to decide.
"""

from enum import Enum


class ResourceType(str, Enum):
    """
    Kind of resource an operation was asked for.

    Values compare equal to their plain string form, so
    ``error.resource_type == "track"`` works.
    """

    TRACK = "track"
    ALBUM = "album"
    ARTIST = "artist"
    PLAYLIST = "playlist"

    def __str__(self) -> str:
        return self.value


class MusixError(Exception):
    """
    Base exception for all musix errors.

    Attributes:
        message: Human-readable error description.
        details: Dictionary with additional context (ids, status codes,
                 provider messages). Never contains credentials or tokens.

    Example:
        try:
            track = await adapter.get_track(track_id)
        except MusixError as e:
            logger.error(f"Lookup failed: {e.message}")
            logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(MusixError):
    """
    Raised when adapter configuration is malformed.

    Raised eagerly by the adapter factory and by load_config(), before
    any network I/O happens.

    Example:
        raise ConfigError(
            "'spotify.client_id' must be a non-empty string",
            details={"field": "spotify.client_id"}
        )
    """
    pass


class AuthenticationError(MusixError):
    """
    Raised when the provider rejects the application's credentials.

    Two situations produce this error:
        - The client-credentials exchange itself is refused (bad client
          id or secret).
        - A resource call is still answered with 401 after one
          transparent token refresh and retry.
    """
    pass


class NotFoundError(MusixError):
    """
    Raised when the requested resource does not exist.

    Attributes:
        resource_type: One of "track", "album", "artist", "playlist".
        resource_id: The id exactly as the caller passed it.
    """

    def __init__(
        self,
        resource_type: ResourceType | str,
        resource_id: str,
        details: dict | None = None
    ) -> None:
        resource_type = ResourceType(resource_type)
        super().__init__(f"{resource_type.value} not found: {resource_id}", details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class RateLimitError(MusixError):
    """
    Raised when the provider answers with a rate-limit signal (HTTP 429).

    Attributes:
        retry_after: Seconds the caller should wait before retrying.
                     Always a positive integer.
    """

    def __init__(self, retry_after: int, details: dict | None = None) -> None:
        super().__init__(
            f"Rate limit exceeded. Retry after {retry_after} seconds",
            details
        )
        self.retry_after = retry_after


class NetworkError(MusixError):
    """
    Raised on connection failure, DNS failure or timeout.

    Attributes:
        cause: The underlying transport exception, if any.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        details: dict | None = None
    ) -> None:
        super().__init__(f"Network error: {message}", details)
        self.cause = cause


class ApiError(MusixError):
    """
    Raised for any provider API failure not covered by a more specific class.

    Attributes:
        status_code: HTTP status code returned by the provider.
        provider_message: Message extracted from the provider's error body.
    """

    prefix = "API error"

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict | None = None
    ) -> None:
        super().__init__(f"{self.prefix}: {status_code} {message}", details)
        self.status_code = status_code
        self.provider_message = message


class SpotifyApiError(ApiError):
    """Raised for Spotify Web API failures (5xx, 403, unexpected 4xx)."""

    prefix = "Spotify API error"


class InvalidResponseError(ApiError):
    """
    Raised when a successful response breaks the provider's contract.

    Examples are a track without artists, an album with a non-positive
    track count, or a body that is not a JSON object. Mappers raise this
    instead of letting nulls or empty sequences into the common model.

    The status code is always 502: the provider, acting as upstream,
    produced an unusable response.
    """

    prefix = "Invalid provider response"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(502, message, details)

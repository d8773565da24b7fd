"""Custom exception hierarchy for tagresolver.

All application exceptions inherit from :class:`TaggerError`, which
carries an optional ``provider_name`` so error handlers can identify which
catalog (e.g. "beatport", "bandcamp") caused the failure.

The hierarchy follows the stages of the resolve pipeline:

    TaggerError  (base -- catch-all for any tagresolver error)
    +-- ProviderError            (catalog search failed: network / parse)
    |   +-- RateLimitError       (catalog rate limit exceeded)
    |   +-- ProviderUnavailableError (catalog down / unreachable)
    +-- DetailFetchError         (two-phase detail fetch failed)
    +-- TrackNotFoundError       (selection references an unknown track)
    +-- PersistenceError         (library store write failed)
    +-- SelectionError           (selection has no usable fields)
    +-- ConfigurationError       (invalid provider / matching config)

Provider and detail-fetch errors are recovered locally by the aggregator
and the apply engine.  The rest are captured per selection into
:class:`~tagresolver.models.batch.ApplyError` records.
"""


class TaggerError(Exception):
    """Base exception for all tagresolver errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets
    for structured log output, e.g. ``[beatport] HTTP 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Catalog provider errors
# ---------------------------------------------------------------------------

class ProviderError(TaggerError):
    """Raised when a catalog request fails (network error, unparseable page).

    ``status_code`` is set when the catalog answered with an HTTP error.
    """

    def __init__(
        self,
        message: str = "Catalog search failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Raised when a catalog answers HTTP 429."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=429)
        self.retry_after = retry_after


class ProviderUnavailableError(ProviderError):
    """Raised when a catalog is unreachable or not configured."""

    def __init__(
        self,
        message: str = "Catalog is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DetailFetchError(TaggerError):
    """Raised when the second call of a two-phase provider fails."""

    def __init__(
        self,
        message: str = "Candidate detail fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Apply errors
# ---------------------------------------------------------------------------

class TrackNotFoundError(TaggerError):
    """Raised when a selection references a track missing from the library."""

    def __init__(self, track_id: str) -> None:
        super().__init__(message=f"Track not found: {track_id}")
        self.track_id = track_id


class PersistenceError(TaggerError):
    """Raised when the library store cannot persist a track."""

    def __init__(self, message: str = "Library write failed") -> None:
        super().__init__(message=message)


class SelectionError(TaggerError):
    """Raised when a selected candidate cannot be applied."""

    def __init__(
        self,
        message: str = "Selection cannot be applied",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(TaggerError):
    """Raised when the tagger configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

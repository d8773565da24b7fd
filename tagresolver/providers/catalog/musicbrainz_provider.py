"""MusicBrainz provider implementing ITrackProvider.

Generic fallback catalog.  Uses the musicbrainzngs library to search
recordings by title and artist.  musicbrainzngs is synchronous, so every
call runs in a worker thread; the MusicBrainz rate limit of 1 request per
second is enforced with the same monotonic-clock throttle the scraping
providers use.
"""

from __future__ import annotations

import asyncio
import time

import musicbrainzngs
import structlog

from tagresolver.config.settings import Settings
from tagresolver.interfaces.track_provider import ITrackProvider
from tagresolver.models.candidate import RawCandidate
from tagresolver.providers.catalog.mappers import map_musicbrainz_recording

logger = structlog.get_logger(logger_name=__name__)


class MusicBrainzProvider(ITrackProvider):
    """MusicBrainz recording search with built-in rate limiting.

    No API key is required, but clients must identify themselves via a
    user-agent string and respect the 1 request/second rate limit.
    Single-phase: recordings already carry length and release data.
    """

    _MIN_REQUEST_INTERVAL: float = 1.0

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._last_request_time: float = 0.0

        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )
        logger.info(
            "musicbrainz_provider_initialized",
            app_name=settings.musicbrainz_app_name,
            app_version=settings.musicbrainz_app_version,
        )

    async def _throttle(self) -> None:
        """Enforce the MusicBrainz 1 req/sec rate limit."""
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self._MIN_REQUEST_INTERVAL:
            await asyncio.sleep(self._MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.monotonic()

    async def search(
        self, title: str, artist: str | None, max_results: int
    ) -> list[RawCandidate]:
        """Search MusicBrainz recordings matching *title* and *artist*."""
        query: dict[str, str] = {"recording": title}
        if artist:
            query["artist"] = artist

        await self._throttle()
        try:
            response = await asyncio.to_thread(
                musicbrainzngs.search_recordings, limit=max_results, **query
            )
        except musicbrainzngs.WebServiceError as exc:
            logger.warning("musicbrainz_search_failed", title=title, artist=artist, error=str(exc))
            return []

        candidates: list[RawCandidate] = []
        for recording in response.get("recording-list", []):
            try:
                candidate = map_musicbrainz_recording(recording)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("musicbrainz_recording_skipped", title=title, error=str(exc))
                continue
            if candidate is not None:
                candidates.append(candidate)

        logger.debug(
            "musicbrainz_recording_search",
            title=title,
            artist=artist,
            result_count=len(candidates),
        )
        return candidates[:max_results]

    def get_provider_name(self) -> str:
        return "musicbrainz"

    def is_available(self) -> bool:
        return bool(self._settings.musicbrainz_app_name)

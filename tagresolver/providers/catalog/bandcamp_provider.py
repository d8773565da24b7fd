"""Bandcamp provider implementing ITrackProvider and DetailFetcher.

Bandcamp is a two-phase catalog with no bpm or key metadata at all.
The track search page yields name, artist, album, tags, release date and a
thumbnail; duration, label and the full cover come from the JSON-LD block
of the track page, fetched by ``fetch_details`` right before write-back.
Because bpm and key are never supplied, applying a Bandcamp candidate
usually leaves the track queued for audio analysis.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
from bs4 import BeautifulSoup, Tag

from tagresolver.models.candidate import RawCandidate
from tagresolver.providers.catalog.base import DEFAULT_USER_AGENT, ScrapingTrackProvider
from tagresolver.providers.catalog.mappers import (
    clean_text,
    map_bandcamp_search_result,
    map_bandcamp_track_info,
)
from tagresolver.utils.errors import DetailFetchError, ProviderError

_SEARCH_URL = "https://bandcamp.com/search"
_SCRAPE_DELAY = 2.0
_FROM_BY_RE = re.compile(r"^(?:from\s+(?P<album>.+?)\s+)?by\s+(?P<artist>.+)$", re.IGNORECASE)


class BandcampProvider(ScrapingTrackProvider):
    """Track catalog that scrapes bandcamp.com.

    No API keys required. Requests are throttled to 2-second intervals.
    """

    _NAME = "bandcamp"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        request_delay: float = _SCRAPE_DELAY,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        super().__init__(http_client, request_delay=request_delay, user_agent=user_agent)

    async def search(
        self, title: str, artist: str | None, max_results: int
    ) -> list[RawCandidate]:
        query = f"{artist or ''} {title}".strip()
        try:
            soup = await self._fetch_page(_SEARCH_URL, params={"q": query, "item_type": "t"})
        except ProviderError as exc:
            self._logger.warning("bandcamp_search_failed", query=query, error=str(exc))
            return []

        candidates: list[RawCandidate] = []
        seen_urls: set[str] = set()
        for item in soup.select(".searchresult.track"):
            try:
                candidate = map_bandcamp_search_result(self._parse_search_item(item))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self._logger.warning("bandcamp_result_skipped", query=query, error=str(exc))
                continue
            if candidate is None or candidate.id in seen_urls:
                continue
            seen_urls.add(candidate.id)
            candidates.append(candidate)
            if len(candidates) >= max_results:
                break

        self._logger.info("bandcamp_search_complete", query=query, results=len(candidates))
        return candidates

    @staticmethod
    def _parse_search_item(item: Tag) -> dict[str, Any]:
        """Flatten one search result into the dict shape the mapper expects."""
        heading = item.select_one(".heading a")
        subhead = item.select_one(".subhead")
        released = item.select_one(".released")
        tags = item.select_one(".tags")
        image = item.select_one(".art img")

        album: str | None = None
        artist: str | None = None
        if subhead is not None:
            match = _FROM_BY_RE.match(" ".join(subhead.get_text(" ", strip=True).split()))
            if match:
                album = match.group("album")
                artist = match.group("artist")

        tag_text = clean_text(tags.get_text(" ", strip=True)) if tags else None
        if tag_text and tag_text.lower().startswith("tags:"):
            tag_text = tag_text[len("tags:"):]

        return {
            "url": heading.get("href") if heading else None,
            "name": heading.get_text(strip=True) if heading else None,
            "artist": artist,
            "album": album,
            "release_date": released.get_text(strip=True) if released else None,
            "image_url": image.get("src") if image else None,
            "tags": tag_text,
        }

    async def fetch_details(self, candidate_id: str) -> RawCandidate | None:
        """Read the track page's JSON-LD block.

        Returns ``None`` when the page is gone or carries no recording data.
        """
        try:
            response = await self._get(candidate_id)
        except ProviderError as exc:
            if exc.status_code == 404:
                return None
            raise DetailFetchError(
                message=f"Track page fetch failed: {exc.message}",
                provider_name=self._NAME,
            ) from exc

        soup = BeautifulSoup(response.text, "html.parser")
        for script in soup.select('script[type="application/ld+json"]'):
            try:
                payload = json.loads(script.string or "")
            except ValueError:
                continue
            if isinstance(payload, dict) and payload.get("@type") in ("MusicRecording", "Track"):
                self._logger.debug("bandcamp_details_fetched", url=candidate_id)
                return map_bandcamp_track_info(candidate_id, payload)

        self._logger.info("bandcamp_details_missing", url=candidate_id)
        return None

"""Beatport provider implementing ITrackProvider.

Scrapes the Beatport track search page.  The page is a Next.js app whose
server-rendered ``#__NEXT_DATA__`` script already contains the full result
list (bpm, key, length, genre, label, artwork), so Beatport is a
single-phase provider: the search result is usable for write-back as is.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
from bs4 import BeautifulSoup

from tagresolver.models.candidate import RawCandidate
from tagresolver.providers.catalog.base import DEFAULT_USER_AGENT, ScrapingTrackProvider
from tagresolver.providers.catalog.mappers import map_beatport_track
from tagresolver.utils.errors import ProviderError

_SEARCH_URL = "https://www.beatport.com/search/tracks"
_SCRAPE_DELAY = 3.0


class BeatportProvider(ScrapingTrackProvider):
    """Track catalog backed by Beatport's search page.

    No API key required. Requests are throttled to 3-second intervals.
    The ``httpx.AsyncClient`` is injected for testability.
    """

    _NAME = "beatport"

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
            response = await self._get(_SEARCH_URL, params={"q": query})
            tracks = self._extract_tracks(response.text)
        except ProviderError as exc:
            self._logger.warning("beatport_search_failed", query=query, error=str(exc))
            return []

        candidates: list[RawCandidate] = []
        for payload in tracks:
            try:
                candidate = map_beatport_track(payload)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self._logger.warning("beatport_track_skipped", query=query, error=str(exc))
                continue
            if candidate is not None:
                candidates.append(candidate)
            if len(candidates) >= max_results:
                break

        self._logger.info("beatport_search_complete", query=query, results=len(candidates))
        return candidates

    @staticmethod
    def _extract_tracks(html: str) -> list[dict[str, Any]]:
        """Pull the track list out of the page's ``__NEXT_DATA__`` JSON.

        The list lives at
        ``props.pageProps.dehydratedState.queries[0].state.data.data``.
        """
        script = BeautifulSoup(html, "html.parser").select_one("script#__NEXT_DATA__")
        if script is None or not script.string:
            raise ProviderError("No __NEXT_DATA__ script in search page", provider_name="beatport")
        try:
            document = json.loads(script.string)
        except ValueError as exc:
            raise ProviderError(
                f"Unparseable __NEXT_DATA__: {exc}", provider_name="beatport"
            ) from exc

        try:
            data = document["props"]["pageProps"]["dehydratedState"]["queries"][0]["state"]["data"]["data"]
        except (KeyError, IndexError, TypeError):
            return []

        if isinstance(data, dict):
            data = data.get("tracks") or data.get("results") or []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

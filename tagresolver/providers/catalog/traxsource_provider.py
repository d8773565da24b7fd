"""Traxsource provider implementing ITrackProvider and DetailFetcher.

Traxsource is a two-phase catalog.  The track search page lists title,
mix, artists, label, key/bpm, genre, duration and a small thumbnail; the
album name and the full-size cover only appear on the track page and its
release page.  ``search`` therefore returns the track URL as candidate id,
and ``fetch_details`` follows it.
"""

from __future__ import annotations

from urllib.parse import urljoin

import httpx

from tagresolver.models.candidate import RawCandidate
from tagresolver.providers.catalog.base import DEFAULT_USER_AGENT, ScrapingTrackProvider
from tagresolver.providers.catalog.mappers import map_traxsource_details, map_traxsource_row
from tagresolver.utils.errors import DetailFetchError, ProviderError

_BASE_URL = "https://www.traxsource.com"
_SEARCH_URL = f"{_BASE_URL}/search/tracks"
_SCRAPE_DELAY = 2.0


class TraxsourceProvider(ScrapingTrackProvider):
    """Track catalog that scrapes traxsource.com.

    No API key required. Requests are throttled to 2-second intervals.
    """

    _NAME = "traxsource"

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
            soup = await self._fetch_page(_SEARCH_URL, params={"term": query})
        except ProviderError as exc:
            self._logger.warning("traxsource_search_failed", query=query, error=str(exc))
            return []

        candidates: list[RawCandidate] = []
        for row in soup.select("#searchTrackList .trk-row"):
            try:
                candidate = map_traxsource_row(row, _BASE_URL)
            except (AttributeError, ValueError) as exc:
                # One malformed row must not drop the rest of the page.
                self._logger.debug("traxsource_row_skipped", error=str(exc))
                continue
            if candidate is not None:
                candidates.append(candidate)
            if len(candidates) >= max_results:
                break

        self._logger.info("traxsource_search_complete", query=query, results=len(candidates))
        return candidates

    async def fetch_details(self, candidate_id: str) -> RawCandidate | None:
        """Read album, release date and cover art for the track at *candidate_id*.

        Returns ``None`` when the track page is gone (HTTP 404).
        """
        try:
            track_page = await self._fetch_page(candidate_id)
        except ProviderError as exc:
            if exc.status_code == 404:
                return None
            raise DetailFetchError(
                message=f"Track page fetch failed: {exc.message}",
                provider_name=self._NAME,
            ) from exc

        album_link = track_page.select_one("div.ttl-info.ellip a")
        album = album_link.get_text(strip=True) if album_link else None
        album_href = album_link.get("href") if album_link else None

        release_date: str | None = None
        artwork_src: str | None = None
        if album_href:
            try:
                release_page = await self._fetch_page(urljoin(_BASE_URL, album_href))
            except ProviderError as exc:
                # The track page alone is still a useful overlay.
                self._logger.warning(
                    "traxsource_release_page_failed", url=album_href, error=str(exc)
                )
            else:
                cat_rdate = release_page.select_one("div.cat-rdate")
                if cat_rdate is not None:
                    parts = [p.strip() for p in cat_rdate.get_text(strip=True).split("|")]
                    if len(parts) >= 2:
                        release_date = parts[-1]
                cover = release_page.select_one("div.t-image img")
                artwork_src = cover.get("src") if cover else None

        self._logger.debug("traxsource_details_fetched", url=candidate_id, album=album)
        return map_traxsource_details(candidate_id, album, release_date, artwork_src, _BASE_URL)

"""Shared HTTP plumbing for the scraping catalog providers.

Each scraping provider owns one injected ``httpx.AsyncClient`` and throttles
its own requests to a fixed minimum interval.  Non-success responses are
turned into :class:`~tagresolver.utils.errors.ProviderError` subclasses
here; the concrete providers catch them in ``search`` so a failing catalog
yields zero candidates instead of an exception.
"""

from __future__ import annotations

import asyncio
import time

import httpx
from bs4 import BeautifulSoup

from tagresolver.interfaces.track_provider import ITrackProvider
from tagresolver.utils.errors import ProviderError, ProviderUnavailableError, RateLimitError
from tagresolver.utils.logging import get_logger

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScrapingTrackProvider(ITrackProvider):
    """Base class for catalogs reached over plain HTTP.

    Subclasses set ``_NAME`` and implement ``search`` (and optionally
    ``fetch_details``).
    """

    _NAME: str = ""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        request_delay: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._http = http_client
        self._request_delay = request_delay
        self._user_agent = user_agent
        self._last_request_time: float = 0.0
        self._logger = get_logger(f"{__name__}.{self._NAME}")

    async def _throttle(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time > 0 and elapsed < self._request_delay:
            await asyncio.sleep(self._request_delay - elapsed)
        self._last_request_time = time.monotonic()

    async def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        """GET *url* and return the response, raising on any failure.

        Raises
        ------
        RateLimitError
            On HTTP 429.
        ProviderUnavailableError
            On HTTP 5xx.
        ProviderError
            On any other non-success status or a transport error.
        """
        await self._throttle()
        headers = {"User-Agent": self._user_agent}
        try:
            response = await self._http.get(
                url, params=params, headers=headers, follow_redirects=True
            )
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Request to {url} failed: {exc}",
                provider_name=self._NAME,
            ) from exc

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                provider_name=self._NAME,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if response.status_code >= 500:
            raise ProviderUnavailableError(
                message=f"HTTP {response.status_code}",
                provider_name=self._NAME,
            )
        if response.status_code >= 400:
            raise ProviderError(
                message=f"HTTP {response.status_code} for {url}",
                provider_name=self._NAME,
                status_code=response.status_code,
            )
        return response

    async def _fetch_page(self, url: str, params: dict[str, str] | None = None) -> BeautifulSoup:
        response = await self._get(url, params=params)
        return BeautifulSoup(response.text, "html.parser")

    def get_provider_name(self) -> str:
        return self._NAME

    def is_available(self) -> bool:
        return True

"""Abstract base class for catalog track providers.

Every external catalog (Beatport, Traxsource, Bandcamp, MusicBrainz) is
reached through :class:`ITrackProvider`.  The aggregator iterates over an
injected, priority-ordered collection of these and never branches on a
provider's identity.

Two-phase catalogs additionally satisfy the :class:`DetailFetcher`
protocol.  It is a *capability*, not a subtype: the apply engine checks
``isinstance(provider, DetailFetcher)`` before writing a candidate's fields.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from tagresolver.models.candidate import RawCandidate


class ITrackProvider(ABC):
    """Contract for catalog search services.

    Implementations must catch their own network and parse failures,
    log a warning, and return an empty list; a failing catalog may never
    abort the fan-out to the other catalogs.
    """

    @abstractmethod
    async def search(
        self, title: str, artist: str | None, max_results: int
    ) -> list[RawCandidate]:
        """Search the catalog for tracks matching *title* and *artist*.

        Parameters
        ----------
        title:
            Track title as stored in the library.
        artist:
            Artist name, or ``None`` when the library does not know it.
        max_results:
            Upper bound on the number of candidates returned.

        Returns
        -------
        list[RawCandidate]
            Zero or more candidates in catalog relevance order.  For
            two-phase catalogs each candidate carries at least a title and
            one artist.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the stable identifier of this catalog (e.g. ``"beatport"``)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the catalog is configured and usable."""


@runtime_checkable
class DetailFetcher(Protocol):
    """Optional capability of two-phase catalogs."""

    async def fetch_details(self, candidate_id: str) -> RawCandidate | None:
        """Fetch the full record for a candidate returned by ``search``.

        Returns ``None`` when the candidate is no longer available.  May
        raise :class:`~tagresolver.utils.errors.DetailFetchError`.
        """
        ...

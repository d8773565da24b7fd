"""Catalog provider adapters and their payload mappers."""

from tagresolver.providers.catalog.bandcamp_provider import BandcampProvider
from tagresolver.providers.catalog.beatport_provider import BeatportProvider
from tagresolver.providers.catalog.musicbrainz_provider import MusicBrainzProvider
from tagresolver.providers.catalog.registry import (
    RegisteredProvider,
    build_providers,
    enabled_in_priority_order,
)
from tagresolver.providers.catalog.traxsource_provider import TraxsourceProvider

__all__ = [
    "BandcampProvider",
    "BeatportProvider",
    "MusicBrainzProvider",
    "RegisteredProvider",
    "TraxsourceProvider",
    "build_providers",
    "enabled_in_priority_order",
]

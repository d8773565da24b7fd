"""Provider registry: builds catalog adapters from configuration.

The aggregator receives an ordered list of ``(ProviderConfig, provider)``
pairs and never looks at provider names itself.  This module is the only
place that knows which concrete class serves which configured name.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from tagresolver.config.settings import Settings
from tagresolver.interfaces.track_provider import ITrackProvider
from tagresolver.models.config import ProviderConfig, TaggerConfig
from tagresolver.providers.catalog.bandcamp_provider import BandcampProvider
from tagresolver.providers.catalog.beatport_provider import BeatportProvider
from tagresolver.providers.catalog.musicbrainz_provider import MusicBrainzProvider
from tagresolver.providers.catalog.traxsource_provider import TraxsourceProvider
from tagresolver.utils.logging import get_logger

logger = get_logger(__name__)

ProviderFactory = Callable[[httpx.AsyncClient, Settings], ITrackProvider]

PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "beatport": lambda http, settings: BeatportProvider(http, user_agent=settings.http_user_agent),
    "traxsource": lambda http, settings: TraxsourceProvider(http, user_agent=settings.http_user_agent),
    "bandcamp": lambda http, settings: BandcampProvider(http, user_agent=settings.http_user_agent),
    "musicbrainz": lambda http, settings: MusicBrainzProvider(settings),
}


@dataclass(frozen=True)
class RegisteredProvider:
    """A configured catalog paired with its adapter instance."""

    config: ProviderConfig
    provider: ITrackProvider

    @property
    def name(self) -> str:
        return self.config.name


def build_providers(
    config: TaggerConfig,
    http_client: httpx.AsyncClient,
    settings: Settings,
    factories: dict[str, ProviderFactory] | None = None,
) -> tuple[dict[str, ITrackProvider], list[str]]:
    """Instantiate an adapter for every configured provider name.

    Disabled providers are built too, so the apply engine can still fetch
    details for a candidate selected before the provider was switched off.

    Returns:
        ``(providers_by_name, warnings)``.  Unknown names produce a warning
        and are left out.
    """
    factories = factories or PROVIDER_FACTORIES
    providers: dict[str, ITrackProvider] = {}
    warnings: list[str] = []
    for provider_config in config.providers:
        factory = factories.get(provider_config.name)
        if factory is None:
            message = f"Unknown provider '{provider_config.name}' is ignored"
            logger.warning("provider_unknown", provider=provider_config.name)
            warnings.append(message)
            continue
        providers[provider_config.name] = factory(http_client, settings)
    return providers, warnings


def enabled_in_priority_order(
    config: TaggerConfig,
    providers: dict[str, ITrackProvider],
) -> list[RegisteredProvider]:
    """Pair enabled, available providers with their config, by priority rank."""
    registered: list[RegisteredProvider] = []
    for provider_config in config.enabled_providers():
        provider = providers.get(provider_config.name)
        if provider is None:
            continue
        if not provider.is_available():
            logger.warning("provider_not_available", provider=provider_config.name)
            continue
        registered.append(RegisteredProvider(config=provider_config, provider=provider))
    return registered

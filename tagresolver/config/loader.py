"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/tagger.yaml  -- provider list and matching defaults
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

:func:`load_config` returns the merged plain dict;
:func:`build_tagger_config` turns it into the frozen
:class:`~tagresolver.models.config.TaggerConfig` snapshot a run uses.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tagresolver.config.settings import Settings
from tagresolver.models.config import ProviderConfig, TaggerConfig
from tagresolver.utils.errors import ConfigurationError


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  Defaults to
            ``settings.tagger_config_path``.
        settings: Settings instance; a fresh one is created when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.tagger_config_path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "matching": settings.matching_overrides(),
        "musicbrainz": {
            "app_name": settings.musicbrainz_app_name,
            "app_version": settings.musicbrainz_app_version,
            "contact": settings.musicbrainz_contact,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def build_tagger_config(config: dict[str, Any]) -> TaggerConfig:
    """Build the immutable per-run configuration from a merged config dict.

    A provider without an explicit ``priority`` gets its list position, so
    the YAML order is the default tie-break order.

    Raises:
        ConfigurationError: If the provider list or matching section does
            not validate.
    """
    raw_providers = config.get("providers") or []
    if not isinstance(raw_providers, list):
        raise ConfigurationError("'providers' must be a list")

    providers: list[ProviderConfig] = []
    for position, entry in enumerate(raw_providers):
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ConfigurationError(f"Provider entry #{position} has no name")
        values = {
            "display_name": entry["name"].title(),
            "priority": position,
            **entry,
        }
        try:
            providers.append(ProviderConfig(**values))
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid provider config: {exc}", provider_name=entry["name"]
            ) from exc

    matching = config.get("matching") or {}
    try:
        return TaggerConfig(providers=tuple(providers), **matching)
    except (TypeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid matching config: {exc}") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

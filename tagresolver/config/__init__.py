"""Configuration loading: environment settings and the YAML provider list."""

from tagresolver.config.loader import build_tagger_config, load_config
from tagresolver.config.settings import Settings

__all__ = ["Settings", "build_tagger_config", "load_config"]

"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. Environment variables, e.g. ``TAGGER_AUTO_APPLY_THRESHOLD=0.85``
  2. A ``.env`` file in the working directory

Matching values default to ``None`` here so that they only override
``config/tagger.yaml`` when they are actually set.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """tagresolver application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Config file ===
    tagger_config_path: str = "config/tagger.yaml"

    # === Matching overrides (None = keep the YAML value) ===
    tagger_auto_apply_threshold: float | None = None
    tagger_duration_tolerance: float | None = None
    tagger_duration_decay: float | None = None
    tagger_tie_break_epsilon: float | None = None
    tagger_min_score: float | None = None
    tagger_max_candidates: int | None = None

    # === Catalog access ===
    http_timeout: float = 15.0
    http_user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    musicbrainz_app_name: str = "tagresolver"
    musicbrainz_app_version: str = "0.1.0"
    musicbrainz_contact: str = ""

    # === Library ===
    library_db_path: str = "data/library.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def matching_overrides(self) -> dict[str, float | int]:
        """Return the matching values explicitly set through the environment."""
        values = {
            "auto_apply_threshold": self.tagger_auto_apply_threshold,
            "duration_tolerance": self.tagger_duration_tolerance,
            "duration_decay": self.tagger_duration_decay,
            "tie_break_epsilon": self.tagger_tie_break_epsilon,
            "min_score": self.tagger_min_score,
            "max_candidates": self.tagger_max_candidates,
        }
        return {name: value for name, value in values.items() if value is not None}

"""Provider and matching configuration models.

A :class:`TaggerConfig` is built once per run by
:func:`tagresolver.config.loader.build_tagger_config` and handed to the
orchestrator.  Both models are frozen, so a run always sees the snapshot it
started with; edits to the YAML file or the environment only take effect on
the next run.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProviderConfig(BaseModel):
    """Per-catalog settings.

    ``priority`` is a rank: lower means preferred when two candidates score
    within the tie-break epsilon of each other.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    enabled: bool = True
    max_results: int = Field(default=10, ge=1)
    priority: int = 0


class TaggerConfig(BaseModel):
    """Everything a resolve run needs to know about providers and matching."""

    model_config = ConfigDict(frozen=True)

    providers: tuple[ProviderConfig, ...] = ()
    auto_apply_threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    duration_tolerance: float = Field(default=2.0, ge=0.0)
    duration_decay: float = Field(default=30.0, gt=0.0)
    tie_break_epsilon: float = Field(default=0.01, ge=0.0)
    min_score: float = Field(default=0.3, ge=0.0, le=1.0)
    max_candidates: int = Field(default=4, ge=1)

    def enabled_providers(self) -> list[ProviderConfig]:
        """Enabled providers ordered by priority rank, then by name."""
        enabled = [p for p in self.providers if p.enabled]
        return sorted(enabled, key=lambda p: (p.priority, p.name))

    def get_provider(self, name: str) -> ProviderConfig | None:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    def warnings(self) -> list[str]:
        """Configuration problems worth surfacing before a run starts.

        Returns an empty list for a healthy configuration.  Nothing here is
        fatal: a run on a config with warnings still completes.
        """
        problems: list[str] = []
        if not self.enabled_providers():
            problems.append("No catalog providers are enabled")

        seen: set[str] = set()
        for provider in self.providers:
            if provider.name in seen:
                problems.append(f"Provider '{provider.name}' is configured more than once")
            seen.add(provider.name)

        ranks = [p.priority for p in self.enabled_providers()]
        if len(ranks) != len(set(ranks)):
            problems.append(
                "Enabled providers share a priority rank; ties fall back to provider name"
            )
        return problems

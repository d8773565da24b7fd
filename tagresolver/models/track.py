"""Library track model.

:class:`LocalTrack` is the authoritative library record that the resolver
tries to complete.  It is owned by the library store
(:mod:`tagresolver.providers.library`) and only ever replaced -- never
mutated in place -- by the apply engine, which builds a new instance with
``model_copy(update={...})``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Fields the apply engine is allowed to write.  ``id`` and ``path`` identify
# the record and are never overwritten by catalog data.
WRITABLE_FIELDS: tuple[str, ...] = (
    "title",
    "artist",
    "album",
    "genre",
    "year",
    "bpm",
    "key",
    "duration",
    "artwork",
    "label",
)


class LocalTrack(BaseModel):
    """A track in the user's library.

    Unknown values are ``None``.  ``duration`` is in seconds.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    genre: str | None = None
    year: int | None = None
    bpm: int | None = None
    key: str | None = None            # Musical key, e.g. "Am" or "F#"
    duration: float | None = None
    artwork: str | None = None        # URL or local reference to cover art
    label: str | None = None
    path: str | None = None           # Audio file location on disk

    @property
    def needs_analysis(self) -> bool:
        """True while bpm or key is still unknown."""
        return self.bpm is None or self.key is None

"""Rules for keeping a track's own value over the catalog's.

Catalog data normally replaces what the library holds, but some local
values look like deliberate edits and are kept:

* **bpm** -- the catalog bpm is more than 20 away from the local one, or
  lies outside 60-200 while the local one is set.
* **genre** -- the local genre is a more specific form of the catalog
  genre (``"Minimal Techno"`` over ``"Techno"``), or a different genre
  altogether.
* **album** -- the local album extends the catalog album, as an edition
  suffix does (``"Innovator (Deluxe Edition)"`` over ``"Innovator"``).
* **year** -- the local year is more than 2 years from the catalog year,
  or the catalog year is implausible.

A rule only fires when both sides hold a value.  Every other field always
takes the catalog value.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

from tagresolver.models.track import LocalTrack

BPM_MAX_DRIFT = 20
BPM_RANGE = (60, 200)
YEAR_MAX_DRIFT = 2
EARLIEST_YEAR = 1900


def keep_local_bpm(local: int, catalog: int) -> bool:
    if abs(local - catalog) > BPM_MAX_DRIFT:
        return True
    low, high = BPM_RANGE
    return not low <= catalog <= high


def keep_local_genre(local: str, catalog: str) -> bool:
    local_norm = local.strip().lower()
    catalog_norm = catalog.strip().lower()
    if local_norm == catalog_norm:
        return False
    if local_norm in catalog_norm or catalog_norm in local_norm:
        return len(local_norm) > len(catalog_norm)
    return True


def keep_local_album(local: str, catalog: str) -> bool:
    local_norm = local.strip().lower()
    catalog_norm = catalog.strip().lower()
    return catalog_norm in local_norm and len(local_norm) > len(catalog_norm)


def keep_local_year(local: int, catalog: int, today: date | None = None) -> bool:
    latest = (today or date.today()).year + 1
    if not EARLIEST_YEAR <= catalog <= latest:
        return True
    if not EARLIEST_YEAR <= local <= latest:
        return False
    return abs(local - catalog) > YEAR_MAX_DRIFT


_RULES: dict[str, Callable[[Any, Any], bool]] = {
    "bpm": keep_local_bpm,
    "genre": keep_local_genre,
    "album": keep_local_album,
    "year": keep_local_year,
}


def preserved_fields(track: LocalTrack, fields: dict[str, Any]) -> list[str]:
    """Names in *fields* whose local value on *track* should be kept."""
    kept: list[str] = []
    for name, rule in _RULES.items():
        catalog = fields.get(name)
        local = getattr(track, name)
        if catalog is None or local is None or local == "":
            continue
        if rule(local, catalog):
            kept.append(name)
    return kept

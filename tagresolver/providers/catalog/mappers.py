"""Map native catalog payloads onto :class:`RawCandidate`.

One pure function per payload shape.  These functions only rename and
reshape fields and do best-effort secondary extraction (first genre tag,
``"Amaj 124"`` into key and bpm, ISO durations into seconds).  They never
score or filter; a payload with neither a title nor an artist maps to
``None`` because nothing downstream could use it.

Values a catalog does not provide are left as ``None``.  Bandcamp, for
instance, never yields bpm or key.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any
from urllib.parse import urljoin

from bs4 import Tag

from tagresolver.models.candidate import RawCandidate

_ISO_DURATION_RE = re.compile(
    r"^PT?(?:(?P<h>\d+)H)?(?:(?P<m>\d+)M)?(?:(?P<s>\d+(?:\.\d+)?)S)?$",
    re.IGNORECASE,
)
_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_BPM_RE = re.compile(r"\b(\d{2,3})\b")
_KEY_RE = re.compile(
    r"^(?P<root>[A-G](?:#|b|♯|♭)?)\s*(?P<mode>maj(?:or)?|min(?:or)?|m)?$",
    re.IGNORECASE,
)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%d %b %Y %H:%M:%S %Z",   # Bandcamp JSON-LD datePublished
    "%d %b %Y",
    "%B %d, %Y",              # "released March 1, 2019"
    "%b %d, %Y",
    "%Y",
)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def clean_text(value: Any) -> str | None:
    """Strip a scraped string; empty strings become ``None``."""
    if value is None:
        return None
    text = str(value).replace("\u00a0", " ").strip()
    return text or None


def parse_genre_from_tags(tags: str | list[str] | None) -> str | None:
    """Return the first entry of a comma-separated tag list."""
    if not tags:
        return None
    if isinstance(tags, str):
        tags = tags.split(",")
    for tag in tags:
        cleaned = clean_text(tag)
        if cleaned:
            return cleaned
    return None


def parse_duration(value: str | int | float | None) -> float | None:
    """Parse a duration into seconds.

    Accepts ``"m:ss"``, ``"h:mm:ss"``, ISO-8601 (``"PT5M32S"``,
    ``"P00H05M32S"``) and plain numbers of seconds.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None

    text = value.strip()
    if not text:
        return None

    iso = _ISO_DURATION_RE.match(text)
    if iso and any(iso.group(part) for part in ("h", "m", "s")):
        hours = int(iso.group("h") or 0)
        minutes = int(iso.group("m") or 0)
        seconds = float(iso.group("s") or 0)
        total = hours * 3600 + minutes * 60 + seconds
        return total or None

    parts = text.split(":")
    if len(parts) in (2, 3):
        try:
            numbers = [int(re.sub(r"\D", "", part)) for part in parts]
        except ValueError:
            return None
        total = 0
        for number in numbers:
            total = total * 60 + number
        return float(total) or None

    try:
        seconds = float(text)
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def parse_release_date(value: str | None) -> str | None:
    """Normalise a catalog date string to ``YYYY-MM-DD`` (or ``YYYY``)."""
    text = clean_text(value)
    if text is None:
        return None
    text = re.sub(r"^(released|pre-order for)\s+", "", text, flags=re.IGNORECASE)

    iso = _ISO_DATE_RE.search(text)
    if iso:
        return "-".join(iso.groups())

    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if fmt == "%Y":
            return text
        return parsed.strftime("%Y-%m-%d")
    return None


def normalize_key(value: str | None) -> str | None:
    """Normalise a musical key: ``"Amaj"`` -> ``"A"``, ``"A Minor"`` -> ``"Am"``.

    Unrecognised notations are passed through unchanged.
    """
    text = clean_text(value)
    if text is None:
        return None
    match = _KEY_RE.match(text)
    if not match:
        return text
    root = match.group("root").replace("♯", "#").replace("♭", "b")
    root = root[0].upper() + root[1:]
    mode = (match.group("mode") or "").lower()
    if mode.startswith("min") or mode == "m":
        return f"{root}m"
    return root


def split_key_bpm(value: str | None) -> tuple[str | None, int | None]:
    """Split a Traxsource ``"Amaj 124"`` cell into key and bpm."""
    text = clean_text(value)
    if text is None:
        return None, None
    parts = text.split()
    key = normalize_key(parts[0]) if parts and not parts[0].isdigit() else None
    bpm_match = _BPM_RE.search(text)
    bpm = int(bpm_match.group(1)) if bpm_match else None
    return key, bpm


def _build(
    candidate_id: str | None,
    title: str | None,
    artists: list[str],
    **fields: Any,
) -> RawCandidate | None:
    artists = [a for a in (clean_text(a) for a in artists) if a]
    title = clean_text(title)
    if not candidate_id or (not title and not artists):
        return None
    return RawCandidate(
        id=str(candidate_id),
        title=title,
        artists=tuple(artists),
        **fields,
    )


# ---------------------------------------------------------------------------
# Beatport -- one entry of the search page's __NEXT_DATA__ track list
# ---------------------------------------------------------------------------

def map_beatport_track(payload: dict[str, Any]) -> RawCandidate | None:
    artists = [
        artist.get("artist_name", "")
        for artist in payload.get("artists") or []
        if isinstance(artist, dict)
    ]

    genre: str | None = None
    genres = payload.get("genre")
    if isinstance(genres, list) and genres and isinstance(genres[0], dict):
        genre = clean_text(genres[0].get("genre_name"))
    elif isinstance(genres, dict):
        genre = clean_text(genres.get("genre_name"))

    label = payload.get("label") if isinstance(payload.get("label"), dict) else {}
    release = payload.get("release") if isinstance(payload.get("release"), dict) else {}

    length_ms = payload.get("length")
    duration = length_ms / 1000.0 if isinstance(length_ms, (int, float)) and length_ms > 0 else None

    bpm = payload.get("bpm")
    return _build(
        payload.get("track_id"),
        payload.get("track_name"),
        artists,
        mix_name=clean_text(payload.get("mix_name")),
        album=clean_text(release.get("release_name")),
        label=clean_text(label.get("label_name")),
        genre=genre,
        bpm=int(bpm) if isinstance(bpm, (int, float)) and bpm > 0 else None,
        key=normalize_key(payload.get("key_name")),
        duration=duration,
        artwork_url=clean_text(release.get("release_image_uri")),
        release_date=parse_release_date(payload.get("publish_date")),
    )


# ---------------------------------------------------------------------------
# Traxsource -- one ``.trk-row`` of the track search page
# ---------------------------------------------------------------------------

def map_traxsource_row(row: Tag, base_url: str) -> RawCandidate | None:
    title_el = row.select_one("div.title")
    if title_el is None:
        return None

    parts = [text for text in title_el.stripped_strings]
    title = parts[0] if parts else None
    mix_name: str | None = None
    duration: float | None = None
    if len(parts) >= 3:
        mix_name = clean_text(parts[1])
        duration = parse_duration(parts[2])
    elif len(parts) == 2:
        duration = parse_duration(parts[1])

    link = title_el.select_one("a")
    href = link.get("href", "") if link else ""
    url = urljoin(base_url, href) if href else None

    artists = [a.get_text(strip=True) for a in row.select("div.artists a")]

    label_el = row.select_one("div.label")
    genre_el = row.select_one("div.genre")
    date_el = row.select_one("div.r-date")
    key_bpm_el = row.select_one("div.key-bpm")
    key, bpm = split_key_bpm(key_bpm_el.get_text(" ", strip=True) if key_bpm_el else None)

    thumb = row.select_one("div.thumb img")
    thumb_src = thumb.get("src") if thumb else None

    return _build(
        url,
        title,
        artists,
        mix_name=mix_name,
        label=clean_text(label_el.get_text(strip=True)) if label_el else None,
        genre=clean_text(genre_el.get_text(strip=True)) if genre_el else None,
        bpm=bpm,
        key=key,
        duration=duration,
        artwork_url=urljoin(base_url, thumb_src) if thumb_src else None,
        release_date=parse_release_date(date_el.get_text(strip=True)) if date_el else None,
    )


def map_traxsource_details(
    track_url: str,
    album: str | None,
    release_date: str | None,
    artwork_src: str | None,
    base_url: str,
) -> RawCandidate:
    """Build the detail overlay for a Traxsource track.

    Only the values the track and release pages add are set; everything
    else stays absent so :meth:`RawCandidate.merged_with` keeps the search
    data.
    """
    return RawCandidate(
        id=track_url,
        album=clean_text(album),
        release_date=parse_release_date(release_date),
        artwork_url=urljoin(base_url, artwork_src) if artwork_src else None,
    )


# ---------------------------------------------------------------------------
# Bandcamp
# ---------------------------------------------------------------------------

def map_bandcamp_search_result(payload: dict[str, Any]) -> RawCandidate | None:
    """Map one parsed ``.searchresult.track`` entry.

    Expected keys: ``url``, ``name``, ``artist``, ``album``,
    ``release_date``, ``image_url``, ``tags``.
    """
    url = clean_text(payload.get("url"))
    if url:
        url = url.split("?")[0]
    artist = clean_text(payload.get("artist"))
    return _build(
        url,
        payload.get("name"),
        [artist] if artist else [],
        album=clean_text(payload.get("album")),
        genre=parse_genre_from_tags(payload.get("tags")),
        artwork_url=clean_text(payload.get("image_url")),
        release_date=parse_release_date(payload.get("release_date")),
    )


def map_bandcamp_track_info(track_url: str, payload: dict[str, Any]) -> RawCandidate | None:
    """Map the JSON-LD ``MusicRecording`` block of a Bandcamp track page."""
    by_artist = payload.get("byArtist")
    artist = by_artist.get("name") if isinstance(by_artist, dict) else None

    album: str | None = None
    label: str | None = None
    in_album = payload.get("inAlbum")
    if isinstance(in_album, dict):
        album = in_album.get("name")
        publisher = in_album.get("publisher")
        if isinstance(publisher, dict):
            label = publisher.get("name")
    publisher = payload.get("publisher")
    if label is None and isinstance(publisher, dict):
        label = publisher.get("name")

    image = payload.get("image")
    if isinstance(image, list):
        image = image[0] if image else None

    keywords = payload.get("keywords")
    return _build(
        track_url,
        payload.get("name"),
        [artist] if artist else [],
        album=clean_text(album),
        label=clean_text(label),
        genre=parse_genre_from_tags(keywords),
        duration=parse_duration(payload.get("duration")),
        artwork_url=clean_text(image),
        release_date=parse_release_date(payload.get("datePublished")),
    )


# ---------------------------------------------------------------------------
# MusicBrainz -- one entry of ``recording-list``
# ---------------------------------------------------------------------------

def map_musicbrainz_recording(payload: dict[str, Any]) -> RawCandidate | None:
    artists: list[str] = []
    for credit in payload.get("artist-credit") or []:
        if isinstance(credit, dict):
            artist = credit.get("artist")
            name = credit.get("name") or (artist.get("name") if isinstance(artist, dict) else None)
            if name:
                artists.append(name)

    album: str | None = None
    label: str | None = None
    release_date: str | None = None
    releases = payload.get("release-list") or []
    if releases and isinstance(releases[0], dict):
        first = releases[0]
        album = first.get("title")
        release_date = first.get("date")
        label_info = first.get("label-info-list") or []
        if label_info and isinstance(label_info[0], dict):
            label_entry = label_info[0].get("label")
            if isinstance(label_entry, dict):
                label = label_entry.get("name")

    tags = payload.get("tag-list") or []
    genre = None
    if tags and isinstance(tags[0], dict):
        genre = clean_text(tags[0].get("name"))

    length = payload.get("length")
    duration = None
    if length is not None:
        try:
            duration = int(length) / 1000.0 or None
        except (TypeError, ValueError):
            duration = None

    return _build(
        payload.get("id"),
        payload.get("title"),
        artists,
        album=clean_text(album),
        label=clean_text(label),
        genre=genre,
        duration=duration,
        release_date=parse_release_date(release_date),
    )

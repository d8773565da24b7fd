"""SQLite-backed library store.

Persists :class:`LocalTrack` records, and the queue of files waiting for
audio analysis, to a local SQLite database at ``data/library.db``.  Uses
``aiosqlite`` for async I/O.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

from tagresolver.interfaces.library_store import ILibraryStore
from tagresolver.models.track import LocalTrack
from tagresolver.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/library.db")

_COLUMNS = (
    "id",
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
    "path",
)

_CREATE_TRACKS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS tracks (
    id          TEXT    PRIMARY KEY,
    title       TEXT,
    artist      TEXT,
    album       TEXT,
    genre       TEXT,
    year        INTEGER,
    bpm         INTEGER,
    key         TEXT,
    duration    REAL,
    artwork     TEXT,
    label       TEXT,
    path        TEXT,
    updated_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_CREATE_ANALYSIS_QUEUE_SQL = """\
CREATE TABLE IF NOT EXISTS analysis_queue (
    path        TEXT    PRIMARY KEY,
    queued_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_ENQUEUE_ANALYSIS_SQL = "INSERT OR IGNORE INTO analysis_queue (path) VALUES (?);"

_SELECT_ANALYSIS_SQL = "SELECT path FROM analysis_queue ORDER BY rowid;"

_DELETE_ANALYSIS_SQL = "DELETE FROM analysis_queue WHERE path = ?;"

_UPSERT_TRACK_SQL = f"""\
INSERT INTO tracks ({", ".join(_COLUMNS)})
VALUES ({", ".join("?" for _ in _COLUMNS)})
ON CONFLICT(id) DO UPDATE SET
    {", ".join(f"{c} = excluded.{c}" for c in _COLUMNS if c != "id")},
    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_UPDATE_TRACK_SQL = f"""\
UPDATE tracks SET
    {", ".join(f"{c} = ?" for c in _COLUMNS if c != "id")},
    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
WHERE id = ?;
"""

_SELECT_TRACK_SQL = f"SELECT {', '.join(_COLUMNS)} FROM tracks WHERE id = ?;"

_SELECT_ALL_TRACKS_SQL = f"SELECT {', '.join(_COLUMNS)} FROM tracks ORDER BY rowid;"


def _row_to_track(row: aiosqlite.Row) -> LocalTrack:
    return LocalTrack(**{column: row[column] for column in _COLUMNS})


def _update_params(track: LocalTrack) -> tuple:
    values = track.model_dump()
    return tuple(values[c] for c in _COLUMNS if c != "id") + (track.id,)


class SQLiteLibraryStore(ILibraryStore):
    """SQLite-backed library persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tracks and analysis_queue tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TRACKS_TABLE_SQL)
            await db.execute(_CREATE_ANALYSIS_QUEUE_SQL)
            await db.commit()
        logger.info("library_db_initialized", path=str(self._db_path))

    async def add_tracks(self, tracks: list[LocalTrack]) -> int:
        """Insert or replace *tracks*.  Returns the number of rows written."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(
                _UPSERT_TRACK_SQL,
                [tuple(t.model_dump()[c] for c in _COLUMNS) for t in tracks],
            )
            await db.commit()
        logger.info("library_tracks_imported", count=len(tracks))
        return len(tracks)

    async def find_track_by_id(self, track_id: str) -> LocalTrack | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_TRACK_SQL, (track_id,))
            row = await cursor.fetchone()
        return _row_to_track(row) if row else None

    async def update_track(self, track: LocalTrack) -> None:
        await self.update_tracks([track])

    async def update_tracks(self, tracks: list[LocalTrack]) -> None:
        """Write all *tracks* in one transaction.

        Raises
        ------
        PersistenceError
            If the write fails or any track id is not in the library.
        """
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for track in tracks:
                    cursor = await db.execute(_UPDATE_TRACK_SQL, _update_params(track))
                    if cursor.rowcount == 0:
                        raise PersistenceError(f"Track {track.id} is not in the library")
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Library write failed: {exc}") from exc

    async def list_tracks(self, track_ids: list[str] | None = None) -> list[LocalTrack]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_ALL_TRACKS_SQL)
            rows = await cursor.fetchall()
        tracks = [_row_to_track(row) for row in rows]
        if track_ids is None:
            return tracks
        by_id = {t.id: t for t in tracks}
        return [by_id[tid] for tid in track_ids if tid in by_id]

    # -- Analysis queue ----------------------------------------------------

    async def enqueue_analysis(self, file_paths: list[str]) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                before = db.total_changes
                await db.executemany(_ENQUEUE_ANALYSIS_SQL, [(p,) for p in file_paths])
                added = db.total_changes - before
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Analysis queue write failed: {exc}") from exc
        logger.info("analysis_queue_persisted", requested=len(file_paths), added=added)
        return added

    async def pending_analysis(self) -> list[str]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_ANALYSIS_SQL)
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def clear_analysis(self, file_paths: list[str]) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(_DELETE_ANALYSIS_SQL, [(p,) for p in file_paths])
            await db.commit()
